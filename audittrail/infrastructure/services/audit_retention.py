"""Audit event retention sweep.

Deletes audit events older than the configured retention period
(audit_retention_days). Run periodically (e.g. daily cron):
python -m scripts.run_audit_retention, or call purge_expired_audit_events
with the repository the application already uses.
"""

from __future__ import annotations

from audittrail.application.interfaces.repositories import IAuditEventRepository
from audittrail.core.config import get_settings
from audittrail.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


async def purge_expired_audit_events(
    repository: IAuditEventRepository,
    *,
    retention_days: int | None = None,
) -> int:
    """Delete audit events beyond retention.

    Args:
        repository: Audit event store to sweep.
        retention_days: Days to keep events; if None, uses
            settings.audit_retention_days.

    Returns:
        Number of events deleted.

    Raises:
        ValueError: If retention_days is less than 1.
    """
    days = retention_days if retention_days is not None else get_settings().audit_retention_days
    if days < 1:
        raise ValueError(f"retention_days must be >= 1, got {days}")
    count = await repository.delete_older_than(days)
    if count:
        logger.info(
            "Audit retention: deleted %s event(s) older than %s days",
            count,
            days,
        )
    return count
