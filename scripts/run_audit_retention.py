"""Run audit retention: delete audit events older than audit_retention_days.

Usage:
    python -m scripts.run_audit_retention [days]
If days is omitted, uses AUDIT_RETENTION_DAYS (default 365).
Requires DATABASE_URL pointing at the audit store.
"""

import asyncio
import sys

import audittrail.infrastructure.persistence.database as database
from audittrail.core.config import get_settings
from audittrail.infrastructure.persistence.repositories import AuditEventRepository
from audittrail.infrastructure.services.audit_retention import purge_expired_audit_events
from audittrail.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Sweep the SQL audit store once."""
    setup_logging()
    settings = get_settings()
    if not settings.database_url:
        print("Set DATABASE_URL to run audit retention", file=sys.stderr)
        sys.exit(1)

    retention_days = settings.audit_retention_days
    if len(sys.argv) > 1:
        try:
            retention_days = int(sys.argv[1])
        except ValueError:
            print(f"Invalid days: {sys.argv[1]}", file=sys.stderr)
            sys.exit(1)
        if retention_days < 1:
            print("days must be >= 1", file=sys.stderr)
            sys.exit(1)

    repo = AuditEventRepository(database.get_session_factory())
    try:
        deleted = await purge_expired_audit_events(repo, retention_days=retention_days)
    finally:
        await database.dispose_engine()

    print(f"Done. Deleted {deleted} audit event(s) older than {retention_days} days")


if __name__ == "__main__":
    asyncio.run(main())
