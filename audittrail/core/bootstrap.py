"""Composition root for the audit engine.

Builds registry -> encryptor -> diff engine -> service, picks the audit
store, and installs the process-wide service used by audit_log() call sites.
"""

from __future__ import annotations

from audittrail.application.interfaces.repositories import IAuditEventRepository
from audittrail.application.services.audit_service import (
    AuditService,
    get_audit_service_or_none,
    set_global_audit_service,
)
from audittrail.application.services.change_diff import ChangeDiffEngine
from audittrail.application.services.default_pii_fields import register_default_pii_fields
from audittrail.application.services.pii_encryption import PiiEncryptor
from audittrail.application.services.pii_registry import PiiFieldRegistry
from audittrail.core.config import Settings, get_settings
from audittrail.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def build_repository(settings: Settings) -> IAuditEventRepository:
    """SQL store when DATABASE_URL is set, otherwise the in-memory store."""
    if settings.database_url:
        from audittrail.infrastructure.persistence.database import get_session_factory
        from audittrail.infrastructure.persistence.repositories import AuditEventRepository

        return AuditEventRepository(get_session_factory())

    from audittrail.infrastructure.persistence.repositories import (
        InMemoryAuditEventRepository,
    )

    logger.warning("DATABASE_URL not set; audit events are kept in memory only")
    return InMemoryAuditEventRepository()


def init_audit(
    settings: Settings | None = None,
    repository: IAuditEventRepository | None = None,
    registry: PiiFieldRegistry | None = None,
) -> AuditService:
    """Wire the audit service and install it as the global instance.

    Args:
        settings: Defaults to get_settings().
        repository: Audit store; defaults to build_repository(settings).
        registry: PII registry; a new one with the default fields when omitted.

    Returns:
        The installed AuditService.
    """
    settings = settings or get_settings()
    if registry is None:
        registry = PiiFieldRegistry()
        register_default_pii_fields(registry)
    encryptor = PiiEncryptor.from_config(registry, settings.audit_pii_encryption_key)
    if not encryptor.is_configured:
        logger.warning(
            "AUDIT_PII_ENCRYPTION_KEY not set or invalid; PII in audit events is stored in plaintext"
        )
    service = AuditService(
        repository if repository is not None else build_repository(settings),
        encryptor,
        ChangeDiffEngine(encryptor),
        enabled=settings.audit_enabled,
    )
    set_global_audit_service(service)
    logger.info(
        "Audit service initialized (enabled=%s, pii_encryption=%s)",
        settings.audit_enabled,
        encryptor.is_configured,
    )
    return service


async def shutdown_audit() -> None:
    """Wait for pending fire-and-forget writes, then uninstall the global service."""
    service = get_audit_service_or_none()
    if service is None:
        return
    await service.drain()
    set_global_audit_service(None)
    logger.info("Audit service shut down")
