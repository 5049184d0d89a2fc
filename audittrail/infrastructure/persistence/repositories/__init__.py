"""Persistence repositories. Re-exports for dependency injection."""

from audittrail.infrastructure.persistence.repositories.audit_event_repo import (
    AuditEventRepository,
)
from audittrail.infrastructure.persistence.repositories.in_memory_audit_event_repo import (
    InMemoryAuditEventRepository,
)

__all__ = [
    "AuditEventRepository",
    "InMemoryAuditEventRepository",
]
