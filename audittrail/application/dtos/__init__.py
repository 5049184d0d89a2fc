"""Application DTOs (no ORM dependency)."""

from audittrail.application.dtos.audit_event import (
    AuditEvent,
    AuditFilter,
    AuditLogParams,
    AuditQueryOptions,
    FieldChange,
    NewAuditEvent,
)

__all__ = [
    "AuditEvent",
    "AuditFilter",
    "AuditLogParams",
    "AuditQueryOptions",
    "FieldChange",
    "NewAuditEvent",
]
