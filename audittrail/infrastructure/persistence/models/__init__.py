"""Persistence models: ORM entities."""

from audittrail.infrastructure.persistence.models.audit_event import AuditEventRecord

__all__ = ["AuditEventRecord"]
