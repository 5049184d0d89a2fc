"""Application use cases: one entry point per workflow."""

from audittrail.application.use_cases.audit_log import AuditLogReader

__all__ = ["AuditLogReader"]
