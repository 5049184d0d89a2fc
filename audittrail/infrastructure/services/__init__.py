"""Infrastructure services (operational jobs over the audit store)."""

from audittrail.infrastructure.services.audit_retention import purge_expired_audit_events

__all__ = ["purge_expired_audit_events"]
