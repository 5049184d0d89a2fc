"""Shared utilities: ambient audit context, enums, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from audittrail.shared.context import (
    AuditRequestContext,
    AuditRequestMetadata,
    audit_context_scope,
    create_audit_context,
    get_audit_context,
    require_audit_context,
    run_with_audit_context,
    update_audit_actor,
)
from audittrail.shared.enums import ActorType, AuditAction, AuditResourceType
from audittrail.shared.utils import ensure_utc, generate_request_id, utc_now

__all__ = [
    "AuditRequestContext",
    "AuditRequestMetadata",
    "audit_context_scope",
    "create_audit_context",
    "get_audit_context",
    "require_audit_context",
    "run_with_audit_context",
    "update_audit_actor",
    "ActorType",
    "AuditAction",
    "AuditResourceType",
    "generate_request_id",
    "utc_now",
    "ensure_utc",
]
