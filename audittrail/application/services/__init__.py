"""Application services: PII registry and encryption, change diff, hashing, audit service."""

from audittrail.application.services.audit_service import (
    AuditService,
    audit_log,
    audit_log_sync,
    compute_audit_changes,
    get_audit_service,
    get_audit_service_or_none,
    set_global_audit_service,
)
from audittrail.application.services.change_diff import ChangeDiffEngine, deep_equals
from audittrail.application.services.hash_service import (
    HashAlgorithm,
    HashService,
    SHA256Algorithm,
)
from audittrail.application.services.pii_encryption import PiiEncryptor
from audittrail.application.services.pii_registry import (
    PiiFieldRegistry,
    register_pii_fields,
)

__all__ = [
    "AuditService",
    "ChangeDiffEngine",
    "HashAlgorithm",
    "HashService",
    "PiiEncryptor",
    "PiiFieldRegistry",
    "SHA256Algorithm",
    "audit_log",
    "audit_log_sync",
    "compute_audit_changes",
    "deep_equals",
    "get_audit_service",
    "get_audit_service_or_none",
    "register_pii_fields",
    "set_global_audit_service",
]
