"""Domain layer: exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from audittrail.domain.exceptions import (
    AuditContextMissingException,
    AuditEventNotFoundException,
    AuditServiceNotInitializedException,
    AuditTrailException,
    SqlNotConfiguredException,
)

__all__ = [
    "AuditContextMissingException",
    "AuditEventNotFoundException",
    "AuditServiceNotInitializedException",
    "AuditTrailException",
    "SqlNotConfiguredException",
]
