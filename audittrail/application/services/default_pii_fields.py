"""PII field declarations for the built-in audited entities.

Each entity lists the fields beyond the global PII names that identify a
person. register_default_pii_fields() is called once by the composition root.
"""

from audittrail.application.services.pii_registry import (
    PiiFieldInfo,
    PiiFieldRegistry,
    register_pii_fields,
)
from audittrail.shared.enums import AuditResourceType

USER_PII_FIELDS = {
    "image": PiiFieldInfo("Profile picture URL"),
    "username": PiiFieldInfo("Login handle"),
}

INVITATION_PII_FIELDS = {
    "invitedEmail": PiiFieldInfo("Address the invitation was sent to"),
    "inviteeName": PiiFieldInfo("Name entered for the invitee"),
    "invitedByEmail": PiiFieldInfo("Address of the inviting user"),
}

SESSION_PII_FIELDS = {
    "ipAddress": PiiFieldInfo("Client IP the session was opened from"),
    "userAgent": PiiFieldInfo("Client user agent"),
}

INTEGRATION_PII_FIELDS = {
    "accountLogin": PiiFieldInfo("Login of the connected third-party account"),
    "installerEmail": PiiFieldInfo("Address of the user who installed the integration"),
}

SITE_PII_FIELDS = {
    "allowedEmails": PiiFieldInfo("Addresses allowed to view a private site"),
    "contactEmail": PiiFieldInfo("Public contact address"),
}


def register_default_pii_fields(registry: PiiFieldRegistry) -> None:
    """Register every built-in entity's PII fields on `registry`."""
    register_pii_fields(registry, AuditResourceType.USER, USER_PII_FIELDS)
    register_pii_fields(registry, AuditResourceType.USER_INVITATION, INVITATION_PII_FIELDS)
    register_pii_fields(registry, AuditResourceType.OWNER_INVITATION, INVITATION_PII_FIELDS)
    register_pii_fields(registry, AuditResourceType.SESSION, SESSION_PII_FIELDS)
    register_pii_fields(registry, AuditResourceType.INTEGRATION, INTEGRATION_PII_FIELDS)
    register_pii_fields(registry, AuditResourceType.SITE, SITE_PII_FIELDS)
