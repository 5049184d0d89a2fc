"""Shared enumerations for the audit engine.

Cross-cutting enums used by application and infrastructure: who acted
(ActorType), what they did (AuditAction) and to what (AuditResourceType).
Services accept either a member or its raw string value so callers with
resource kinds outside these sets can still audit.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ActorType(_ValuesMixin, str, Enum):
    """Actor type for audit tracking (who performed the action)."""

    USER = "user"
    SYSTEM = "system"
    API_KEY = "api_key"
    WEBHOOK = "webhook"
    SCHEDULER = "scheduler"
    SUPERADMIN = "superadmin"


class AuditAction(_ValuesMixin, str, Enum):
    """Audit action verbs."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    LOGIN_FAILED = "login_failed"
    PASSWORD_RESET = "password_reset"
    INVITE = "invite"
    ACCEPT = "accept"
    DECLINE = "decline"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    ROLE_CHANGE = "role_change"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    INSTALL = "install"
    UNINSTALL = "uninstall"
    EXPORT = "export"
    IMPORT = "import"
    MOVE = "move"


class AuditResourceType(_ValuesMixin, str, Enum):
    """Kinds of entities that appear in the audit trail."""

    DOC = "doc"
    DOC_DRAFT = "doc_draft"
    ARTICLE = "article"
    FOLDER = "folder"
    SPACE = "space"
    SITE = "site"
    IMAGE = "image"
    INTEGRATION = "integration"
    USER = "user"
    USER_INVITATION = "user_invitation"
    OWNER_INVITATION = "owner_invitation"
    ROLE = "role"
    ROLE_PERMISSIONS = "role_permissions"
    SESSION = "session"
    JOB = "job"
    SETTINGS = "settings"
    TENANT = "tenant"
    ORG = "org"


def enum_value(value: object) -> str:
    """Return the raw string for an enum member or a plain string."""
    return str(getattr(value, "value", value))
