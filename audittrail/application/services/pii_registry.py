"""PII field registry: which fields of which resource types hold personal data.

One registry instance is built by the composition root and passed to the
encryption layer and diff engine. Entity modules declare their PII fields with
register_pii_fields() at startup; after that the registry is read-only in
practice (no locking, single writer during startup).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from audittrail.shared.enums import AuditResourceType, enum_value

# Always PII for every resource type. Exact (case-insensitive) name match:
# a field called "emailAddress" is only caught because it is listed here.
GLOBAL_PII_FIELDS: frozenset[str] = frozenset(
    {
        "email",
        "emailaddress",
        "email_address",
        "emails",
        "phone",
        "phonenumber",
        "phone_number",
        "mobile",
        "ip",
        "ipaddress",
        "ip_address",
        "name",
        "firstname",
        "first_name",
        "lastname",
        "last_name",
        "fullname",
        "full_name",
        "displayname",
        "display_name",
        "address",
        "useragent",
        "user_agent",
    }
)

# Actor columns of an audit event; encrypted whenever a key is configured.
ACTOR_PII_FIELDS: frozenset[str] = frozenset(
    {"actoremail", "actorip", "actordevice", "actor_email", "actor_ip", "actor_device"}
)


@dataclass(frozen=True)
class PiiFieldInfo:
    """Registration details for one PII field."""

    description: str | None = None


FieldDeclaration = PiiFieldInfo | Mapping[str, str | None] | str | None


def _to_info(declaration: FieldDeclaration) -> PiiFieldInfo:
    if isinstance(declaration, PiiFieldInfo):
        return declaration
    if isinstance(declaration, Mapping):
        return PiiFieldInfo(description=declaration.get("description"))
    return PiiFieldInfo(description=declaration)


class PiiFieldRegistry:
    """Catalog of resource type -> {field name -> PiiFieldInfo}."""

    def __init__(self) -> None:
        # resource type -> lower-cased field name -> (declared name, info)
        self._fields: dict[str, dict[str, tuple[str, PiiFieldInfo]]] = {}

    def register(
        self,
        resource_type: AuditResourceType | str,
        fields: Mapping[str, FieldDeclaration],
    ) -> None:
        """Merge PII fields for a resource type.

        Additive and idempotent: repeating a field name in any casing keeps
        the first declared name and only replaces its description.
        """
        entries = self._fields.setdefault(enum_value(resource_type), {})
        for name, declaration in fields.items():
            existing = entries.get(name.lower())
            declared_name = existing[0] if existing else name
            entries[name.lower()] = (declared_name, _to_info(declaration))

    def get_fields(self, resource_type: AuditResourceType | str) -> set[str]:
        """Return registered field names for the type plus the global PII set."""
        entries = self._fields.get(enum_value(resource_type), {})
        return {declared for declared, _ in entries.values()} | set(GLOBAL_PII_FIELDS)

    def get_field_info(
        self, resource_type: AuditResourceType | str, field_name: str
    ) -> PiiFieldInfo | None:
        """Return registration details for a field, or None if not registered."""
        entry = self._fields.get(enum_value(resource_type), {}).get(field_name.lower())
        return entry[1] if entry else None

    def is_pii(self, resource_type: AuditResourceType | str, field_name: str) -> bool:
        """True if the field is registered for the type or is a global PII name."""
        lowered = field_name.lower()
        if lowered in GLOBAL_PII_FIELDS:
            return True
        return lowered in self._fields.get(enum_value(resource_type), {})

    @staticmethod
    def is_actor_pii_field(field_name: str) -> bool:
        """True only for the actor email/ip/device columns."""
        return field_name.lower() in ACTOR_PII_FIELDS

    def reset(self) -> None:
        """Drop every registration (tests and administrative use)."""
        self._fields.clear()


def register_pii_fields(
    registry: PiiFieldRegistry,
    resource_type: AuditResourceType | str,
    fields: Mapping[str, FieldDeclaration],
) -> None:
    """Declare an entity's PII fields. Call once per entity at startup."""
    registry.register(resource_type, fields)
