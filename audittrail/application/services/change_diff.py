"""Change diff engine: field-level changes between two snapshots of a record.

diff(None, new) describes a creation, diff(old, None) a deletion and
diff(old, new) an update. Values are sanitized on the way out: sensitive
fields are redacted, long strings and arrays are replaced by size
placeholders, and PII fields are encrypted when a key is configured.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any

from audittrail.application.dtos.audit_event import FieldChange
from audittrail.application.services.pii_encryption import (
    REDACTED,
    PiiEncryptor,
    is_sensitive_field,
)
from audittrail.shared.enums import AuditResourceType
from audittrail.shared.utils.datetime import ensure_utc

MAX_STRING_LENGTH = 1000
MAX_ARRAY_LENGTH = 100

# Stands in for a key that is absent from a snapshot.
_MISSING = object()


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _normalize_temporal(value: date) -> Any:
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


def deep_equals(a: Any, b: Any) -> bool:
    """Structural equality used to skip unchanged fields.

    - datetimes/dates compare by value (naive datetimes are taken as UTC)
    - sequences compare element-wise and never equal a non-sequence
    - mappings compare by key count first, then per key
    - bool never equals a number
    """
    if a is b:
        return True
    if a is None or b is None or a is _MISSING or b is _MISSING:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, date) or isinstance(b, date):
        if not (isinstance(a, date) and isinstance(b, date)):
            return False
        if isinstance(a, datetime) != isinstance(b, datetime):
            return False
        return _normalize_temporal(a) == _normalize_temporal(b)
    if _is_sequence(a) or _is_sequence(b):
        if not (_is_sequence(a) and _is_sequence(b)):
            return False
        if len(a) != len(b):
            return False
        return all(deep_equals(x, y) for x, y in zip(a, b))
    if isinstance(a, Mapping) or isinstance(b, Mapping):
        if not (isinstance(a, Mapping) and isinstance(b, Mapping)):
            return False
        if len(a) != len(b):
            return False
        return all(deep_equals(a[key], b.get(key, _MISSING)) for key in a)
    return a == b


class ChangeDiffEngine:
    """Computes sanitized, PII-protected field changes."""

    def __init__(self, encryptor: PiiEncryptor) -> None:
        self.encryptor = encryptor
        self.registry = encryptor.registry

    def diff(
        self,
        old_value: Mapping[str, Any] | None,
        new_value: Mapping[str, Any] | None,
        resource_type: AuditResourceType | str,
        tracked_fields: Sequence[str] | None = None,
    ) -> list[FieldChange]:
        """Return the ordered field changes from old_value to new_value.

        Args:
            old_value: Snapshot before the action (None for a creation).
            new_value: Snapshot after the action (None for a deletion).
            resource_type: Decides which fields are PII.
            tracked_fields: Only consider these fields (default: all keys).

        Returns:
            One FieldChange per changed field; empty when nothing changed.
        """
        if old_value is None and new_value is None:
            return []

        if old_value is None:
            fields = tracked_fields if tracked_fields is not None else list(new_value)
            return self._snapshot_changes(fields, new_value, resource_type, created=True)

        if new_value is None:
            fields = tracked_fields if tracked_fields is not None else list(old_value)
            return self._snapshot_changes(fields, old_value, resource_type, created=False)

        fields = (
            tracked_fields
            if tracked_fields is not None
            else list(dict.fromkeys([*old_value, *new_value]))
        )
        changes: list[FieldChange] = []
        for field_name in fields:
            if is_sensitive_field(field_name):
                continue
            old = old_value.get(field_name, _MISSING)
            new = new_value.get(field_name, _MISSING)
            if callable(old) or callable(new):
                continue
            if deep_equals(old, new):
                continue
            changes.append(
                FieldChange(
                    field=field_name,
                    old=self._sanitize_present(old, field_name, resource_type),
                    new=self._sanitize_present(new, field_name, resource_type),
                )
            )
        return changes

    def _snapshot_changes(
        self,
        fields: Iterable[str],
        snapshot: Mapping[str, Any],
        resource_type: AuditResourceType | str,
        *,
        created: bool,
    ) -> list[FieldChange]:
        changes: list[FieldChange] = []
        for field_name in fields:
            value = snapshot.get(field_name, _MISSING)
            if is_sensitive_field(field_name) or value is _MISSING or callable(value):
                continue
            sanitized = self.sanitize(value, field_name, resource_type)
            if created:
                changes.append(FieldChange(field=field_name, old=None, new=sanitized))
            else:
                changes.append(FieldChange(field=field_name, old=sanitized, new=None))
        return changes

    def _sanitize_present(
        self, value: Any, field_name: str, resource_type: AuditResourceType | str
    ) -> Any:
        if value is _MISSING:
            return None
        return self.sanitize(value, field_name, resource_type)

    def sanitize(
        self,
        value: Any,
        field_name: str | None,
        resource_type: AuditResourceType | str,
    ) -> Any:
        """Make one value safe for the audit trail.

        Applied at every nesting level: mapping keys become the field name of
        their values, so nested sensitive and PII fields are caught too.
        """
        if field_name and is_sensitive_field(field_name):
            return REDACTED
        if value is None:
            return None

        if isinstance(value, date):
            value = _normalize_temporal(value).isoformat()

        is_pii_field = bool(field_name) and self.registry.is_pii(resource_type, field_name)

        if isinstance(value, str):
            if len(value) > MAX_STRING_LENGTH:
                value = f"[{len(value)} characters]"
            if is_pii_field and self.encryptor.is_configured:
                return self.encryptor.encrypt(value)
            return value

        if _is_sequence(value):
            if len(value) > MAX_ARRAY_LENGTH:
                return f"[Array of {len(value)} items]"
            if is_pii_field and self.encryptor.is_configured:
                return [
                    self.encryptor.encrypt(item) if isinstance(item, str) else item
                    for item in value
                ]
            return [self.sanitize(item, None, resource_type) for item in value]

        if isinstance(value, Mapping):
            return {
                key: self.sanitize(item, str(key), resource_type)
                for key, item in value.items()
            }

        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, (bool, int, float, str)):
            return value
        # UUID, Decimal and other column types are stored as their string form
        return str(value)
