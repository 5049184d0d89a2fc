"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from audittrail.application.dtos.audit_event import (
        AuditEvent,
        AuditLogParams,
        FieldChange,
        NewAuditEvent,
    )
    from audittrail.shared.enums import AuditResourceType


# Hash service interface
class IHashService(Protocol):
    """Protocol for audit event integrity digests."""

    def compute_event_hash(self, event: NewAuditEvent | AuditEvent) -> str:
        """Compute the digest over the event's canonical fields."""
        ...

    def verify(self, expected_hash: str, actual_hash: str) -> bool:
        """Constant-time comparison of two digests."""
        ...


# Audit service interface
class IAuditService(Protocol):
    """Protocol for building and persisting audit events."""

    def log(self, params: AuditLogParams) -> None:
        """Fire-and-forget: schedule the write, never raise."""

    async def log_sync(self, params: AuditLogParams) -> None:
        """Build and persist the event before returning; never raise on storage errors."""

    def compute_changes(
        self,
        old_value: Mapping[str, Any] | None,
        new_value: Mapping[str, Any] | None,
        resource_type: AuditResourceType | str,
        tracked_fields: Sequence[str] | None = None,
    ) -> list[FieldChange]:
        """Field changes with sensitive fields redacted and PII encrypted."""
        ...

    def decrypt_pii(self, value: str) -> str:
        """Reveal one encrypted value; unchanged when not decryptable."""
        ...

    def decrypt_changes(
        self,
        changes: Sequence[FieldChange] | None,
        resource_type: AuditResourceType | str,
    ) -> list[FieldChange] | None:
        """Reveal the PII fields of a change list."""
        ...
