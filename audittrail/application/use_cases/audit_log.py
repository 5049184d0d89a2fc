"""Audit log read use case: list stored events and reveal PII for authorized viewers.

Stored events carry encrypted actor fields and change values. Callers that
passed an authorization check request reveal_pii=True; everyone else sees the
ciphertext. Authorization itself is the caller's concern.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from audittrail.application.dtos.audit_event import AuditEvent, AuditFilter, AuditQueryOptions
from audittrail.domain.exceptions import AuditEventNotFoundException

if TYPE_CHECKING:
    from audittrail.application.interfaces.repositories import IAuditEventRepository
    from audittrail.application.interfaces.services import IAuditService
    from audittrail.shared.enums import AuditResourceType


class AuditLogReader:
    """Reads the audit trail through the repository port."""

    def __init__(
        self,
        audit_repo: "IAuditEventRepository",
        audit_service: "IAuditService",
    ) -> None:
        self.audit_repo = audit_repo
        self.audit_service = audit_service

    def reveal(self, event: AuditEvent) -> AuditEvent:
        """Copy of event with actor fields and PII change values decrypted."""
        return replace(
            event,
            actor_email=self._reveal_value(event.actor_email),
            actor_ip=self._reveal_value(event.actor_ip),
            actor_device=self._reveal_value(event.actor_device),
            changes=self.audit_service.decrypt_changes(event.changes, event.resource_type),
        )

    def _reveal_value(self, value: str | None) -> str | None:
        if value is None:
            return None
        return self.audit_service.decrypt_pii(value)

    def _maybe_reveal(self, events: list[AuditEvent], reveal_pii: bool) -> list[AuditEvent]:
        if not reveal_pii:
            return events
        return [self.reveal(e) for e in events]

    async def get_event(self, event_id: int, *, reveal_pii: bool = False) -> AuditEvent:
        """Return one event.

        Raises:
            AuditEventNotFoundException: If no event has this id.
        """
        event = await self.audit_repo.get_by_id(event_id)
        if event is None:
            raise AuditEventNotFoundException(event_id)
        return self.reveal(event) if reveal_pii else event

    async def list_events(
        self, filters: AuditFilter, *, reveal_pii: bool = False
    ) -> list[AuditEvent]:
        """Events matching filters (newest first unless filters.options says otherwise)."""
        events = await self.audit_repo.query(filters)
        return self._maybe_reveal(events, reveal_pii)

    async def resource_history(
        self,
        resource_type: "AuditResourceType | str",
        resource_id: str,
        *,
        options: AuditQueryOptions | None = None,
        reveal_pii: bool = False,
    ) -> list[AuditEvent]:
        """Every recorded action on one resource."""
        events = await self.audit_repo.get_by_resource(resource_type, resource_id, options)
        return self._maybe_reveal(events, reveal_pii)

    async def count_events(self, filters: AuditFilter | None = None) -> int:
        return await self.audit_repo.count(filters)

    async def verify_event(self, event_id: int) -> bool:
        """True when the stored event still matches its integrity hash."""
        return await self.audit_repo.verify_event_integrity(event_id)
