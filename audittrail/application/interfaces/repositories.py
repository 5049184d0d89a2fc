"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from audittrail.application.dtos.audit_event import (
        AuditEvent,
        AuditFilter,
        AuditQueryOptions,
        NewAuditEvent,
    )
    from audittrail.shared.enums import AuditAction, AuditResourceType


# Audit event store interface
class IAuditEventRepository(Protocol):
    """Append-only, tamper-evident audit event store."""

    async def create(self, event: NewAuditEvent) -> AuditEvent:
        """Persist one event (computing its event_hash); return the stored record."""
        ...

    async def create_batch(self, events: Sequence[NewAuditEvent]) -> None:
        """Persist several events in one write."""
        ...

    async def get_by_id(self, event_id: int) -> AuditEvent | None:
        """Return one event or None."""
        ...

    async def get_by_resource(
        self,
        resource_type: AuditResourceType | str,
        resource_id: str,
        options: AuditQueryOptions | None = None,
    ) -> list[AuditEvent]:
        """Events for one resource."""
        ...

    async def get_by_actor(
        self, actor_id: int, options: AuditQueryOptions | None = None
    ) -> list[AuditEvent]:
        """Events performed by one actor."""
        ...

    async def get_by_action(
        self, action: AuditAction | str, options: AuditQueryOptions | None = None
    ) -> list[AuditEvent]:
        """Events with one action verb."""
        ...

    async def get_by_date_range(
        self,
        start_date: datetime,
        end_date: datetime,
        options: AuditQueryOptions | None = None,
    ) -> list[AuditEvent]:
        """Events with start_date <= timestamp <= end_date."""
        ...

    async def query(self, filters: AuditFilter) -> list[AuditEvent]:
        """Events matching every set filter."""
        ...

    async def count(self, filters: AuditFilter | None = None) -> int:
        """Number of events matching every set filter (paging ignored)."""
        ...

    async def verify_event_integrity(self, event_id: int) -> bool:
        """Recompute the event hash and compare; False if missing or tampered."""
        ...

    async def delete_older_than(self, days: int) -> int:
        """Retention sweep: delete events older than `days`; return how many."""
        ...
