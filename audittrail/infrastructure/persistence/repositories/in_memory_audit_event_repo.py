"""In-process audit event store (tests, local runs without DATABASE_URL).

Same contract as AuditEventRepository: append-only, hash computed on create,
ids assigned from a monotonic counter.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime

from audittrail.application.dtos.audit_event import (
    AuditEvent,
    AuditFilter,
    AuditQueryOptions,
    NewAuditEvent,
)
from audittrail.application.interfaces.services import IHashService
from audittrail.application.services.hash_service import HashService
from audittrail.shared.enums import AuditAction, AuditResourceType, enum_value
from audittrail.shared.telemetry.logging import get_logger
from audittrail.shared.utils.datetime import days_ago_utc, ensure_utc, utc_now

logger = get_logger(__name__)


def _matches(event: AuditEvent, filters: AuditFilter) -> bool:
    if filters.actor_id is not None and event.actor_id != filters.actor_id:
        return False
    if filters.action is not None and event.action != enum_value(filters.action):
        return False
    if filters.resource_type is not None and event.resource_type != enum_value(
        filters.resource_type
    ):
        return False
    if filters.resource_id is not None and event.resource_id != filters.resource_id:
        return False
    timestamp = ensure_utc(event.timestamp)
    if filters.start_date is not None and timestamp < ensure_utc(filters.start_date):
        return False
    if filters.end_date is not None and timestamp > ensure_utc(filters.end_date):
        return False
    return True


def _apply_options(events: list[AuditEvent], options: AuditQueryOptions) -> list[AuditEvent]:
    if options.order_by == "id":
        events.sort(key=lambda e: e.id, reverse=options.order_dir == "desc")
    else:
        events.sort(
            key=lambda e: (ensure_utc(e.timestamp), e.id), reverse=options.order_dir == "desc"
        )
    start = options.offset or 0
    end = start + options.limit if options.limit is not None else None
    return events[start:end]


class InMemoryAuditEventRepository:
    """Append-only audit event store held in a dict keyed by id."""

    def __init__(self, hash_service: IHashService | None = None) -> None:
        self.hash_service = hash_service or HashService()
        self._events: dict[int, AuditEvent] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    def _append(self, event: NewAuditEvent) -> AuditEvent:
        stored = AuditEvent(
            id=self._next_id,
            timestamp=event.timestamp,
            actor_id=event.actor_id,
            actor_type=enum_value(event.actor_type),
            actor_email=event.actor_email,
            actor_ip=event.actor_ip,
            actor_device=event.actor_device,
            action=enum_value(event.action),
            resource_type=enum_value(event.resource_type),
            resource_id=event.resource_id,
            resource_name=event.resource_name,
            changes=list(event.changes) if event.changes is not None else None,
            metadata=dict(event.metadata) if event.metadata is not None else None,
            event_hash=self.hash_service.compute_event_hash(event),
            created_at=utc_now(),
        )
        self._events[stored.id] = stored
        self._next_id += 1
        return stored

    async def create(self, event: NewAuditEvent) -> AuditEvent:
        async with self._lock:
            return self._append(event)

    async def create_batch(self, events: Sequence[NewAuditEvent]) -> None:
        async with self._lock:
            for event in events:
                self._append(event)

    async def get_by_id(self, event_id: int) -> AuditEvent | None:
        return self._events.get(event_id)

    async def get_by_resource(
        self,
        resource_type: AuditResourceType | str,
        resource_id: str,
        options: AuditQueryOptions | None = None,
    ) -> list[AuditEvent]:
        return await self.query(
            AuditFilter(
                resource_type=resource_type,
                resource_id=resource_id,
                options=options or AuditQueryOptions(),
            )
        )

    async def get_by_actor(
        self, actor_id: int, options: AuditQueryOptions | None = None
    ) -> list[AuditEvent]:
        return await self.query(
            AuditFilter(actor_id=actor_id, options=options or AuditQueryOptions())
        )

    async def get_by_action(
        self, action: AuditAction | str, options: AuditQueryOptions | None = None
    ) -> list[AuditEvent]:
        return await self.query(AuditFilter(action=action, options=options or AuditQueryOptions()))

    async def get_by_date_range(
        self,
        start_date: datetime,
        end_date: datetime,
        options: AuditQueryOptions | None = None,
    ) -> list[AuditEvent]:
        return await self.query(
            AuditFilter(
                start_date=start_date,
                end_date=end_date,
                options=options or AuditQueryOptions(),
            )
        )

    async def query(self, filters: AuditFilter) -> list[AuditEvent]:
        matching = [e for e in self._events.values() if _matches(e, filters)]
        return _apply_options(matching, filters.options)

    async def count(self, filters: AuditFilter | None = None) -> int:
        if filters is None:
            return len(self._events)
        return sum(1 for e in self._events.values() if _matches(e, filters))

    async def verify_event_integrity(self, event_id: int) -> bool:
        event = self._events.get(event_id)
        if event is None:
            return False
        recomputed = self.hash_service.compute_event_hash(event)
        valid = self.hash_service.verify(event.event_hash, recomputed)
        if not valid:
            logger.warning("Audit event %s failed integrity verification", event_id)
        return valid

    async def delete_older_than(self, days: int) -> int:
        cutoff = days_ago_utc(days)
        async with self._lock:
            expired = [
                event_id
                for event_id, event in self._events.items()
                if ensure_utc(event.timestamp) < cutoff
            ]
            for event_id in expired:
                del self._events[event_id]
        logger.info("Deleted %s audit events older than %s days", len(expired), days)
        return len(expired)
