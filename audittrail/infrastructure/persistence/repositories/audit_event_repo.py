"""Audit event repository (SQLAlchemy). Append-only; implements IAuditEventRepository.

The audit service is long-lived while sessions are per unit of work, so the
repository takes a session factory and runs each call in its own short
transaction. An audit write never joins (or rolls back with) the business
transaction that triggered it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from audittrail.application.dtos.audit_event import (
    AuditEvent,
    AuditFilter,
    AuditQueryOptions,
    FieldChange,
    NewAuditEvent,
)
from audittrail.application.interfaces.services import IHashService
from audittrail.application.services.hash_service import HashService
from audittrail.infrastructure.persistence.models.audit_event import AuditEventRecord
from audittrail.shared.enums import AuditAction, AuditResourceType, enum_value
from audittrail.shared.telemetry.logging import get_logger
from audittrail.shared.utils.datetime import days_ago_utc

logger = get_logger(__name__)


def _orm_to_result(row: AuditEventRecord) -> AuditEvent:
    """Map ORM to application DTO."""
    return AuditEvent(
        id=row.id,
        timestamp=row.timestamp,
        actor_id=row.actor_id,
        actor_type=row.actor_type,
        actor_email=row.actor_email,
        actor_ip=row.actor_ip,
        actor_device=row.actor_device,
        action=row.action,
        resource_type=row.resource_type,
        resource_id=row.resource_id,
        resource_name=row.resource_name,
        changes=(
            [FieldChange.from_dict(c) for c in row.changes] if row.changes is not None else None
        ),
        metadata=row.event_metadata,
        event_hash=row.event_hash,
        created_at=row.created_at,
    )


def _conditions(filters: AuditFilter) -> list[Any]:
    conditions: list[Any] = []
    if filters.actor_id is not None:
        conditions.append(AuditEventRecord.actor_id == filters.actor_id)
    if filters.action is not None:
        conditions.append(AuditEventRecord.action == enum_value(filters.action))
    if filters.resource_type is not None:
        conditions.append(AuditEventRecord.resource_type == enum_value(filters.resource_type))
    if filters.resource_id is not None:
        conditions.append(AuditEventRecord.resource_id == filters.resource_id)
    if filters.start_date is not None:
        conditions.append(AuditEventRecord.timestamp >= filters.start_date)
    if filters.end_date is not None:
        conditions.append(AuditEventRecord.timestamp <= filters.end_date)
    return conditions


class AuditEventRepository:
    """Append-only audit event store on the audit_events table. No update."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hash_service: IHashService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.hash_service = hash_service or HashService()

    def _to_row(self, event: NewAuditEvent) -> AuditEventRecord:
        return AuditEventRecord(
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
            changes=[c.to_dict() for c in event.changes] if event.changes is not None else None,
            event_metadata=event.metadata,
            event_hash=self.hash_service.compute_event_hash(event),
        )

    async def create(self, event: NewAuditEvent) -> AuditEvent:
        """Append one audit event; return the stored record."""
        async with self.session_factory() as session:
            async with session.begin():
                row = self._to_row(event)
                session.add(row)
                await session.flush()
                await session.refresh(row)
                return _orm_to_result(row)

    async def create_batch(self, events: Sequence[NewAuditEvent]) -> None:
        """Append several events in one transaction."""
        if not events:
            return
        async with self.session_factory() as session:
            async with session.begin():
                session.add_all([self._to_row(e) for e in events])

    async def get_by_id(self, event_id: int) -> AuditEvent | None:
        async with self.session_factory() as session:
            row = await session.get(AuditEventRecord, event_id)
            return _orm_to_result(row) if row is not None else None

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
        """List events matching every set filter, ordered and paged by filters.options."""
        options = filters.options
        order_column = (
            AuditEventRecord.id if options.order_by == "id" else AuditEventRecord.timestamp
        )
        stmt = select(AuditEventRecord).where(and_(*_conditions(filters))).order_by(
            order_column.asc() if options.order_dir == "asc" else order_column.desc(),
            AuditEventRecord.id.asc() if options.order_dir == "asc" else AuditEventRecord.id.desc(),
        )
        if options.offset is not None:
            stmt = stmt.offset(options.offset)
        if options.limit is not None:
            stmt = stmt.limit(options.limit)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [_orm_to_result(r) for r in result.scalars().all()]

    async def count(self, filters: AuditFilter | None = None) -> int:
        stmt = select(func.count()).select_from(AuditEventRecord)
        conditions = _conditions(filters) if filters is not None else []
        if conditions:
            stmt = stmt.where(and_(*conditions))
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def verify_event_integrity(self, event_id: int) -> bool:
        """Recompute the stored event's hash; False when missing or tampered."""
        event = await self.get_by_id(event_id)
        if event is None:
            return False
        recomputed = self.hash_service.compute_event_hash(event)
        valid = self.hash_service.verify(event.event_hash, recomputed)
        if not valid:
            logger.warning("Audit event %s failed integrity verification", event_id)
        return valid

    async def delete_older_than(self, days: int) -> int:
        """Retention sweep: delete events with timestamp older than `days` ago."""
        cutoff = days_ago_utc(days)
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(AuditEventRecord).where(AuditEventRecord.timestamp < cutoff)
                )
                deleted = int(result.rowcount or 0)
        logger.info("Deleted %s audit events older than %s days", deleted, days)
        return deleted
