"""InMemoryAuditEventRepository tests: query semantics shared with the SQL store."""

from dataclasses import replace
from datetime import timedelta

import pytest

from audittrail.application.dtos.audit_event import (
    AuditFilter,
    AuditQueryOptions,
    FieldChange,
    NewAuditEvent,
)
from audittrail.infrastructure.persistence.repositories import InMemoryAuditEventRepository
from audittrail.shared.utils.datetime import utc_now


def _new_event(
    *,
    resource_id: str = "d1",
    action: str = "update",
    actor_id: int | None = 1,
    age_days: float = 0,
    resource_type: str = "doc",
) -> NewAuditEvent:
    return NewAuditEvent(
        timestamp=utc_now() - timedelta(days=age_days),
        actor_id=actor_id,
        actor_type="user",
        actor_email=None,
        actor_ip=None,
        actor_device=None,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=None,
        changes=[FieldChange("title", "A", "B")],
        metadata=None,
    )


@pytest.fixture
async def seeded(memory_repo: InMemoryAuditEventRepository) -> InMemoryAuditEventRepository:
    await memory_repo.create_batch(
        [
            _new_event(resource_id="d1", action="create", actor_id=1, age_days=3),
            _new_event(resource_id="d1", action="update", actor_id=2, age_days=1.5),
            _new_event(resource_id="d2", action="update", actor_id=1, age_days=1),
            _new_event(resource_id="u1", action="login", actor_id=1, resource_type="user"),
        ]
    )
    return memory_repo


async def test_create_assigns_id_and_hash(memory_repo: InMemoryAuditEventRepository) -> None:
    first = await memory_repo.create(_new_event())
    second = await memory_repo.create(_new_event())
    assert (first.id, second.id) == (1, 2)
    assert len(first.event_hash) == 64
    assert first.created_at is not None
    assert await memory_repo.get_by_id(1) == first
    assert await memory_repo.get_by_id(99) is None


async def test_get_by_resource_newest_first(seeded: InMemoryAuditEventRepository) -> None:
    events = await seeded.get_by_resource("doc", "d1")
    assert [e.action for e in events] == ["update", "create"]


async def test_order_and_paging(seeded: InMemoryAuditEventRepository) -> None:
    asc = await seeded.get_by_actor(1, AuditQueryOptions(order_dir="asc"))
    assert [e.resource_id for e in asc] == ["d1", "d2", "u1"]
    page = await seeded.get_by_actor(1, AuditQueryOptions(limit=1, offset=1))
    assert [e.resource_id for e in page] == ["d2"]
    by_id = await seeded.query(AuditFilter(options=AuditQueryOptions(order_by="id", order_dir="desc")))
    assert [e.id for e in by_id] == [4, 3, 2, 1]


async def test_get_by_action_and_date_range(seeded: InMemoryAuditEventRepository) -> None:
    assert len(await seeded.get_by_action("update")) == 2
    now = utc_now()
    recent = await seeded.get_by_date_range(now - timedelta(days=2, hours=12), now)
    assert {e.resource_id for e in recent} == {"d1", "d2", "u1"}
    assert len(recent) == 3


async def test_query_and_count_combine_filters(seeded: InMemoryAuditEventRepository) -> None:
    filters = AuditFilter(actor_id=1, resource_type="doc")
    assert [e.resource_id for e in await seeded.query(filters)] == ["d2", "d1"]
    assert await seeded.count(filters) == 2
    assert await seeded.count() == 4
    assert await seeded.count(AuditFilter(actor_id=1, options=AuditQueryOptions(limit=1))) == 3


async def test_verify_event_integrity(seeded: InMemoryAuditEventRepository) -> None:
    assert await seeded.verify_event_integrity(1) is True
    assert await seeded.verify_event_integrity(404) is False
    seeded._events[1] = replace(seeded._events[1], changes=[FieldChange("title", "A", "Z")])
    assert await seeded.verify_event_integrity(1) is False


async def test_delete_older_than(seeded: InMemoryAuditEventRepository) -> None:
    deleted = await seeded.delete_older_than(2)
    assert deleted == 1
    assert await seeded.count() == 3
    assert await seeded.get_by_id(1) is None
