"""AuditLogReader tests: listing through the port and revealing PII."""

import pytest

from audittrail.application.dtos.audit_event import AuditFilter, AuditLogParams, FieldChange
from audittrail.application.services.audit_service import AuditService
from audittrail.application.services.pii_encryption import is_encrypted
from audittrail.application.use_cases.audit_log import AuditLogReader
from audittrail.domain.exceptions import AuditEventNotFoundException
from audittrail.infrastructure.persistence.repositories import InMemoryAuditEventRepository


@pytest.fixture
async def reader(
    audit_service: AuditService, memory_repo: InMemoryAuditEventRepository
) -> AuditLogReader:
    await audit_service.log_sync(
        AuditLogParams(
            action="update",
            resource_type="user",
            resource_id="u1",
            actor_id=3,
            actor_email="admin@b.com",
            changes=[FieldChange("email", "old@b.com", "new@b.com"), FieldChange("role", "a", "b")],
        )
    )
    return AuditLogReader(memory_repo, audit_service)


async def test_get_event_keeps_ciphertext_by_default(reader: AuditLogReader) -> None:
    event = await reader.get_event(1)
    assert is_encrypted(event.actor_email)
    assert is_encrypted(event.changes[0].new)


async def test_get_event_reveals_pii(reader: AuditLogReader) -> None:
    event = await reader.get_event(1, reveal_pii=True)
    assert event.actor_email == "admin@b.com"
    assert event.actor_ip is None
    assert event.changes == [
        FieldChange("email", "old@b.com", "new@b.com"),
        FieldChange("role", "a", "b"),
    ]


async def test_get_event_missing(reader: AuditLogReader) -> None:
    with pytest.raises(AuditEventNotFoundException) as exc_info:
        await reader.get_event(42)
    assert exc_info.value.details == {"event_id": 42}


async def test_list_and_history(reader: AuditLogReader) -> None:
    [listed] = await reader.list_events(AuditFilter(actor_id=3), reveal_pii=True)
    assert listed.actor_email == "admin@b.com"
    [history] = await reader.resource_history("user", "u1")
    assert is_encrypted(history.actor_email)
    assert await reader.count_events() == 1


async def test_verify_event(reader: AuditLogReader) -> None:
    assert await reader.verify_event(1) is True
    assert await reader.verify_event(2) is False
