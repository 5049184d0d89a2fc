"""Retention sweep: deletes events beyond audit_retention_days."""

from unittest.mock import AsyncMock

import pytest

from audittrail.infrastructure.services.audit_retention import purge_expired_audit_events


async def test_uses_explicit_days() -> None:
    repo = AsyncMock()
    repo.delete_older_than.return_value = 3
    assert await purge_expired_audit_events(repo, retention_days=30) == 3
    repo.delete_older_than.assert_awaited_once_with(30)


async def test_defaults_to_settings(monkeypatch) -> None:
    monkeypatch.setenv("AUDIT_RETENTION_DAYS", "90")
    repo = AsyncMock()
    repo.delete_older_than.return_value = 0
    assert await purge_expired_audit_events(repo) == 0
    repo.delete_older_than.assert_awaited_once_with(90)


async def test_default_is_one_year(monkeypatch) -> None:
    monkeypatch.delenv("AUDIT_RETENTION_DAYS", raising=False)
    repo = AsyncMock()
    repo.delete_older_than.return_value = 0
    await purge_expired_audit_events(repo)
    repo.delete_older_than.assert_awaited_once_with(365)


async def test_rejects_non_positive_days() -> None:
    repo = AsyncMock()
    with pytest.raises(ValueError):
        await purge_expired_audit_events(repo, retention_days=0)
    repo.delete_older_than.assert_not_awaited()
