"""Composition root tests: init_audit wiring and shutdown."""

import logging

import pytest

from audittrail.application.dtos.audit_event import AuditLogParams
from audittrail.application.services.audit_service import (
    audit_log,
    get_audit_service,
    get_audit_service_or_none,
)
from audittrail.core.bootstrap import build_repository, init_audit, shutdown_audit
from audittrail.core.config import Settings
from audittrail.infrastructure.persistence.repositories import InMemoryAuditEventRepository


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ("AUDIT_ENABLED", "AUDIT_PII_ENCRYPTION_KEY", "DATABASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_init_installs_global_service(pii_key_b64: str) -> None:
    repo = InMemoryAuditEventRepository()
    service = init_audit(Settings(_env_file=None, audit_pii_encryption_key=pii_key_b64), repo)
    assert get_audit_service() is service
    assert service.repository is repo
    assert service.encryptor.is_configured
    assert service.enabled is True
    # default entity fields are registered
    assert service.encryptor.registry.is_pii("user", "username")


def test_init_without_key_warns(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        service = init_audit(Settings(_env_file=None), InMemoryAuditEventRepository())
    assert not service.encryptor.is_configured
    assert "AUDIT_PII_ENCRYPTION_KEY" in caplog.text


def test_init_respects_audit_enabled() -> None:
    service = init_audit(
        Settings(_env_file=None, audit_enabled=False), InMemoryAuditEventRepository()
    )
    assert service.enabled is False


def test_build_repository_in_memory_without_database_url() -> None:
    assert isinstance(build_repository(Settings(_env_file=None)), InMemoryAuditEventRepository)


async def test_shutdown_drains_and_uninstalls() -> None:
    repo = InMemoryAuditEventRepository()
    init_audit(Settings(_env_file=None), repo)
    audit_log(AuditLogParams(action="login", resource_type="session", resource_id="s1"))
    await shutdown_audit()
    assert await repo.count() == 1
    assert get_audit_service_or_none() is None


async def test_shutdown_without_service() -> None:
    await shutdown_audit()
    assert get_audit_service_or_none() is None


async def test_lifespan_wires_and_tears_down() -> None:
    from starlette.applications import Starlette

    from audittrail.core.lifespan import create_lifespan

    app = Starlette(lifespan=create_lifespan)
    async with create_lifespan(app):
        assert app.state.audit_service is get_audit_service()
        assert isinstance(app.state.audit_service.repository, InMemoryAuditEventRepository)
    assert app.state.audit_service is None
    assert get_audit_service_or_none() is None
