"""Pytest configuration and fixtures for audittrail.

Unit tests run against the in-memory audit store. SQL repository tests use
DATABASE_URL when set and an in-memory SQLite database (aiosqlite) otherwise.
"""

import base64
import os

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from audittrail.application.services.audit_service import AuditService, set_global_audit_service
from audittrail.application.services.change_diff import ChangeDiffEngine
from audittrail.application.services.default_pii_fields import register_default_pii_fields
from audittrail.application.services.pii_encryption import PiiEncryptor
from audittrail.application.services.pii_registry import PiiFieldRegistry
from audittrail.core.config import get_settings
from audittrail.infrastructure.persistence.database import Base
from audittrail.infrastructure.persistence.repositories import InMemoryAuditEventRepository

# Fixed 32-byte key so failures are reproducible.
TEST_PII_KEY = bytes(range(32))
TEST_PII_KEY_B64 = base64.b64encode(TEST_PII_KEY).decode("ascii")


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Each test starts without a global audit service and with fresh settings."""
    get_settings.cache_clear()
    set_global_audit_service(None)
    yield
    set_global_audit_service(None)
    get_settings.cache_clear()


@pytest.fixture
def pii_key() -> bytes:
    return TEST_PII_KEY


@pytest.fixture
def pii_key_b64() -> str:
    return TEST_PII_KEY_B64


@pytest.fixture
def registry() -> PiiFieldRegistry:
    """Registry with the built-in entity PII fields."""
    reg = PiiFieldRegistry()
    register_default_pii_fields(reg)
    return reg


@pytest.fixture
def encryptor(registry: PiiFieldRegistry) -> PiiEncryptor:
    """Encryptor with a valid key."""
    return PiiEncryptor(registry, TEST_PII_KEY)


@pytest.fixture
def plain_encryptor(registry: PiiFieldRegistry) -> PiiEncryptor:
    """Encryptor without a key (PII stored as plaintext)."""
    return PiiEncryptor(registry)


@pytest.fixture
def memory_repo() -> InMemoryAuditEventRepository:
    return InMemoryAuditEventRepository()


@pytest.fixture
def audit_service(
    memory_repo: InMemoryAuditEventRepository, encryptor: PiiEncryptor
) -> AuditService:
    """Keyed audit service writing to the in-memory store."""
    return AuditService(memory_repo, encryptor, ChangeDiffEngine(encryptor))


@pytest.fixture
async def sql_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory on a fresh audit_events table. Dropped after the test.

    Uses DATABASE_URL when set (e.g. postgresql+asyncpg://...), otherwise an
    in-memory SQLite database shared through a single connection.
    """
    url = os.environ.get("DATABASE_URL")
    if url:
        engine = create_async_engine(url)
    else:
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
