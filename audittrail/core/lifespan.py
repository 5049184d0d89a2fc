"""ASGI lifespan: audit startup and shutdown.

Single place for startup/shutdown wiring. Pass to Starlette(lifespan=...);
no business logic here.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from audittrail.core.bootstrap import init_audit, shutdown_audit
from audittrail.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: Any) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: audit service (store, PII encryption). Shutdown: drain pending
    audit writes, then SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    app.state.audit_service = init_audit(settings)

    yield

    # ---- Shutdown ----
    await shutdown_audit()
    app.state.audit_service = None

    if settings.database_url:
        from audittrail.infrastructure.persistence.database import dispose_engine

        await dispose_engine()
