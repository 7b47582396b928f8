"""API-specific test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from showops.api.deps import reset_transition_scheduler


@pytest.fixture
async def api_client(sql_engine, session_factory):
    """In-process client over the app with the test database wired in.

    The lifespan is not run: the global session factory is pointed at the
    SQLite engine directly, and Redis (run lease) stays uninitialized.
    """
    import showops.db.base as db_mod
    from showops.main import app

    db_mod._engine = sql_engine
    db_mod._session_factory = session_factory
    reset_transition_scheduler()

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    reset_transition_scheduler()
    db_mod._engine = None
    db_mod._session_factory = None
