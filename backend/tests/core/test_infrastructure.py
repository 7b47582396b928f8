"""Tests for database, Redis and correlation-id plumbing."""

import pytest
from fakeredis import FakeAsyncRedis
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

import showops.db.base as db_base
import showops.db.redis as db_redis
from showops.db.base import close_db, engine_options, get_session_factory, init_db
from showops.middleware.correlation import correlation_scope, get_correlation_id


class TestEngineOptions:
    def test_postgres_gets_pre_ping(self):
        assert engine_options("postgresql+asyncpg://u:p@db:5432/showops") == {"pool_pre_ping": True}

    def test_in_memory_sqlite_shares_one_connection(self):
        options = engine_options("sqlite+aiosqlite:///:memory:")

        assert options["poolclass"] is StaticPool
        assert options["connect_args"] == {"check_same_thread": False}

    def test_file_sqlite_uses_default_pool(self):
        assert "poolclass" not in engine_options("sqlite+aiosqlite:///./showops.db")


class TestDatabaseLifecycle:
    async def test_init_creates_tables_and_close_resets(self):
        await init_db("sqlite+aiosqlite:///:memory:")
        try:
            async with get_session_factory()() as session:
                count = await session.scalar(text("SELECT count(*) FROM projects"))
            assert count == 0
        finally:
            await close_db()

        assert db_base._engine is None
        with pytest.raises(RuntimeError):
            get_session_factory()


class TestRedis:
    @pytest.fixture
    async def fake_redis(self):
        client = FakeAsyncRedis(decode_responses=True)
        db_redis._redis = client
        yield client
        db_redis._redis = None
        await client.aclose()

    async def test_reachable_when_initialized(self, fake_redis):
        assert db_redis.redis_initialized() is True
        assert await db_redis.redis_reachable() is True

    async def test_unreachable_when_not_initialized(self):
        assert db_redis.redis_initialized() is False
        assert await db_redis.redis_reachable() is False
        with pytest.raises(RuntimeError):
            db_redis.get_redis()


class TestCorrelationScope:
    def test_sets_id_for_the_block_only(self):
        assert get_correlation_id() is None

        with correlation_scope("run-1") as active:
            assert active == "run-1"
            assert get_correlation_id() == "run-1"

        assert get_correlation_id() is None

    def test_keeps_an_existing_request_id(self):
        with correlation_scope("request-7"):
            with correlation_scope("run-2") as active:
                assert active == "request-7"
                assert get_correlation_id() == "request-7"
            assert get_correlation_id() == "request-7"
