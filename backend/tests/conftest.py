"""Pytest configuration and fixtures for the configuration service tests.

Provides:
  - memory_store   → transactional in-memory store (orchestrator tests)
  - sqlite_store   → SqlConfigurationStore over in-memory SQLite (repository tests)
  - orchestrator   → ConfigurationOrchestrator over memory_store
  - client         → httpx AsyncClient against the FastAPI app
"""

import asyncio
import copy
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from configsvc.database import create_tables
from configsvc.main import app
from configsvc.repositories.configuration import CLIENT, SqlConfigurationStore
from configsvc.routers.configuration import get_orchestrator
from configsvc.schemas.configuration import ClientConfig, GlobalConfig
from configsvc.services.configuration import ConfigurationOrchestrator


# ── In-memory store ──────────────────────────────────────────────

class _MemoryState:
    def __init__(self):
        self.clients: list[ClientConfig] = []
        self.globals: list[GlobalConfig] = []
        self.next_client_id = 1
        self.next_global_id = 1


class MemoryRepository:
    """Same contract as ConfigurationRepository, over plain lists."""

    def __init__(self, state: _MemoryState, store: "MemoryConfigurationStore"):
        self.state = state
        self.store = store

    def _maybe_fail(self, method: str) -> None:
        if method in self.store.fail_on:
            raise OperationalError(f"{method}", {}, Exception(f"{method} unavailable"))

    async def delete(self, kind, key) -> int:
        self._maybe_fail("delete")
        if kind is CLIENT:
            rows = 0
            for c in self.state.clients:
                if c.tenant_key == key and not c.is_deleted:
                    c.is_deleted = True
                    rows += 1
            return rows
        before = len(self.state.globals)
        self.state.globals = [g for g in self.state.globals if g.config_global_id != key]
        return before - len(self.state.globals)

    async def list_clients(self, include_deleted: bool = False) -> list[ClientConfig]:
        self._maybe_fail("list_clients")
        return [
            c.model_copy() for c in self.state.clients
            if include_deleted or not c.is_deleted
        ]

    async def find_client_by_key(self, tenant_key: str) -> ClientConfig | None:
        self._maybe_fail("find_client_by_key")
        for c in self.state.clients:
            if c.tenant_key == tenant_key and not c.is_deleted:
                return c.model_copy()
        return None

    async def insert_client(self, record: ClientConfig) -> ClientConfig:
        self._maybe_fail("insert_client")
        if any(c.tenant_key == record.tenant_key and not c.is_deleted for c in self.state.clients):
            raise IntegrityError(
                "INSERT INTO configuration_client", {},
                Exception("UNIQUE constraint failed: configuration_client.tenant_key"),
            )
        row = record.model_copy(update={"config_client_id": self.state.next_client_id})
        self.state.next_client_id += 1
        self.state.clients.append(row)
        return row.model_copy()

    async def update_client(self, record: ClientConfig) -> int:
        self._maybe_fail("update_client")
        for i, c in enumerate(self.state.clients):
            if c.client_uuid == record.client_uuid:
                self.state.clients[i] = c.model_copy(update={
                    "tenant_key": record.tenant_key,
                    "language_id": record.language_id,
                    "app_name": record.app_name,
                    "report_title": record.report_title,
                })
                return 1
        return 0

    async def soft_delete_clients(self, tenant_key: str) -> int:
        return await self.delete(CLIENT, tenant_key)

    async def list_globals(self, for_update: bool = False) -> list[GlobalConfig]:
        self._maybe_fail("list_globals")
        return [g.model_copy() for g in sorted(self.state.globals, key=lambda g: g.config_global_id)]

    async def find_global(self, config_global_id: int) -> GlobalConfig | None:
        self._maybe_fail("find_global")
        for g in self.state.globals:
            if g.config_global_id == config_global_id:
                return g.model_copy()
        return None

    async def find_active_global(self) -> GlobalConfig | None:
        self._maybe_fail("find_active_global")
        for g in sorted(self.state.globals, key=lambda g: g.config_global_id):
            if g.is_active:
                return g.model_copy()
        return None

    async def insert_global(self, record: GlobalConfig) -> GlobalConfig:
        self._maybe_fail("insert_global")
        row = record.model_copy(update={"config_global_id": self.state.next_global_id})
        self.state.next_global_id += 1
        self.state.globals.append(row)
        return row.model_copy()

    async def update_global(self, record: GlobalConfig, activate: bool = False) -> int:
        self._maybe_fail("update_global")
        for i, g in enumerate(self.state.globals):
            if g.config_global_id == record.config_global_id:
                self.state.globals[i] = record.model_copy(
                    update={"is_active": True if activate else g.is_active}
                )
                return 1
        return 0

    async def delete_global(self, config_global_id: int) -> int:
        return await self.delete(None, config_global_id)

    async def deactivate_globals_except(self, config_global_id: int) -> int:
        self._maybe_fail("deactivate_globals_except")
        rows = 0
        for g in self.state.globals:
            if g.is_active and g.config_global_id != config_global_id:
                g.is_active = False
                rows += 1
        return rows


class MemoryConfigurationStore:
    """Copy-on-begin transactions: changes land only if the block succeeds."""

    def __init__(self):
        self.state = _MemoryState()
        self.fail_on: set[str] = set()
        self.delay: float = 0.0
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def transaction(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        working = copy.deepcopy(self.state)
        try:
            yield MemoryRepository(working, self)
        except BaseException:
            self.rollbacks += 1
            raise
        self.state = working
        self.commits += 1

    # Seeding helpers, bypassing the orchestrator
    def seed_global(self, config_global_id: int, is_active: bool = False, **fields) -> GlobalConfig:
        record = GlobalConfig(config_global_id=config_global_id, is_active=is_active, **fields)
        self.state.globals.append(record)
        self.state.next_global_id = max(self.state.next_global_id, config_global_id + 1)
        return record

    def seed_client(self, tenant_key: str, is_deleted: bool = False, **fields) -> ClientConfig:
        record = ClientConfig(
            config_client_id=self.state.next_client_id,
            client_uuid=f"00000000-0000-4000-8000-{self.state.next_client_id:012d}",
            tenant_key=tenant_key,
            is_deleted=is_deleted,
            **fields,
        )
        self.state.next_client_id += 1
        self.state.clients.append(record)
        return record

    def active_ids(self) -> list[int]:
        return [g.config_global_id for g in self.state.globals if g.is_active]


@pytest.fixture
def memory_store() -> MemoryConfigurationStore:
    return MemoryConfigurationStore()


@pytest.fixture
def orchestrator(memory_store) -> ConfigurationOrchestrator:
    return ConfigurationOrchestrator(memory_store, timeout=1.0)


# ── SQLite-backed store ──────────────────────────────────────────

@pytest_asyncio.fixture
async def sqlite_engine():
    """In-memory SQLite shared across sessions via StaticPool."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sqlite_session_factory(sqlite_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sqlite_store(sqlite_session_factory) -> SqlConfigurationStore:
    return SqlConfigurationStore(sqlite_session_factory)


# ── API client ───────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(orchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the orchestrator backed by the in-memory store."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
    config.addinivalue_line("markers", "integration: Tests against a real SQL engine")
    config.addinivalue_line("markers", "race: Activation ordering and concurrency tests")
