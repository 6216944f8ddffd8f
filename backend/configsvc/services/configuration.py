"""Configuration orchestrator — invariant-preserving operations over the store.

Every operation:
  - runs as one store transaction (committed before the call returns)
  - is bounded by a timeout: the smaller of the caller's deadline and
    ``settings.context_timeout_seconds``.  On expiry the in-flight store
    work is cancelled, its transaction rolled back, and StoreTimeoutError
    raised.
  - translates SQLAlchemy failures into StoreError (cause preserved)

The only local recovery is the get_active_global fallback to the first
stored record.

Activating a global configuration deactivates every other active record
with one conditional UPDATE inside the same transaction as the target's
update, after row-locking the collection.  The invariant "at most one
active record" therefore holds as soon as activate_global returns, and a
failed deactivation is logged and surfaced instead of dropped.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import nullcontext
from typing import Awaitable, Callable, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from configsvc.config import settings
from configsvc.errors import (
    NoDefaultAvailableError,
    NotFoundError,
    StoreError,
    StoreTimeoutError,
)
from configsvc.repositories.configuration import CLIENT, GLOBAL, ConfigurationRepository
from configsvc.schemas.configuration import (
    ClientConfig,
    ClientConfigIn,
    ClientConfigResponse,
    ConfigurationStatus,
    GlobalConfig,
    GlobalConfigCreate,
    GlobalConfigResponse,
)

logger = logging.getLogger("configsvc.orchestrator")

T = TypeVar("T")


class ConfigurationStore(Protocol):
    """Anything that hands out a transaction-scoped repository."""

    def transaction(self):  # -> AsyncContextManager[ConfigurationRepository]
        ...


class ConfigurationOrchestrator:
    def __init__(
        self,
        store: ConfigurationStore,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.timeout = timeout if timeout is not None else settings.context_timeout_seconds
        self._activation_lock = asyncio.Lock()

    # ── Plumbing ─────────────────────────────────────────────

    def _effective_timeout(self, deadline: float | None) -> float:
        if deadline is None:
            return self.timeout
        return min(deadline, self.timeout)

    async def _run(
        self,
        operation: str,
        work: Callable[[ConfigurationRepository], Awaitable[T]],
        deadline: float | None = None,
        failed_status: ConfigurationStatus | None = None,
        lock: asyncio.Lock | None = None,
    ) -> T:
        """Run ``work`` in one store transaction under the effective timeout.

        ``lock`` is held around the whole transaction, commit included.
        """
        timeout = self._effective_timeout(deadline)

        async def _in_transaction() -> T:
            async with lock or nullcontext():
                async with self.store.transaction() as repo:
                    return await work(repo)

        try:
            return await asyncio.wait_for(_in_transaction(), timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("%s timed out after %.3fs", operation, timeout)
            raise StoreTimeoutError(operation, timeout, status=failed_status) from exc
        except SQLAlchemyError as exc:
            logger.error("%s failed in store: %s", operation, exc)
            raise StoreError(f"{operation} failed: {exc}", status=failed_status) from exc

    # ── Client configuration ─────────────────────────────────

    async def list_clients(self, deadline: float | None = None) -> ClientConfigResponse:
        """All live client configurations; NotFoundError when there are none."""
        async def work(repo: ConfigurationRepository) -> list[ClientConfig]:
            return await repo.list_clients()

        clients = await self._run("list_clients", work, deadline)
        if not clients:
            raise NotFoundError("Client configuration", "any")
        return ClientConfigResponse(clients=clients)

    async def get_client_by_key(
        self, tenant_key: str, deadline: float | None = None
    ) -> ClientConfigResponse:
        async def work(repo: ConfigurationRepository) -> ClientConfig | None:
            return await repo.find_client_by_key(tenant_key)

        client = await self._run("get_client_by_key", work, deadline)
        if client is None:
            raise NotFoundError("Client configuration", tenant_key)
        return ClientConfigResponse(client=client)

    async def add_client(
        self, body: ClientConfigIn, deadline: float | None = None
    ) -> ClientConfigResponse:
        """Persist a new client configuration under a freshly generated UUID4."""
        record = ClientConfig(
            **body.model_dump(include=set(ClientConfigIn.model_fields)),
            client_uuid=str(uuid.uuid4()),
            is_deleted=False,
        )

        async def work(repo: ConfigurationRepository) -> ClientConfig:
            return await repo.insert_client(record)

        created = await self._run(
            "add_client", work, deadline, failed_status=ConfigurationStatus(created=False)
        )
        logger.info("Created client configuration %s for %s", created.client_uuid, created.tenant_key)
        return ClientConfigResponse(client=created, status=ConfigurationStatus(created=True))

    async def update_client(
        self, record: ClientConfig, deadline: float | None = None
    ) -> ClientConfigResponse:
        failed = ConfigurationStatus(updated=False)

        async def work(repo: ConfigurationRepository) -> int:
            return await repo.update_client(record)

        if not record.client_uuid:
            raise NotFoundError("Client configuration", record.client_uuid, status=failed)
        rows = await self._run("update_client", work, deadline, failed_status=failed)
        if rows == 0:
            raise NotFoundError("Client configuration", record.client_uuid, status=failed)
        return ClientConfigResponse(status=ConfigurationStatus(updated=True))

    async def delete_clients_by_key(
        self, tenant_key: str, deadline: float | None = None
    ) -> ClientConfigResponse:
        """Soft-delete every live client configuration for ``tenant_key``."""
        failed = ConfigurationStatus(deleted=False)

        async def work(repo: ConfigurationRepository) -> int:
            return await repo.delete(CLIENT, tenant_key)

        rows = await self._run("delete_clients_by_key", work, deadline, failed_status=failed)
        if rows == 0:
            raise NotFoundError("Client configuration", tenant_key, status=failed)
        logger.info("Soft-deleted %d client configuration(s) for %s", rows, tenant_key)
        return ClientConfigResponse(status=ConfigurationStatus(deleted=True))

    # ── Global configuration ─────────────────────────────────

    async def list_globals(self, deadline: float | None = None) -> GlobalConfigResponse:
        async def work(repo: ConfigurationRepository) -> list[GlobalConfig]:
            return await repo.list_globals()

        globals_ = await self._run("list_globals", work, deadline)
        if not globals_:
            raise NotFoundError("Global configuration", "any")
        return GlobalConfigResponse(globals=globals_)

    async def get_global(
        self, config_global_id: int, deadline: float | None = None
    ) -> GlobalConfigResponse:
        async def work(repo: ConfigurationRepository) -> GlobalConfig | None:
            return await repo.find_global(config_global_id)

        found = await self._run("get_global", work, deadline)
        if found is None:
            raise NotFoundError("Global configuration", config_global_id)
        return GlobalConfigResponse(global_config=found)

    async def add_global(
        self, record: GlobalConfigCreate, deadline: float | None = None
    ) -> GlobalConfigResponse:
        """Persist a global configuration as given (inactive unless set)."""
        to_insert = GlobalConfig(**record.model_dump())

        async def work(repo: ConfigurationRepository) -> GlobalConfig:
            return await repo.insert_global(to_insert)

        created = await self._run(
            "add_global", work, deadline, failed_status=ConfigurationStatus(created=False)
        )
        return GlobalConfigResponse(
            global_config=created, status=ConfigurationStatus(created=True)
        )

    async def update_global(
        self, record: GlobalConfig, deadline: float | None = None
    ) -> GlobalConfigResponse:
        """Write settings by id; ``is_active`` is left as stored."""
        failed = ConfigurationStatus(updated=False)

        async def work(repo: ConfigurationRepository) -> int:
            return await repo.update_global(record)

        rows = await self._run("update_global", work, deadline, failed_status=failed)
        if rows == 0:
            raise NotFoundError("Global configuration", record.config_global_id, status=failed)
        return GlobalConfigResponse(status=ConfigurationStatus(updated=True))

    async def delete_global(
        self, config_global_id: int, deadline: float | None = None
    ) -> GlobalConfigResponse:
        failed = ConfigurationStatus(deleted=False)

        async def work(repo: ConfigurationRepository) -> int:
            return await repo.delete(GLOBAL, config_global_id)

        rows = await self._run("delete_global", work, deadline, failed_status=failed)
        if rows == 0:
            raise NotFoundError("Global configuration", config_global_id, status=failed)
        logger.info("Deleted global configuration %s", config_global_id)
        return GlobalConfigResponse(status=ConfigurationStatus(deleted=True))

    async def get_active_global(self, deadline: float | None = None) -> GlobalConfigResponse:
        """The active global configuration, or the first stored one.

        The fallback record is returned as-is; its ``is_active`` flag is not
        written back.  Raises NoDefaultAvailableError when the collection is
        empty or cannot be read.
        """
        async def work(repo: ConfigurationRepository) -> GlobalConfig:
            active = await repo.find_active_global()
            if active is not None:
                return active

            try:
                everything = await repo.list_globals()
            except SQLAlchemyError as exc:
                logger.error("No active global configuration and fallback read failed: %s", exc)
                raise NoDefaultAvailableError() from exc
            if not everything:
                logger.error("No global configuration stored; cannot provide a default")
                raise NoDefaultAvailableError()

            logger.info(
                "No active global configuration; falling back to %s",
                everything[0].config_global_id,
            )
            return everything[0]

        effective = await self._run("get_active_global", work, deadline)
        return GlobalConfigResponse(global_config=effective)

    async def activate_global(
        self,
        record: GlobalConfig,
        deadline: float | None = None,
        fields: set[str] | None = None,
    ) -> GlobalConfigResponse:
        """Make ``record`` the single active global configuration.

        With ``fields`` given, only those settings are taken from ``record``
        and the rest are kept from the stored row.

        Steps, in one transaction:
          1. force ``record.is_active = True``
          2. read (and row-lock) the full collection
          3. clear ``is_active`` on every other active record
          4. persist the target; zero rows matched rolls back step 3
        """
        failed = ConfigurationStatus(updated=False)

        async def work(repo: ConfigurationRepository) -> GlobalConfig:
            snapshot = await repo.list_globals(for_update=True)
            target = record.model_copy(update={"is_active": True})
            if fields is not None:
                stored = next(
                    (g for g in snapshot if g.config_global_id == record.config_global_id),
                    None,
                )
                if stored is None:
                    raise NotFoundError("Global configuration", record.config_global_id, status=failed)
                target = stored.model_copy(
                    update={**{f: getattr(record, f) for f in fields}, "is_active": True}
                )
            others = [
                g.config_global_id for g in snapshot
                if g.is_active and g.config_global_id != target.config_global_id
            ]

            try:
                deactivated = await repo.deactivate_globals_except(target.config_global_id)
            except SQLAlchemyError:
                logger.exception(
                    "Deactivating global configurations %s failed while activating %s",
                    others, target.config_global_id,
                )
                raise

            rows = await repo.update_global(target, activate=True)
            if rows == 0:
                raise NotFoundError("Global configuration", target.config_global_id, status=failed)

            logger.info(
                "Activated global configuration %s (deactivated %d: %s)",
                target.config_global_id, deactivated, others,
            )
            return target

        activated = await self._run(
            "activate_global", work, deadline,
            failed_status=failed, lock=self._activation_lock,
        )
        return GlobalConfigResponse(
            global_config=activated, status=ConfigurationStatus(updated=True)
        )
