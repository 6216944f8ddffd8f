"""SQL store for client and global configuration.

Two layers:
  - ConfigurationRepository  → statements against one AsyncSession
  - SqlConfigurationStore     → unit of work: one session + transaction per
                                orchestrator operation, committed on success,
                                rolled back on error or cancellation

Records crossing this boundary are the pydantic ``ClientConfig`` /
``GlobalConfig`` schemas, never ORM instances, so nothing read here outlives
the transaction that read it.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from configsvc.models.configuration import ConfigurationClient, ConfigurationGlobal
from configsvc.schemas.configuration import ClientConfig, GlobalConfig


# ── Entity kinds ─────────────────────────────────────────────


@dataclass(frozen=True)
class EntityKind:
    """Capabilities of a stored configuration kind."""
    name: str
    model: type
    key_column: str      # column matched by delete(kind, key)
    soft_delete: bool    # flip a flag instead of removing the row
    flag_column: str | None = None


CLIENT = EntityKind(
    name="client configuration",
    model=ConfigurationClient,
    key_column="tenant_key",
    soft_delete=True,
    flag_column="is_deleted",
)

GLOBAL = EntityKind(
    name="global configuration",
    model=ConfigurationGlobal,
    key_column="config_global_id",
    soft_delete=False,
)


CLIENT_MUTABLE_FIELDS = ("tenant_key", "language_id", "app_name", "report_title")
GLOBAL_MUTABLE_FIELDS = (
    "footer_text", "smtp_server", "port", "use_ssl", "use_auth",
    "username", "password",
)


class ConfigurationRepository:
    """Statements for both configuration tables, bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Generic ──────────────────────────────────────────────

    async def delete(self, kind: EntityKind, key) -> int:
        """Delete rows of ``kind`` matching ``key``; returns rows affected.

        Soft-delete kinds only touch rows whose flag is still clear, so a
        repeated delete affects zero rows.
        """
        key_col = getattr(kind.model, kind.key_column)
        if kind.soft_delete:
            flag_col = getattr(kind.model, kind.flag_column)
            stmt = (
                update(kind.model)
                .where(key_col == key, flag_col == False)  # noqa: E712
                .values({kind.flag_column: True})
            )
        else:
            stmt = delete(kind.model).where(key_col == key)
        result = await self.session.execute(stmt)
        return result.rowcount

    # ── Client configuration ─────────────────────────────────

    async def list_clients(self, include_deleted: bool = False) -> list[ClientConfig]:
        query = select(ConfigurationClient)
        if not include_deleted:
            query = query.where(ConfigurationClient.is_deleted == False)  # noqa: E712
        query = query.order_by(ConfigurationClient.config_client_id)
        result = await self.session.execute(query)
        return [ClientConfig.model_validate(c) for c in result.scalars().all()]

    async def find_client_by_key(self, tenant_key: str) -> ClientConfig | None:
        """First live record for ``tenant_key`` by row id, or None."""
        result = await self.session.execute(
            select(ConfigurationClient)
            .where(
                ConfigurationClient.tenant_key == tenant_key,
                ConfigurationClient.is_deleted == False,  # noqa: E712
            )
            .order_by(ConfigurationClient.config_client_id)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return ClientConfig.model_validate(row) if row else None

    async def insert_client(self, record: ClientConfig) -> ClientConfig:
        row = ConfigurationClient(
            client_uuid=record.client_uuid,
            is_deleted=record.is_deleted,
            **{f: getattr(record, f) for f in CLIENT_MUTABLE_FIELDS},
        )
        self.session.add(row)
        await self.session.flush()
        return ClientConfig.model_validate(row)

    async def update_client(self, record: ClientConfig) -> int:
        result = await self.session.execute(
            update(ConfigurationClient)
            .where(ConfigurationClient.client_uuid == record.client_uuid)
            .values({f: getattr(record, f) for f in CLIENT_MUTABLE_FIELDS})
        )
        return result.rowcount

    async def soft_delete_clients(self, tenant_key: str) -> int:
        return await self.delete(CLIENT, tenant_key)

    # ── Global configuration ─────────────────────────────────

    async def list_globals(self, for_update: bool = False) -> list[GlobalConfig]:
        """Full collection in store order (by id).

        ``for_update`` row-locks the collection until the transaction ends
        (ignored by dialects without SELECT ... FOR UPDATE).
        """
        query = select(ConfigurationGlobal).order_by(ConfigurationGlobal.config_global_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return [GlobalConfig.model_validate(g) for g in result.scalars().all()]

    async def find_global(self, config_global_id: int) -> GlobalConfig | None:
        row = await self.session.get(ConfigurationGlobal, config_global_id)
        return GlobalConfig.model_validate(row) if row else None

    async def find_active_global(self) -> GlobalConfig | None:
        result = await self.session.execute(
            select(ConfigurationGlobal)
            .where(ConfigurationGlobal.is_active == True)  # noqa: E712
            .order_by(ConfigurationGlobal.config_global_id)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return GlobalConfig.model_validate(row) if row else None

    async def insert_global(self, record: GlobalConfig) -> GlobalConfig:
        row = ConfigurationGlobal(
            is_active=record.is_active,
            **{f: getattr(record, f) for f in GLOBAL_MUTABLE_FIELDS},
        )
        self.session.add(row)
        await self.session.flush()
        return GlobalConfig.model_validate(row)

    async def update_global(self, record: GlobalConfig, activate: bool = False) -> int:
        """Write the settings of ``record``.

        ``is_active`` is only written (as true) when ``activate`` is set.
        """
        values = {f: getattr(record, f) for f in GLOBAL_MUTABLE_FIELDS}
        if activate:
            values["is_active"] = True
        result = await self.session.execute(
            update(ConfigurationGlobal)
            .where(ConfigurationGlobal.config_global_id == record.config_global_id)
            .values(values)
        )
        return result.rowcount

    async def delete_global(self, config_global_id: int) -> int:
        return await self.delete(GLOBAL, config_global_id)

    async def deactivate_globals_except(self, config_global_id: int) -> int:
        """Clear ``is_active`` on every active row other than the target."""
        result = await self.session.execute(
            update(ConfigurationGlobal)
            .where(
                ConfigurationGlobal.is_active == True,  # noqa: E712
                ConfigurationGlobal.config_global_id != config_global_id,
            )
            .values(is_active=False)
        )
        return result.rowcount


class SqlConfigurationStore:
    """Opens one transaction-scoped repository per operation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[ConfigurationRepository]:
        async with self.session_factory() as session:
            async with session.begin():
                yield ConfigurationRepository(session)
