"""Client and global configuration tables.

``configuration_client`` rows are soft-deleted (``is_deleted``) and never
physically removed.  ``configuration_global`` rows are hard-deleted; at most
one of them carries ``is_active = true``.
"""

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from configsvc.database import Base


class ConfigurationClient(Base):
    __tablename__ = "configuration_client"

    config_client_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    # Assigned by the orchestrator on create, never updated afterwards
    client_uuid: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    # Company subscription id
    tenant_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    language_id: Mapped[str | None] = mapped_column(String(20))
    app_name: Mapped[str | None] = mapped_column(String(255))
    report_title: Mapped[str | None] = mapped_column(String(255))
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )

    __table_args__ = (
        # One live record per tenant key; soft-deleted rows may repeat it
        Index(
            "uq_configuration_client_live_tenant_key",
            "tenant_key",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )


class ConfigurationGlobal(Base):
    __tablename__ = "configuration_global"

    config_global_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    footer_text: Mapped[str | None] = mapped_column(Text)
    smtp_server: Mapped[str | None] = mapped_column(String(255))
    port: Mapped[int | None] = mapped_column(Integer)
    use_ssl: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    use_auth: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    username: Mapped[str | None] = mapped_column(String(255))
    password: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False, index=True
    )
