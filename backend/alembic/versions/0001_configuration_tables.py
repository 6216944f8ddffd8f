"""Create configuration_client and configuration_global.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "configuration_client",
        sa.Column("config_client_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("client_uuid", sa.String(36), nullable=False, unique=True),
        sa.Column("tenant_key", sa.String(100), nullable=False),
        sa.Column("language_id", sa.String(20)),
        sa.Column("app_name", sa.String(255)),
        sa.Column("report_title", sa.String(255)),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_configuration_client_tenant_key", "configuration_client", ["tenant_key"])
    # One live record per tenant key
    op.create_index(
        "uq_configuration_client_live_tenant_key",
        "configuration_client",
        ["tenant_key"],
        unique=True,
        postgresql_where=sa.text("NOT is_deleted"),
    )

    op.create_table(
        "configuration_global",
        sa.Column("config_global_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("footer_text", sa.Text),
        sa.Column("smtp_server", sa.String(255)),
        sa.Column("port", sa.Integer),
        sa.Column("use_ssl", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("use_auth", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("username", sa.String(255)),
        sa.Column("password", sa.String(255)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_configuration_global_is_active", "configuration_global", ["is_active"])


def downgrade() -> None:
    op.drop_index("ix_configuration_global_is_active", table_name="configuration_global")
    op.drop_table("configuration_global")
    op.drop_index("uq_configuration_client_live_tenant_key", table_name="configuration_client")
    op.drop_index("ix_configuration_client_tenant_key", table_name="configuration_client")
    op.drop_table("configuration_client")
