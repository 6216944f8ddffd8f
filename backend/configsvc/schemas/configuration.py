"""Pydantic schemas for client and global configuration.

``ClientConfig`` / ``GlobalConfig`` are the records passed between the
orchestrator and the store.  ``*In`` models are request bodies; the
``*Response`` envelopes are what the delivery adapter returns.
"""

from pydantic import BaseModel, Field


class ConfigurationStatus(BaseModel):
    created: bool = False
    updated: bool = False
    deleted: bool = False


# ── Client configuration ─────────────────────────────────────

class ClientConfigIn(BaseModel):
    tenant_key: str = Field(..., min_length=1, max_length=100)
    language_id: str | None = Field(None, max_length=20)
    app_name: str | None = Field(None, max_length=255)
    report_title: str | None = Field(None, max_length=255)


class ClientConfig(ClientConfigIn):
    config_client_id: int | None = None
    client_uuid: str | None = None
    is_deleted: bool = False

    model_config = {"from_attributes": True}


class ClientConfigResponse(BaseModel):
    client: ClientConfig | None = None
    clients: list[ClientConfig] | None = None
    status: ConfigurationStatus | None = None


# ── Global configuration ─────────────────────────────────────

class GlobalConfigIn(BaseModel):
    footer_text: str | None = None
    smtp_server: str | None = Field(None, max_length=255)
    port: int | None = Field(None, ge=0, le=65535)
    use_ssl: bool = False
    use_auth: bool = False
    username: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=255)


class GlobalConfigCreate(GlobalConfigIn):
    # Accepted as-is; activation proper goes through the activate endpoint
    is_active: bool = False


class GlobalConfig(GlobalConfigCreate):
    config_global_id: int | None = None

    model_config = {"from_attributes": True}


class GlobalConfigResponse(BaseModel):
    global_config: GlobalConfig | None = Field(None, alias="global")
    globals: list[GlobalConfig] | None = None
    status: ConfigurationStatus | None = None

    model_config = {"populate_by_name": True}
