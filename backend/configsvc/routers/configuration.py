"""Configuration router — maps remote calls onto the orchestrator.

Endpoints:
    GET    /api/configuration/clients                    List live client configs
    GET    /api/configuration/clients/{tenant_key}       Client config by tenant key
    POST   /api/configuration/clients                    Create client config (UUID assigned)
    PUT    /api/configuration/clients/{client_uuid}      Update client config
    DELETE /api/configuration/clients/{tenant_key}       Soft-delete by tenant key

    GET    /api/configuration/globals                    List global configs
    GET    /api/configuration/globals/active             Active (or fallback) global config
    GET    /api/configuration/globals/{id}               Global config by id
    POST   /api/configuration/globals                    Create global config
    PUT    /api/configuration/globals/{id}               Update global config
    DELETE /api/configuration/globals/{id}               Delete global config
    POST   /api/configuration/globals/{id}/activate      Make it the single active config

Callers may send ``X-Request-Timeout`` (seconds) to tighten the deadline.
"""

from fastapi import APIRouter, Depends, Header, Request

from configsvc.schemas.configuration import (
    ClientConfig,
    ClientConfigIn,
    ClientConfigResponse,
    GlobalConfig,
    GlobalConfigCreate,
    GlobalConfigIn,
    GlobalConfigResponse,
)
from configsvc.services.configuration import ConfigurationOrchestrator

router = APIRouter()


def get_orchestrator(request: Request) -> ConfigurationOrchestrator:
    return request.app.state.orchestrator


def request_deadline(
    x_request_timeout: float | None = Header(None, gt=0),
) -> float | None:
    return x_request_timeout


# ── Client configuration ─────────────────────────────────────

@router.get("/clients", response_model=ClientConfigResponse, response_model_exclude_none=True)
async def list_clients(
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.list_clients(deadline)


@router.get(
    "/clients/{tenant_key}",
    response_model=ClientConfigResponse,
    response_model_exclude_none=True,
)
async def get_client(
    tenant_key: str,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.get_client_by_key(tenant_key, deadline)


@router.post(
    "/clients",
    response_model=ClientConfigResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def create_client(
    body: ClientConfigIn,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.add_client(body, deadline)


@router.put(
    "/clients/{client_uuid}",
    response_model=ClientConfigResponse,
    response_model_exclude_none=True,
)
async def update_client(
    client_uuid: str,
    body: ClientConfigIn,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    record = ClientConfig(client_uuid=client_uuid, **body.model_dump())
    return await orchestrator.update_client(record, deadline)


@router.delete(
    "/clients/{tenant_key}",
    response_model=ClientConfigResponse,
    response_model_exclude_none=True,
)
async def delete_client(
    tenant_key: str,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    """Soft-delete: the rows stay, flagged as deleted."""
    return await orchestrator.delete_clients_by_key(tenant_key, deadline)


# ── Global configuration ─────────────────────────────────────

@router.get("/globals", response_model=GlobalConfigResponse, response_model_exclude_none=True)
async def list_globals(
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.list_globals(deadline)


# Declared before /globals/{config_global_id} so "active" is not parsed as an id
@router.get(
    "/globals/active",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
)
async def get_active_global(
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.get_active_global(deadline)


@router.get(
    "/globals/{config_global_id}",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
)
async def get_global(
    config_global_id: int,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.get_global(config_global_id, deadline)


@router.post(
    "/globals",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def create_global(
    body: GlobalConfigCreate,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.add_global(body, deadline)


@router.put(
    "/globals/{config_global_id}",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
)
async def update_global(
    config_global_id: int,
    body: GlobalConfigIn,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    """Update settings; the active flag only changes through activate."""
    record = GlobalConfig(config_global_id=config_global_id, **body.model_dump())
    return await orchestrator.update_global(record, deadline)


@router.delete(
    "/globals/{config_global_id}",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
)
async def delete_global(
    config_global_id: int,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    return await orchestrator.delete_global(config_global_id, deadline)


@router.post(
    "/globals/{config_global_id}/activate",
    response_model=GlobalConfigResponse,
    response_model_exclude_none=True,
)
async def activate_global(
    config_global_id: int,
    body: GlobalConfigIn,
    orchestrator: ConfigurationOrchestrator = Depends(get_orchestrator),
    deadline: float | None = Depends(request_deadline),
):
    """Activate, applying only the settings present in the body."""
    record = GlobalConfig(config_global_id=config_global_id, **body.model_dump())
    return await orchestrator.activate_global(record, deadline, fields=body.model_fields_set)
