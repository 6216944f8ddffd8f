import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configsvc.config import settings
from configsvc.database import async_session, create_tables
from configsvc.middleware.exceptions import register_exception_handlers
from configsvc.repositories.configuration import SqlConfigurationStore
from configsvc.routers import configuration, health
from configsvc.services.configuration import ConfigurationOrchestrator

logger = logging.getLogger("configsvc")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Provision missing tables on startup."""
    await create_tables()
    logger.info("%s started (%s)", settings.service_name, settings.environment)
    yield
    logger.info("%s stopped", settings.service_name)


app = FastAPI(
    title="Configuration Service",
    description="Client and global configuration management",
    version="0.1.0",
    lifespan=lifespan,
)

# Shared by every request; each call opens its own session from the pool
app.state.orchestrator = ConfigurationOrchestrator(
    SqlConfigurationStore(async_session),
    timeout=settings.context_timeout_seconds,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(configuration.router, prefix="/api/configuration", tags=["configuration"])
