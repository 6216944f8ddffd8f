"""Aggregate model imports for Alembic auto-detection."""

from configsvc.models.configuration import ConfigurationClient, ConfigurationGlobal  # noqa: F401

__all__ = ["ConfigurationClient", "ConfigurationGlobal"]
