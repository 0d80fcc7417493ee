"""YAML configuration schema for hubdb-sync.

Defines Pydantic models for the config file structure with dedicated
sections for the HubDB table, the catalog source, sync policy and
logging.  ``to_fallbacks()`` flattens a validated config into the
``yaml_fallbacks`` dict consumed by ``config.load_config()``.

Usage:
    from hubdb_sync.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class HubDBConfig(BaseModel):
    """HubDB connection settings.

    All fields are optional so env vars and CLI args can supply them at
    runtime instead.
    """

    token: str | None = Field(
        default=None, description="HubSpot private app token"
    )
    table_id: str | None = Field(default=None, description="Target table id")
    url: str | None = Field(default=None, description="HubDB API base URL")
    page_size: int | None = Field(
        default=None,
        ge=1,
        le=1000,
        description="Rows per list request (1-1000)",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Per-request read timeout in seconds"
    )
    max_retries: int | None = Field(
        default=None,
        ge=0,
        le=10,
        description="Retries for transient HTTP errors (0-10)",
    )

    model_config = {"frozen": True}


class CatalogConfig(BaseModel):
    """Catalog source settings."""

    url: str | None = Field(default=None, description="Catalog search endpoint")
    page_size: int | None = Field(
        default=None, ge=1, le=500, description="Items per page (1-500)"
    )
    max_pages: int = Field(
        default=1000,
        ge=1,
        description="Upper bound on pages fetched before giving up",
    )

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Reconciliation policy."""

    prune: bool | None = Field(
        default=None, description="Delete rows missing from the catalog"
    )
    lookup: Literal["bulk", "point"] | None = Field(
        default=None, description="Row lookup strategy"
    )
    debug: bool | None = Field(default=None, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: "text" or "json".
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log line format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration file model.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    hubdb: HubDBConfig = Field(default_factory=HubDBConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten a ``UnifiedConfig`` into ``load_config()`` fallback keys.

    Unset (``None``) values are omitted so they never shadow built-in
    defaults.
    """
    flat = {
        "token": unified.hubdb.token,
        "table_id": unified.hubdb.table_id,
        "hubdb_url": unified.hubdb.url,
        "hubdb_page_size": unified.hubdb.page_size,
        "timeout": unified.hubdb.timeout,
        "max_retries": unified.hubdb.max_retries,
        "catalog_url": unified.catalog.url,
        "catalog_page_size": unified.catalog.page_size,
        "catalog_max_pages": unified.catalog.max_pages,
        "prune": unified.sync.prune,
        "lookup": unified.sync.lookup,
        "debug": unified.sync.debug,
    }
    return {k: v for k, v in flat.items() if v is not None}
