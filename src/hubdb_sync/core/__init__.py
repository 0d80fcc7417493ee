"""HTTP clients for the catalog API and the HubDB table store."""

from .catalog import CatalogClient
from .client import HubDBClient

__all__ = ["CatalogClient", "HubDBClient"]
