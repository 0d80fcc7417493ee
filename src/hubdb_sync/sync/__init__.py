"""Catalog-to-HubDB reconciliation.

Modules:

- ``models``    -- ``SourceRecord``, ``TargetRecord``, ``RowPayload``,
  ``SyncAction``, ``ItemResult``, ``RunResult``: core data contracts.
- ``transform`` -- ``transform_course``: course -> row payload.
- ``engine``    -- ``Reconciler``: upsert, delete and publish phases.
- ``reporter``  -- human-readable and JSON run summaries.

Usage example
-------------
::

    from hubdb_sync.core import CatalogClient, HubDBClient
    from hubdb_sync.sync import Reconciler, format_run_summary

    hubdb = HubDBClient(config)
    courses = CatalogClient(config).fetch_all()
    rows = hubdb.fetch_all_rows()

    result = Reconciler(hubdb, config.table_id).reconcile(courses, rows)
    print(format_run_summary(result))
"""

from .engine import Reconciler
from .models import (
    ItemResult,
    RowPayload,
    RunResult,
    SourceRecord,
    SyncAction,
    TargetRecord,
)
from .reporter import format_dry_run_preview, format_run_summary, run_to_json
from .transform import transform_course

__all__ = [
    "Reconciler",
    "ItemResult",
    "RowPayload",
    "RunResult",
    "SourceRecord",
    "SyncAction",
    "TargetRecord",
    "format_dry_run_preview",
    "format_run_summary",
    "run_to_json",
    "transform_course",
]
