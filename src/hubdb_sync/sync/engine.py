"""Reconciliation engine that mirrors the catalog into a HubDB table.

The ``Reconciler`` runs three phases:

1. Upsert -- for each catalog course, in fetched order, find the row with
   the same ``url_key``; update it if found, otherwise create one.
2. Delete -- when pruning, delete every row whose ``url_key`` is absent
   from the catalog.  Rows without a ``url_key`` are left alone.
3. Publish -- publish the table draft once, even if some items failed.

Error handling is per-item: a failed lookup, transform or write is
recorded as a failed ``ItemResult`` and the run continues.

Row matching is first-match-wins.  With ``lookup="bulk"`` the first row
per key in the fetched order is used; rows created during the run are
added to that map, so a key repeated in the catalog updates the row
created for its first occurrence.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from hubdb_sync.errors import PublishFailed
from hubdb_sync.sync.models import (
    ItemResult,
    RunResult,
    SourceRecord,
    SyncAction,
    TargetRecord,
)
from hubdb_sync.sync.transform import transform_course

if TYPE_CHECKING:
    from hubdb_sync.core.client import HubDBClient

logger = logging.getLogger(__name__)

LOOKUP_BULK = "bulk"
LOOKUP_POINT = "point"


def index_by_key(rows: list[TargetRecord]) -> dict[str, TargetRecord]:
    """Map url_key to the first row carrying it; rows without a key are skipped."""
    index: dict[str, TargetRecord] = {}
    for row in rows:
        if row.url_key:
            index.setdefault(row.url_key, row)
    return index


class Reconciler:
    """Apply a catalog snapshot to one HubDB table.

    Args:
        client: HubDBClient (or compatible) for the target table.
        table_id: Table id reported in the result.
        prune: Delete rows whose key is missing from the catalog.
        lookup: ``"bulk"`` to match against pre-fetched rows, ``"point"``
            to query the table once per course.
        dry_run: Compute decisions without writing or publishing.
    """

    def __init__(
        self,
        client: HubDBClient,
        table_id: str,
        prune: bool = True,
        lookup: str = LOOKUP_BULK,
        dry_run: bool = False,
    ) -> None:
        if lookup not in (LOOKUP_BULK, LOOKUP_POINT):
            raise ValueError(f"Unknown lookup strategy: {lookup}")
        self.client = client
        self.table_id = table_id
        self.prune = prune
        self.lookup = lookup
        self.dry_run = dry_run

    def needs_target_rows(self) -> bool:
        """Whether ``reconcile()`` requires the full row list."""
        return self.prune or self.lookup == LOOKUP_BULK

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def reconcile(
        self,
        source_records: list[SourceRecord],
        target_rows: list[TargetRecord] | None = None,
    ) -> RunResult:
        """Run the upsert, delete and publish phases.

        Args:
            source_records: The full catalog, in fetched order.
            target_rows: Every row currently in the table.  Required when
                pruning or using bulk lookup.

        Returns:
            A ``RunResult`` describing every operation attempted.

        Raises:
            ValueError: If *target_rows* is required but missing.
        """
        if target_rows is None and self.needs_target_rows():
            raise ValueError(
                "target_rows is required when pruning or using bulk lookup"
            )

        started = time.monotonic()
        started_at = datetime.now(timezone.utc).isoformat()
        results: list[ItemResult] = []

        # Point lookup starts empty and only remembers rows created here.
        if self.lookup == LOOKUP_BULK:
            key_index = index_by_key(target_rows or [])
        else:
            key_index = {}

        total = len(source_records)
        for position, record in enumerate(source_records, start=1):
            progress = f"[{position}/{total}]"
            try:
                result = self._upsert(record, key_index, progress)
            except Exception as exc:
                logger.error(
                    "%s Failed to process: %s: %s", progress, record.name, exc
                )
                result = ItemResult(
                    action=SyncAction.SKIP,
                    url_key=record.url_key,
                    label=record.name,
                    success=False,
                    error=str(exc),
                )
            results.append(result)

        if self.prune:
            results.extend(self._delete_stale(source_records, target_rows or []))

        published = self._publish()

        return RunResult(
            table_id=self.table_id,
            dry_run=self.dry_run,
            prune=self.prune,
            total_seen=total,
            target_rows_before=(
                len(target_rows) if target_rows is not None else None
            ),
            results=results,
            published=published,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
            duration_seconds=time.monotonic() - started,
        )

    # ------------------------------------------------------------------
    # Phase 1: upsert
    # ------------------------------------------------------------------

    def _find_existing(
        self, record: SourceRecord, key_index: dict[str, TargetRecord]
    ) -> TargetRecord | None:
        existing = key_index.get(record.url_key)
        if existing is None and self.lookup == LOOKUP_POINT:
            existing = self.client.find_row_by_key(record.url_key)
        return existing

    def _upsert(
        self,
        record: SourceRecord,
        key_index: dict[str, TargetRecord],
        progress: str,
    ) -> ItemResult:
        """Create or update the row for one course.

        Lookup and transform errors propagate to the per-item boundary in
        ``reconcile()``; write errors are caught here.
        """
        existing = self._find_existing(record, key_index)
        payload = transform_course(record)

        if existing is not None:
            action = SyncAction.UPDATE
            row_id = existing.row_id
        else:
            action = SyncAction.CREATE
            row_id = None

        if self.dry_run:
            logger.info(
                "%s Would %s: %s", progress, action.value, record.name
            )
            return ItemResult(
                action=action,
                url_key=record.url_key,
                label=record.name,
                row_id=row_id,
                success=True,
            )

        try:
            if action == SyncAction.UPDATE:
                self.client.update_row(row_id, payload)
            else:
                row_id = self.client.create_row(payload)
        except Exception as exc:
            logger.error(
                "%s Failed to %s: %s: %s",
                progress,
                action.value,
                record.name,
                exc,
            )
            return ItemResult(
                action=action,
                url_key=record.url_key,
                label=record.name,
                row_id=row_id,
                success=False,
                error=str(exc),
            )

        if action == SyncAction.CREATE:
            key_index.setdefault(
                record.url_key,
                TargetRecord(
                    row_id=row_id,
                    url_key=record.url_key,
                    name=payload.name,
                    path=payload.path,
                    values=payload.values,
                ),
            )
            logger.info("%s Created: %s", progress, record.name)
        else:
            logger.info("%s Updated: %s", progress, record.name)

        return ItemResult(
            action=action,
            url_key=record.url_key,
            label=record.name,
            row_id=row_id,
            success=True,
        )

    # ------------------------------------------------------------------
    # Phase 2: delete
    # ------------------------------------------------------------------

    def _delete_stale(
        self,
        source_records: list[SourceRecord],
        target_rows: list[TargetRecord],
    ) -> list[ItemResult]:
        logger.info("Checking for courses to remove...")
        source_keys = {record.url_key for record in source_records}
        results: list[ItemResult] = []

        for row in target_rows:
            if not row.url_key or row.url_key in source_keys:
                continue
            results.append(self._delete_row(row))

        deleted = sum(1 for r in results if r.success)
        if results:
            logger.info(
                "Removed %d of %d stale courses", deleted, len(results)
            )
        else:
            logger.info("No stale courses found")
        return results

    def _delete_row(self, row: TargetRecord) -> ItemResult:
        if self.dry_run:
            logger.info("Would remove stale course: %s", row.label)
            return ItemResult(
                action=SyncAction.DELETE,
                url_key=row.url_key,
                label=row.label,
                row_id=row.row_id,
                success=True,
            )

        try:
            self.client.delete_row(row.row_id)
        except Exception as exc:
            logger.error(
                "Failed to delete stale course: %s: %s", row.url_key, exc
            )
            return ItemResult(
                action=SyncAction.DELETE,
                url_key=row.url_key,
                label=row.label,
                row_id=row.row_id,
                success=False,
                error=str(exc),
            )

        logger.info("Removed stale course: %s", row.label)
        return ItemResult(
            action=SyncAction.DELETE,
            url_key=row.url_key,
            label=row.label,
            row_id=row.row_id,
            success=True,
        )

    # ------------------------------------------------------------------
    # Phase 3: publish
    # ------------------------------------------------------------------

    def _publish(self) -> bool | None:
        if self.dry_run:
            return None
        logger.info("Publishing table %s...", self.table_id)
        try:
            self.client.publish()
        except PublishFailed as exc:
            logger.error("%s", exc)
            return False
        return True
