"""Pydantic models for catalog-to-HubDB reconciliation.

Defines the data contracts shared by the clients, transform, engine and
reporter:

- ``SourceRecord``: One course from the catalog API.
- ``TargetRecord``: One row in the HubDB table.
- ``RowPayload``: Body sent to HubDB on create/update.
- ``SyncAction``: Enum of per-item operations.
- ``ItemResult``: Outcome of one operation.
- ``RunResult``: Aggregate outcome of a full run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Attribute(BaseModel):
    """A coded catalog attribute; ``option_value`` may be a list."""

    code: str
    option_value: Any = None

    model_config = {"frozen": True, "extra": "allow", "coerce_numbers_to_str": True}


class Vendor(BaseModel):
    id: Any = None
    name: str | None = None
    logo_src: Any = None
    link: Any = None

    model_config = {"frozen": True, "extra": "allow", "coerce_numbers_to_str": True}


class SourceRecord(BaseModel):
    """A course from the upstream catalog.

    Attributes:
        url_key: Stable unique key, used to match table rows.
        name: Display name.
        attributes: Open-ended list of coded attributes.
    """

    url_key: str = Field(min_length=1)
    name: str = ""
    # Copied into the row as-is.
    short_description: Any = None
    image_url: Any = None
    sku: Any = None
    product_type: Any = None
    vendor: Vendor | None = None
    prices_unformatted: Any = None
    attributes: list[Attribute] = []

    model_config = {"frozen": True, "extra": "allow", "coerce_numbers_to_str": True}

    def attribute(self, code: str) -> Any:
        """Return the value of the first attribute with *code*, or None."""
        for attr in self.attributes:
            if attr.code == code:
                return attr.option_value
        return None


class TargetRecord(BaseModel):
    """A row in the HubDB table.

    Attributes:
        row_id: Identifier assigned by HubDB, used for update/delete.
        url_key: Catalog key copied into the row's values at creation.
        values: Column values of the row.
    """

    row_id: str
    url_key: str | None = None
    name: str | None = None
    path: str | None = None
    values: dict[str, Any] = {}

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, obj: dict[str, Any]) -> TargetRecord:
        """Build a record from a raw HubDB row object."""
        values = obj.get("values") or {}
        url_key = values.get("url_key")
        return cls(
            row_id=str(obj["id"]),
            url_key=str(url_key) if url_key else None,
            name=obj.get("name"),
            path=obj.get("path"),
            values=values,
        )

    @property
    def label(self) -> str:
        """Human-readable name for progress output."""
        return (
            self.values.get("title") or self.name or self.url_key or self.row_id
        )


class RowPayload(BaseModel):
    """Create/update body for one HubDB row."""

    name: str
    path: str
    values: dict[str, Any]

    model_config = {"frozen": True}

    def to_api(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "values": dict(self.values)}


class SyncAction(str, Enum):
    """Possible per-item operations."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SKIP = "skip"


class ItemResult(BaseModel):
    """Result of one create/update/delete decision.

    Attributes:
        action: Operation that was attempted (or planned, in a dry run).
        url_key: Catalog key of the item, if known.
        label: Display name used in progress output.
        row_id: HubDB row id, if known.
        success: Whether the operation succeeded.
        error: Error message if the operation failed.
    """

    action: SyncAction
    url_key: str | None = None
    label: str = ""
    row_id: str | None = None
    success: bool
    error: str | None = None

    model_config = {"frozen": True}


class RunResult(BaseModel):
    """Aggregate outcome of one reconciliation run.

    Attributes:
        table_id: HubDB table the run targeted.
        dry_run: Whether writes were skipped.
        prune: Whether the delete pass was enabled.
        total_seen: Number of catalog records processed.
        target_rows_before: Rows in the table before the run (None if
            the table was not read in full).
        results: One entry per attempted operation.
        published: Publish outcome; None when publish was not attempted.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run finished.
        duration_seconds: Wall-clock duration of the run.
    """

    table_id: str
    dry_run: bool = False
    prune: bool = True
    total_seen: int = 0
    target_rows_before: int | None = None
    results: list[ItemResult] = []
    published: bool | None = None
    started_at: str
    completed_at: str | None = None
    duration_seconds: float = 0.0

    model_config = {"frozen": True}

    def _count(self, action: SyncAction) -> int:
        return sum(
            1 for r in self.results if r.action == action and r.success
        )

    @property
    def created(self) -> int:
        return self._count(SyncAction.CREATE)

    @property
    def updated(self) -> int:
        return self._count(SyncAction.UPDATE)

    @property
    def deleted(self) -> int:
        return self._count(SyncAction.DELETE)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def errors(self) -> list[ItemResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def delete_candidates(self) -> int:
        """Stale rows the delete pass attempted, successful or not."""
        return sum(1 for r in self.results if r.action == SyncAction.DELETE)

    @property
    def success_count(self) -> int:
        return self.created + self.updated + self.deleted

    @property
    def total_operations(self) -> int:
        return self.total_seen + self.delete_candidates

    @property
    def success_rate(self) -> float | None:
        """Share of operations that succeeded, or None when there were none."""
        if self.total_operations == 0:
            return None
        return self.success_count / self.total_operations

    @property
    def target_rows_after(self) -> int | None:
        if self.target_rows_before is None:
            return None
        return self.target_rows_before + self.created - self.deleted

    def summary_items(self) -> dict[str, Any]:
        """Ordered key/value summary of the run."""
        rate = self.success_rate
        return {
            "Catalog courses": self.total_seen,
            "HubDB before sync": _or_unknown(self.target_rows_before),
            "Created": self.created,
            "Updated": self.updated,
            "Deleted": self.deleted,
            "Failed": self.failed,
            "HubDB after sync": _or_unknown(self.target_rows_after),
            # An empty catalog against an empty table is already in sync.
            "Success rate": f"{(1.0 if rate is None else rate) * 100:.1f}%",
            "Duration": f"{self.duration_seconds:.2f}s",
        }


def _or_unknown(value: int | None) -> int | str:
    return "n/a" if value is None else value
