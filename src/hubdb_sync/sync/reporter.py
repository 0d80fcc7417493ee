"""Run summary formatting.

- ``format_run_summary`` -- human-readable post-run summary.
- ``format_dry_run_preview`` -- planned actions grouped by type.
- ``run_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from .models import SyncAction

if TYPE_CHECKING:
    from .models import RunResult

RULE = "=" * 60


def format_run_summary(result: RunResult, title: str = "Process completed") -> str:
    """Format the key/value summary of a run.

    Failed items are listed after the counts so partial success is
    visible without reading the log.

    Args:
        result: The completed run.
        title: Heading printed above the counts.

    Returns:
        Multi-line formatted string.
    """
    header = f"{title} (table {result.table_id})"
    if result.dry_run:
        header += " (DRY RUN)"
    lines = [RULE, header]

    for key, value in result.summary_items().items():
        lines.append(f"   {key}: {value}")

    if result.published is False:
        lines.append("   Publish: FAILED (changes remain in draft)")

    if result.errors:
        lines.append("")
        lines.append("Errors:")
        for r in result.errors:
            lines.append(
                f"  [{r.action.value}] {r.label or r.url_key}: {r.error}"
            )

    lines.append(RULE)
    return "\n".join(lines)


def format_dry_run_preview(result: RunResult) -> str:
    """Format planned actions grouped by type.

    Updates are summarised by count only, since every matched row is
    updated on each run.
    """
    lines = ["DRY RUN -- No changes will be made", f"Table: {result.table_id}", ""]

    groups: dict[SyncAction, list[str]] = defaultdict(list)
    for r in result.results:
        groups[r.action].append(r.label or r.url_key or "")

    for action in (SyncAction.CREATE, SyncAction.DELETE):
        if action not in groups:
            continue
        lines.append(f"[{action.value.upper()}]")
        for label in groups[action]:
            lines.append(f"  {label}")
        lines.append("")

    update_count = len(groups.get(SyncAction.UPDATE, []))
    if update_count:
        lines.append(f"Updated: {update_count} rows")
        lines.append("")

    if result.errors:
        lines.append("Errors:")
        for r in result.errors:
            lines.append(f"  {r.label or r.url_key}: {r.error}")
        lines.append("")

    if not groups:
        lines.append("No changes needed.")

    return "\n".join(lines).rstrip()


def run_to_json(result: RunResult) -> dict:
    """Convert a run result to a dict suitable for ``json.dumps``."""
    results_list = []
    for r in result.results:
        entry: dict = {
            "action": r.action.value,
            "url_key": r.url_key,
            "row_id": r.row_id,
            "success": r.success,
        }
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "table_id": result.table_id,
        "dry_run": result.dry_run,
        "prune": result.prune,
        "started_at": result.started_at,
        "completed_at": result.completed_at,
        "duration_seconds": round(result.duration_seconds, 3),
        "published": result.published,
        "counts": {
            "total": result.total_seen,
            "target_before": result.target_rows_before,
            "created": result.created,
            "updated": result.updated,
            "deleted": result.deleted,
            "failed": result.failed,
            "target_after": result.target_rows_after,
        },
        "success_rate": result.success_rate,
        "results": results_list,
    }
