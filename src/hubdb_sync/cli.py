"""Command-line entry points.

``hubdb-sync`` mirrors the catalog into the HubDB table:

1. Load configuration (.env, YAML, environment, CLI flags).
2. Validate the HubDB connection.
3. Fetch the catalog and the table rows; either failing aborts the run.
4. Reconcile, publish and print the summary.

``hubdb-cleanup`` empties one or more tables by reconciling them against
an empty catalog.

Exit status is 0 when a run completes, even with per-item failures, and
1 on configuration, connectivity or collection-fetch failures.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import load_hierarchical_config
from .config_schema import UnifiedConfig, build_config, to_fallbacks
from .core.catalog import CatalogClient
from .core.client import HubDBClient
from .errors import HubDBSyncError, PreconditionFailed
from .logger import setup_logging
from .sync.engine import Reconciler
from .sync.models import RunResult
from .sync.reporter import (
    format_dry_run_preview,
    format_run_summary,
    run_to_json,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _stderr_print(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument(
        "--table-id",
        action="append",
        dest="table_ids",
        help="HubDB table id (overrides HUBDB_TABLE_ID)",
    )
    parser.add_argument(
        "--token",
        help="HubSpot private app token"
        " (visible in process list -- prefer HUBSPOT_PRIVATE_APP_TOKEN)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing or publishing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Print the run summary as JSON",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"{prog} version {__version__}",
    )
    return parser


def build_sync_parser() -> argparse.ArgumentParser:
    parser = _build_parser(
        "hubdb-sync", "Mirror the course catalog into a HubDB table"
    )
    parser.add_argument(
        "--no-prune",
        action="store_false",
        dest="prune",
        default=None,
        help="Keep rows whose course is no longer in the catalog",
    )
    parser.add_argument(
        "--lookup",
        choices=("bulk", "point"),
        help="Match rows from one bulk read (default) or one query per course",
    )
    return parser


def build_cleanup_parser() -> argparse.ArgumentParser:
    return _build_parser(
        "hubdb-cleanup",
        "Delete ALL rows from the given HubDB tables and publish them",
    )


def load_settings(
    args: argparse.Namespace,
) -> tuple[Config, UnifiedConfig]:
    """Load configuration and set up logging.

    Raises:
        PreconditionFailed: If the configuration is missing or invalid.
    """
    load_dotenv()

    try:
        unified = build_config(load_hierarchical_config())
    except Exception as exc:
        raise PreconditionFailed(f"Configuration error: {exc}") from exc

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        log_format=unified.logging.format,
        level=unified.logging.level,
    )

    table_ids = args.table_ids or []
    try:
        config = load_config(
            token=args.token,
            table_id=table_ids[0] if table_ids else None,
            prune=getattr(args, "prune", None),
            lookup=getattr(args, "lookup", None),
            debug=args.debug,
            yaml_fallbacks=to_fallbacks(unified),
        )
    except ValueError as exc:
        raise PreconditionFailed(f"Configuration error: {exc}") from exc

    if config.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    return config, unified


def connect(config: Config, table_id: str | None = None) -> HubDBClient:
    """Create a client and check that HubDB accepts our token.

    Raises:
        PreconditionFailed: If the connectivity check fails.
    """
    client = HubDBClient(config, table_id=table_id)
    try:
        client.validate_connection()
    except HubDBSyncError as exc:
        raise PreconditionFailed(
            f"Failed to connect to HubDB: {exc}"
        ) from exc
    return client


def _emit(result: RunResult, as_json: bool, title: str) -> None:
    if as_json:
        print(json.dumps(run_to_json(result), indent=2))
        return
    if result.dry_run:
        print(format_dry_run_preview(result))
        print()
    print(format_run_summary(result, title=title))


def run_sync(config: Config, dry_run: bool = False, as_json: bool = False) -> int:
    """Run one full catalog-to-table sync and print its summary."""
    logger.info("Course sync to HubDB started")
    client = connect(config)

    columns = client.get_table_schema()
    if columns is not None:
        logger.info("Table has %d columns", len(columns))

    courses = CatalogClient(config).fetch_all()
    if not courses:
        logger.warning(
            "No courses found in the catalog; leaving table %s untouched",
            config.table_id,
        )
        return EXIT_OK

    reconciler = Reconciler(
        client,
        config.table_id,
        prune=config.prune,
        lookup=config.lookup,
        dry_run=dry_run,
    )

    rows = None
    if reconciler.needs_target_rows():
        logger.info("Fetching existing rows from HubDB...")
        rows = client.fetch_all_rows()

    logger.info("Starting sync for %d courses", len(courses))
    result = reconciler.reconcile(courses, rows)
    _emit(result, as_json, "Course sync completed")
    return EXIT_OK


def run_cleanup(
    config: Config,
    table_ids: list[str],
    dry_run: bool = False,
    as_json: bool = False,
) -> int:
    """Delete every row of each table, publishing each one afterwards."""
    logger.warning("This will DELETE ALL ROWS from tables: %s", ", ".join(table_ids))
    connect(config)

    for table_id in table_ids:
        client = HubDBClient(config, table_id=table_id)
        rows = client.fetch_all_rows()
        if not rows:
            logger.info("Table %s is already empty", table_id)
            now = datetime.now(timezone.utc).isoformat()
            result = RunResult(
                table_id=table_id,
                dry_run=dry_run,
                total_seen=0,
                target_rows_before=0,
                started_at=now,
                completed_at=now,
            )
            _emit(result, as_json, "Cleanup completed")
            continue
        logger.warning("Found %d rows to delete in table %s", len(rows), table_id)

        reconciler = Reconciler(
            client, table_id, prune=True, lookup="bulk", dry_run=dry_run
        )
        result = reconciler.reconcile([], rows)
        _emit(result, as_json, "Cleanup completed")

    return EXIT_OK


def _guard(run, *args, **kwargs) -> int:
    """Run *run* and map failures to exit codes."""
    try:
        return run(*args, **kwargs)
    except PreconditionFailed as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except HubDBSyncError as exc:
        logger.error("Fatal error during run: %s", exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        _stderr_print("\nInterrupted.")
        return EXIT_INTERRUPTED
    except Exception:
        logger.exception("Unexpected fatal error")
        return EXIT_FAILURE


def sync_main(argv: list[str] | None = None) -> int:
    """Entry point for ``hubdb-sync``."""
    args = build_sync_parser().parse_args(argv)
    try:
        config, _ = load_settings(args)
    except PreconditionFailed as exc:
        _stderr_print(f"ERROR: {exc}")
        return EXIT_FAILURE
    return _guard(run_sync, config, dry_run=args.dry_run, as_json=args.as_json)


def cleanup_main(argv: list[str] | None = None) -> int:
    """Entry point for ``hubdb-cleanup``."""
    args = build_cleanup_parser().parse_args(argv)
    try:
        config, _ = load_settings(args)
    except PreconditionFailed as exc:
        _stderr_print(f"ERROR: {exc}")
        return EXIT_FAILURE
    table_ids = args.table_ids or [config.table_id]
    return _guard(
        run_cleanup,
        config,
        table_ids,
        dry_run=args.dry_run,
        as_json=args.as_json,
    )


def run() -> None:
    sys.exit(sync_main())


def run_cleanup_command() -> None:
    sys.exit(cleanup_main())


if __name__ == "__main__":
    run()
