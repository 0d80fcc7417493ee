"""
YAML config file discovery and loading for hubdb-sync.

Looks for config files in a fixed set of locations, merges them with
"project wins" semantics and interpolates ``${VAR}`` references from
the environment.

Usage:
    from hubdb_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "HUBDB_SYNC_CONFIG"

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` patterns with env values.

    * ``${VAR}`` is replaced with ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def discover_config_files() -> list[Path]:
    """Return existing config file paths in precedence order (highest first).

    Search order:
        1. ``HUBDB_SYNC_CONFIG`` env var (explicit single path)
        2. ``.hubdb_sync/config.yml`` in CWD (project-level)
        3. ``~/.config/hubdb_sync/config.yml`` (global)

    Only paths that exist on disk are returned.
    """
    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        explicit = Path(env_path).expanduser().resolve()
        if not explicit.exists():
            logger.warning(
                "%s points to a missing file: %s", CONFIG_ENV_VAR, explicit
            )
        candidates.append(explicit)

    candidates.append(Path.cwd() / ".hubdb_sync" / "config.yml")
    candidates.append(Path.home() / ".config" / "hubdb_sync" / "config.yml")

    return [p for p in candidates if p.exists()]


def load_yaml_file(path: Path) -> Any:
    """Parse a single YAML file with ``yaml.safe_load``."""
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are loaded from lowest precedence to highest; each file's
    top-level sections replace (not deep-merge) earlier ones.  Env var
    interpolation is applied after merging.

    Returns an empty dict when no config files exist (zero-config).
    """
    paths = discover_config_files()

    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = load_yaml_file(path)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
