"""Runtime configuration for hubdb-sync.

Reads HubDB and catalog settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    HUBSPOT_PRIVATE_APP_TOKEN: HubSpot private app token (required)
    HUBDB_TABLE_ID: Target table id (optional, default: 114590372)
    HUBDB_API_URL: HubDB API base URL (optional)
    CATALOG_API_URL: Catalog search endpoint (optional)
    HUBDB_PAGE_SIZE: Rows per HubDB list request (optional, default: 1000)
    CATALOG_PAGE_SIZE: Items per catalog page (optional, default: 20)
    HUBDB_SYNC_TIMEOUT: Per-request read timeout in seconds (optional, default: 60)
    HUBDB_SYNC_MAX_RETRIES: Retries for transient HTTP errors (optional, default: 0)
    HUBDB_SYNC_PRUNE: Delete rows missing from the catalog (optional, default: true)
    HUBDB_SYNC_LOOKUP: Row lookup strategy, "bulk" or "point" (optional, default: bulk)
    HUBDB_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_TABLE_ID = "114590372"
DEFAULT_HUBDB_URL = "https://api.hubapi.com/cms/v3/hubdb"
DEFAULT_CATALOG_URL = (
    "https://d2uj9jw4vo3cg6.cloudfront.net/V1/storeview/default/search/products"
)
LOOKUP_STRATEGIES = ("bulk", "point")


@dataclass
class Config:
    token: str
    table_id: str = DEFAULT_TABLE_ID
    hubdb_url: str = DEFAULT_HUBDB_URL
    catalog_url: str = DEFAULT_CATALOG_URL
    hubdb_page_size: int = 1000
    catalog_page_size: int = 20
    catalog_max_pages: int = 1000
    timeout: float = 60.0
    max_retries: int = 0
    prune: bool = True
    lookup: str = "bulk"
    debug: bool = False


def _validate_url(name: str, value: str) -> str:
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid {name} '{value}': must start with http:// or https://"
        )
    if not urlparse(value).hostname:
        raise ValueError(
            f"Invalid {name} '{value}': URL must include a hostname"
        )
    return value.removesuffix("/")


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Normalizes URLs (whitespace, trailing slash) in place.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If a URL is malformed, the token or table id is empty,
            or a numeric/choice setting is out of range.
    """
    if not config.token.strip():
        raise ValueError(
            "HubSpot token cannot be empty. Set HUBSPOT_PRIVATE_APP_TOKEN environment variable."
        )
    config.token = config.token.strip()

    config.table_id = str(config.table_id).strip()
    if not config.table_id:
        raise ValueError("HubDB table id cannot be empty.")

    config.hubdb_url = _validate_url("HubDB URL", config.hubdb_url)
    config.catalog_url = _validate_url("catalog URL", config.catalog_url)

    if not (1 <= config.hubdb_page_size <= 1000):
        raise ValueError(
            f"Invalid HubDB page size {config.hubdb_page_size}: must be between 1 and 1000"
        )
    if not (1 <= config.catalog_page_size <= 500):
        raise ValueError(
            f"Invalid catalog page size {config.catalog_page_size}: must be between 1 and 500"
        )
    if config.timeout <= 0:
        raise ValueError(
            f"Invalid timeout {config.timeout}: must be greater than 0"
        )
    if not (0 <= config.max_retries <= 10):
        raise ValueError(
            f"Invalid max retries {config.max_retries}: must be between 0 and 10"
        )
    if config.lookup not in LOOKUP_STRATEGIES:
        raise ValueError(
            f"Invalid lookup strategy '{config.lookup}': must be one of {', '.join(LOOKUP_STRATEGIES)}"
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_int_env(key: str) -> int | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {key} '{raw}': must be a number") from None


def _get_float_env(key: str) -> float | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid {key} '{raw}': must be a number") from None


def _first_set(*values):
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def load_config(
    token: str | None = None,
    table_id: str | None = None,
    prune: bool | None = None,
    lookup: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override HubSpot token.
        table_id: Override target table id.
        prune: Override the prune policy (``None`` means not given).
        lookup: Override the lookup strategy.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file.
            Used as fallback when CLI arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If the token is missing after checking all sources, or
            any value fails validation.
    """
    fb = yaml_fallbacks or {}

    final_token = (
        token or os.getenv("HUBSPOT_PRIVATE_APP_TOKEN") or fb.get("token")
    )
    if not final_token:
        raise ValueError(
            "HubSpot token not found. Set HUBSPOT_PRIVATE_APP_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to the hubdb section of config.yml."
        )

    if debug:
        final_debug = True
    else:
        final_debug = bool(
            _first_set(_get_bool_env("HUBDB_SYNC_DEBUG"), fb.get("debug"), False)
        )

    config = Config(
        token=final_token,
        table_id=str(
            table_id
            or os.getenv("HUBDB_TABLE_ID")
            or fb.get("table_id")
            or DEFAULT_TABLE_ID
        ),
        hubdb_url=os.getenv("HUBDB_API_URL")
        or fb.get("hubdb_url")
        or DEFAULT_HUBDB_URL,
        catalog_url=os.getenv("CATALOG_API_URL")
        or fb.get("catalog_url")
        or DEFAULT_CATALOG_URL,
        hubdb_page_size=int(
            _first_set(
                _get_int_env("HUBDB_PAGE_SIZE"), fb.get("hubdb_page_size"), 1000
            )
        ),
        catalog_page_size=int(
            _first_set(
                _get_int_env("CATALOG_PAGE_SIZE"),
                fb.get("catalog_page_size"),
                20,
            )
        ),
        catalog_max_pages=int(fb.get("catalog_max_pages", 1000)),
        timeout=float(
            _first_set(
                _get_float_env("HUBDB_SYNC_TIMEOUT"), fb.get("timeout"), 60.0
            )
        ),
        max_retries=int(
            _first_set(
                _get_int_env("HUBDB_SYNC_MAX_RETRIES"), fb.get("max_retries"), 0
            )
        ),
        prune=bool(
            _first_set(prune, _get_bool_env("HUBDB_SYNC_PRUNE"), fb.get("prune"), True)
        ),
        lookup=(
            lookup or os.getenv("HUBDB_SYNC_LOOKUP") or fb.get("lookup") or "bulk"
        ).lower(),
        debug=final_debug,
    )

    validate_config(config)

    return config
