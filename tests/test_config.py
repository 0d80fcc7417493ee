"""Tests for hubdb_sync.config -- env-var config loading and validation.

NOT to be confused with test_config_loader.py (YAML discovery) or
test_config_schema.py (Pydantic models).
"""

import pytest

from hubdb_sync.config import (
    DEFAULT_CATALOG_URL,
    DEFAULT_HUBDB_URL,
    DEFAULT_TABLE_ID,
    Config,
    load_config,
    validate_config,
)

# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_defaults_valid(self):
        validate_config(Config(token="abc"))

    def test_empty_token(self):
        with pytest.raises(ValueError, match="HUBSPOT_PRIVATE_APP_TOKEN"):
            validate_config(Config(token="   "))

    def test_token_stripped(self):
        config = Config(token="  abc \n")
        validate_config(config)
        assert config.token == "abc"

    def test_empty_table_id(self):
        with pytest.raises(ValueError, match="table id"):
            validate_config(Config(token="abc", table_id=" "))

    def test_url_without_scheme(self):
        with pytest.raises(ValueError, match="must start with http"):
            validate_config(Config(token="abc", hubdb_url="api.hubapi.com"))

    def test_url_without_host(self):
        with pytest.raises(ValueError, match="hostname"):
            validate_config(Config(token="abc", catalog_url="https://"))

    def test_trailing_slash_removed(self):
        config = Config(token="abc", hubdb_url="https://api.example.com/hubdb/")
        validate_config(config)
        assert config.hubdb_url == "https://api.example.com/hubdb"

    @pytest.mark.parametrize("size", [0, 1001])
    def test_hubdb_page_size_bounds(self, size):
        with pytest.raises(ValueError, match="page size"):
            validate_config(Config(token="abc", hubdb_page_size=size))

    def test_catalog_page_size_bounds(self):
        with pytest.raises(ValueError, match="catalog page size"):
            validate_config(Config(token="abc", catalog_page_size=0))

    def test_timeout_positive(self):
        with pytest.raises(ValueError, match="timeout"):
            validate_config(Config(token="abc", timeout=0))

    def test_max_retries_bounds(self):
        with pytest.raises(ValueError, match="max retries"):
            validate_config(Config(token="abc", max_retries=11))

    def test_unknown_lookup(self):
        with pytest.raises(ValueError, match="lookup strategy"):
            validate_config(Config(token="abc", lookup="fuzzy"))


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_token(self):
        with pytest.raises(ValueError, match="HubSpot token not found"):
            load_config()

    def test_env_token_and_defaults(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "env-token")

        config = load_config()

        assert config.token == "env-token"
        assert config.table_id == DEFAULT_TABLE_ID
        assert config.hubdb_url == DEFAULT_HUBDB_URL
        assert config.catalog_url == DEFAULT_CATALOG_URL
        assert config.hubdb_page_size == 1000
        assert config.catalog_page_size == 20
        assert config.prune is True
        assert config.lookup == "bulk"
        assert config.debug is False

    def test_cli_beats_env(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "env-token")
        monkeypatch.setenv("HUBDB_TABLE_ID", "111")

        config = load_config(token="cli-token", table_id="222")

        assert config.token == "cli-token"
        assert config.table_id == "222"

    def test_env_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("HUBDB_TABLE_ID", "111")
        monkeypatch.setenv("HUBDB_SYNC_PRUNE", "false")

        config = load_config(
            yaml_fallbacks={"token": "yaml-token", "table_id": "333", "prune": True}
        )

        assert config.token == "yaml-token"
        assert config.table_id == "111"
        assert config.prune is False

    def test_yaml_fallbacks_used(self):
        config = load_config(
            yaml_fallbacks={
                "token": "yaml-token",
                "hubdb_page_size": 250,
                "catalog_page_size": 50,
                "timeout": 15,
                "max_retries": 2,
                "lookup": "point",
                "prune": False,
            }
        )

        assert config.hubdb_page_size == 250
        assert config.catalog_page_size == 50
        assert config.timeout == 15.0
        assert config.max_retries == 2
        assert config.lookup == "point"
        assert config.prune is False

    def test_cli_prune_false_beats_env(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("HUBDB_SYNC_PRUNE", "true")

        assert load_config(prune=False).prune is False

    def test_numeric_env(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("HUBDB_PAGE_SIZE", "500")
        monkeypatch.setenv("HUBDB_SYNC_TIMEOUT", "2.5")

        config = load_config()

        assert config.hubdb_page_size == 500
        assert config.timeout == 2.5

    def test_numeric_env_not_a_number(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("CATALOG_PAGE_SIZE", "lots")

        with pytest.raises(ValueError, match="CATALOG_PAGE_SIZE"):
            load_config()

    def test_debug_env(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("HUBDB_SYNC_DEBUG", "yes")

        assert load_config().debug is True

    def test_lookup_env_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("HUBDB_SYNC_LOOKUP", "POINT")

        assert load_config().lookup == "point"

    def test_invalid_value_rejected(self, monkeypatch):
        monkeypatch.setenv("HUBSPOT_PRIVATE_APP_TOKEN", "t")
        monkeypatch.setenv("HUBDB_API_URL", "ftp://example.com")

        with pytest.raises(ValueError, match="HubDB URL"):
            load_config()
