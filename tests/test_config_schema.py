"""Tests for the Pydantic config file schema."""

import pytest
from pydantic import ValidationError

from hubdb_sync.config_schema import UnifiedConfig, build_config, to_fallbacks


class TestBuildConfig:
    def test_empty_is_defaults(self):
        unified = build_config({})
        assert unified == UnifiedConfig()
        assert unified.logging.level == "INFO"
        assert unified.catalog.max_pages == 1000

    def test_sections_parsed(self):
        unified = build_config(
            {
                "hubdb": {"table_id": "42", "page_size": 100},
                "catalog": {"page_size": 10},
                "sync": {"prune": False, "lookup": "point"},
                "logging": {"format": "json"},
            }
        )
        assert unified.hubdb.table_id == "42"
        assert unified.hubdb.page_size == 100
        assert unified.catalog.page_size == 10
        assert unified.sync.lookup == "point"
        assert unified.logging.format == "json"

    def test_page_size_out_of_range(self):
        with pytest.raises(ValidationError):
            build_config({"hubdb": {"page_size": 5000}})

    def test_bad_lookup(self):
        with pytest.raises(ValidationError):
            build_config({"sync": {"lookup": "fuzzy"}})

    def test_frozen(self):
        unified = build_config({})
        with pytest.raises(ValidationError):
            unified.logging.level = "DEBUG"


class TestToFallbacks:
    def test_none_values_omitted(self):
        assert to_fallbacks(UnifiedConfig()) == {"catalog_max_pages": 1000}

    def test_flattened_keys(self):
        unified = build_config(
            {
                "hubdb": {"token": "t", "url": "https://h.example.com", "timeout": 5},
                "catalog": {"url": "https://c.example.com"},
                "sync": {"prune": False, "debug": True},
            }
        )
        fb = to_fallbacks(unified)
        assert fb["token"] == "t"
        assert fb["hubdb_url"] == "https://h.example.com"
        assert fb["timeout"] == 5
        assert fb["catalog_url"] == "https://c.example.com"
        assert fb["prune"] is False
        assert fb["debug"] is True
