"""
Unit tests for edge configuration.
"""

import pytest
from pydantic import ValidationError

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import BaseConfig, get_config


class TestConfig:
    """Test cases for environment driven configuration."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in list(os.environ):
            if name.startswith("EDGE_"):
                monkeypatch.delenv(name)

    def test_defaults(self):
        config = get_config("edge", 8000)

        assert config.service_name == "edge"
        assert config.port == 8000
        assert config.backend_url is None
        assert config.default_locale == "us"
        assert config.region_cache_ttl_seconds == 3600
        assert config.redirect_status_code == 307
        assert config.enumeration_content_types == ["category", "product", "collection"]
        assert "/api/" in config.bypass_prefixes
        assert config.locale_tokens == []
        assert config.enumeration_request_timeout_seconds == 5.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("EDGE_BACKEND_URL", "http://backend:9000/")
        monkeypatch.setenv("EDGE_DEFAULT_LOCALE", "de")
        monkeypatch.setenv("EDGE_REGION_CACHE_TTL_SECONDS", "60")
        monkeypatch.setenv("EDGE_LOCALE_ALIASES", '{"uk": "gb"}')
        monkeypatch.setenv("EDGE_LOCALE_TOKENS", '["fil", "ast"]')

        config = get_config("edge", 8000)

        assert config.backend_url == "http://backend:9000"
        assert config.default_locale == "de"
        assert config.region_cache_ttl_seconds == 60
        assert config.locale_aliases == {"uk": "gb"}
        assert config.locale_tokens == ["fil", "ast"]

    def test_blank_values_are_unset(self, monkeypatch):
        monkeypatch.setenv("EDGE_BACKEND_URL", "  ")
        monkeypatch.setenv("EDGE_DEFAULT_LOCALE", "")

        config = get_config("edge", 8000)

        assert config.backend_url is None
        assert config.default_locale is None

    def test_missing_required(self):
        assert get_config("edge", 8000).missing_required() == ["backend_url"]
        assert get_config("edge", 8000, backend_url="http://backend").missing_required() == []

    def test_redirect_status_must_be_redirect(self):
        assert BaseConfig(redirect_status_code=308).redirect_status_code == 308
        with pytest.raises(ValidationError):
            BaseConfig(redirect_status_code=200)

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValidationError):
            BaseConfig(region_cache_ttl_seconds=0)
