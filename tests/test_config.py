"""
Configuration Tests

PURPOSE:
    Verify environment parsing and fallback to defaults on bad values.
"""

import logging
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hades.config import (
    DEFAULT_HTML_FETCH_TIMEOUT,
    DEFAULT_MAX_BATCH_SIZE,
    DEFAULT_PORT,
    DEFAULT_WHOIS_TIMEOUT,
    Settings,
    load_settings,
)

ENV_VARS = (
    "DATABASE_URL", "PORT", "FLASK_DEBUG", "LOG_LEVEL", "LOG_JSON", "LOG_FILE",
    "HTML_FETCH_TIMEOUT", "WHOIS_TIMEOUT", "MAX_BATCH_SIZE", "CORS_ORIGINS",
    "HADES_USER_AGENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings()

        assert settings.database_url is None
        assert settings.port == DEFAULT_PORT == 8080
        assert settings.debug is False
        assert settings.html_fetch_timeout == DEFAULT_HTML_FETCH_TIMEOUT
        assert settings.whois_timeout == DEFAULT_WHOIS_TIMEOUT
        assert settings.max_batch_size == DEFAULT_MAX_BATCH_SIZE == 0
        assert settings.cors_origins == ("*",)

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://hades@db:5432/hades")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("FLASK_DEBUG", "True")
        monkeypatch.setenv("LOG_JSON", "1")
        monkeypatch.setenv("HTML_FETCH_TIMEOUT", "2.5")
        monkeypatch.setenv("MAX_BATCH_SIZE", "50")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")

        settings = load_settings()

        assert settings.database_url == "postgresql://hades@db:5432/hades"
        assert settings.port == 9090
        assert settings.debug is True
        assert settings.log_json is True
        assert settings.html_fetch_timeout == 2.5
        assert settings.max_batch_size == 50
        assert settings.cors_origins == ("https://a.example", "https://b.example")

    @pytest.mark.parametrize("value", ["abc", "0", "-5", "1.5"])
    def test_bad_port_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("PORT", value)
        assert load_settings().port == DEFAULT_PORT

    def test_zero_batch_size_means_unlimited(self, monkeypatch):
        monkeypatch.setenv("MAX_BATCH_SIZE", "0")
        assert load_settings().max_batch_size == 0

    def test_negative_batch_size_falls_back(self, monkeypatch):
        monkeypatch.setenv("MAX_BATCH_SIZE", "-10")
        assert load_settings().max_batch_size == DEFAULT_MAX_BATCH_SIZE

    def test_zero_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("HTML_FETCH_TIMEOUT", "0")
        monkeypatch.setenv("WHOIS_TIMEOUT", "0.5")

        settings = load_settings()

        assert settings.html_fetch_timeout == DEFAULT_HTML_FETCH_TIMEOUT
        assert settings.whois_timeout == 0.5

    def test_empty_database_url_is_none(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "")
        assert load_settings().database_url is None


class TestSettings:

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Settings().port = 1

    @pytest.mark.parametrize("name,expected", [
        ("debug", logging.DEBUG),
        ("warning", logging.WARNING),
        ("nonsense", logging.INFO),
    ])
    def test_log_level_value(self, name, expected):
        assert Settings(log_level=name).log_level_value == expected
