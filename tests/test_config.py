"""Tests for diary.config — environment-driven settings."""

from __future__ import annotations

import pytest

from diary.config import load_settings
from diary.errors import ConfigurationError

_VARS = (
    "SUPABASE_URL",
    "VITE_SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "VITE_SUPABASE_ANON_KEY",
    "NOTES_TABLE",
    "REQUEST_TIMEOUT",
    "REQUIRE_EMAIL_CONFIRMATION",
    "DISPLAY_LOCALE",
    "DISPLAY_TIMEZONE",
    "LOG_LEVEL",
    "METRICS_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_missing_backend_is_fatal(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(_env_file=None)
        assert "SUPABASE_URL" in str(exc_info.value)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co/")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")

        settings = load_settings(_env_file=None)

        assert settings.supabase_url == "https://demo.supabase.co"
        assert settings.supabase_anon_key == "anon-key"
        assert settings.notes_table == "notas"
        assert settings.request_timeout == 10.0
        assert settings.require_email_confirmation is True
        assert settings.display_locale == "es"
        assert settings.metrics_port is None

    def test_accepts_vite_names(self, monkeypatch):
        monkeypatch.setenv("VITE_SUPABASE_URL", "https://demo.supabase.co")
        monkeypatch.setenv("VITE_SUPABASE_ANON_KEY", "anon-key")

        settings = load_settings(_env_file=None)

        assert settings.supabase_url == "https://demo.supabase.co"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("REQUIRE_EMAIL_CONFIRMATION", "false")

        settings = load_settings(
            _env_file=None,
            supabase_url="http://localhost:54321",
            supabase_anon_key="k",
            metrics_port=9105,
        )

        assert settings.log_level == "DEBUG"
        assert settings.require_email_confirmation is False
        assert settings.metrics_port == 9105

    @pytest.mark.parametrize(
        "url, key",
        [("ftp://demo", "k"), ("https://demo.supabase.co", "   ")],
    )
    def test_invalid_values(self, url, key):
        with pytest.raises(ConfigurationError):
            load_settings(_env_file=None, supabase_url=url, supabase_anon_key=key)

    def test_bad_locale(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_LOCALE", "fr")
        with pytest.raises(ConfigurationError):
            load_settings(_env_file=None, supabase_url="https://x.co", supabase_anon_key="k")

    def test_display_timezone(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Europe/Madrid")

        settings = load_settings(_env_file=None, supabase_url="https://x.co", supabase_anon_key="k")

        assert settings.display_timezone == "Europe/Madrid"
        assert str(settings.timezone) == "Europe/Madrid"

    def test_timezone_defaults_to_server_local(self):
        settings = load_settings(_env_file=None, supabase_url="https://x.co", supabase_anon_key="k")
        assert settings.timezone is None

    def test_unknown_timezone(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Mars/Olympus_Mons")
        with pytest.raises(ConfigurationError):
            load_settings(_env_file=None, supabase_url="https://x.co", supabase_anon_key="k")
