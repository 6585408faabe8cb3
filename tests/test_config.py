"""Settings loaded from the environment."""

from datetime import timedelta

import pytest

from backend.config import DEFAULT_CITIES, Settings

ENV_VARS = [
    "AGG_POLL_INTERVAL_MS", "AGG_KEEP_MS", "AGG_CITIES", "AGG_CONCURRENCY", "PROVIDER_ORDER",
    "UPSTREAM_TIMEOUT_SECONDS", "OPENAQ_API_KEY", "WAQI_TOKEN", "WAQI_BASE_URL", "POLL_ON_STARTUP",
    "POLL_PROGRESS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr("backend.config.load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettingsFromEnv:

    def test_defaults(self):
        settings = Settings.from_env()

        assert settings.poll_interval == timedelta(minutes=5)
        assert settings.retention == timedelta(hours=24)
        assert settings.cities == tuple(DEFAULT_CITIES)
        assert len(settings.cities) == 30
        assert settings.concurrency == 6
        assert settings.provider_order == ("openaq", "waqi")
        assert settings.openaq_api_key is None
        assert settings.poll_on_startup is True
        assert settings.poll_progress is False

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AGG_POLL_INTERVAL_MS", "60000")
        monkeypatch.setenv("AGG_KEEP_MS", "3600000")
        monkeypatch.setenv("AGG_CITIES", "Delhi, Pune ,,")
        monkeypatch.setenv("AGG_CONCURRENCY", "4")
        monkeypatch.setenv("PROVIDER_ORDER", "WAQI")
        monkeypatch.setenv("WAQI_TOKEN", "secret")
        monkeypatch.setenv("WAQI_BASE_URL", "https://example.test/")
        monkeypatch.setenv("POLL_ON_STARTUP", "false")
        monkeypatch.setenv("POLL_PROGRESS", "true")

        settings = Settings.from_env()

        assert settings.poll_interval == timedelta(seconds=60)
        assert settings.retention == timedelta(hours=1)
        assert settings.cities == ("Delhi", "Pune")
        assert settings.concurrency == 4
        assert settings.provider_order == ("waqi",)
        assert settings.waqi_token == "secret"
        assert settings.waqi_base_url == "https://example.test"
        assert settings.poll_on_startup is False
        assert settings.poll_progress is True
        assert "secret" not in repr(settings)

    @pytest.mark.parametrize("name, value", [
        ("AGG_POLL_INTERVAL_MS", "soon"),
        ("UPSTREAM_TIMEOUT_SECONDS", "-1"),
        ("PROVIDER_ORDER", "openaq,airvisual"),
    ])
    def test_invalid_values_raise(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            Settings.from_env()
