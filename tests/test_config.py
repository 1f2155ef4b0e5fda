import pytest

from config.settings import AppConfig, load_config


ENV_NAMES = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_KEY",
    "SUPABASE_ANON_KEY",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "FINANCIAL_SUMMARY_FUNCTION",
    "AVATAR_BUCKET",
    "DASHBOARD_API_URL",
    "REFRESH_INTERVAL_SECONDS",
)


def _clear_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)

    config = load_config()

    assert config.supabase_configured is False
    assert config.cors_origins == ["*"]
    assert config.log_level == "INFO"
    assert config.summary_function == "financial-summary"
    assert config.avatar_bucket == "avatars"
    assert config.api_url == "http://127.0.0.1:8000"
    assert config.refresh_interval_seconds == 60


def test_service_role_key_takes_precedence(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")

    config = load_config()

    assert config.supabase_key == "service"
    assert config.supabase_anon_key == "anon"
    assert config.supabase_configured is True
    assert config.rest_url == "https://abc.supabase.co/rest/v1"
    assert config.functions_url == "https://abc.supabase.co/functions/v1"
    assert config.storage_url == "https://abc.supabase.co/storage/v1"


def test_overrides(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://app.example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("DASHBOARD_API_URL", "http://api.local:9000/")
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "15")

    config = load_config()

    assert config.cors_origins == ["http://localhost:5173", "https://app.example.com"]
    assert config.log_level == "DEBUG"
    assert config.api_url == "http://api.local:9000"
    assert config.refresh_interval_seconds == 15


def test_invalid_refresh_interval_falls_back(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "soon")

    assert load_config().refresh_interval_seconds == 60


@pytest.mark.parametrize("raw", ["0", "-5"])
def test_non_positive_refresh_interval_falls_back(monkeypatch, raw):
    _clear_env(monkeypatch)
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", raw)

    assert load_config().refresh_interval_seconds == 60


def test_config_is_immutable():
    config = AppConfig()
    try:
        config.log_level = "DEBUG"
    except AttributeError:
        pass
    else:
        raise AssertionError("AppConfig should be frozen")
