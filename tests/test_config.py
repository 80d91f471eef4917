import pytest

from lumi.core.config import EmailSettings, load_coach_settings
from lumi.core.errors import ConfigurationError

ENV_NAMES = [
    "SUPABASE_URL",
    "VITE_SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SUPABASE_ANON_KEY",
    "VITE_SUPABASE_ANON_KEY",
    "GEMINI_API_KEY",
    "VITE_GEMINI_API_KEY",
    "GEMINI_MODEL",
    "VITE_GEMINI_MODEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_camel_case_options_are_accepted():
    settings = load_coach_settings(
        {
            "supabaseUrl": "https://demo.supabase.co",
            "supabaseAnonKey": "anon",
            "geminiApiKey": "gemini",
            "geminiModel": "gemini-1.5-pro",
        }
    )
    assert settings.supabase_url == "https://demo.supabase.co"
    assert settings.supabase_key == "anon"
    assert settings.gemini_model == "gemini-1.5-pro"


def test_service_role_key_preferred_over_anon_key():
    settings = load_coach_settings(
        {
            "supabaseUrl": "https://demo.supabase.co",
            "supabaseServiceRoleKey": "service",
            "supabaseAnonKey": "anon",
            "geminiApiKey": "gemini",
        }
    )
    assert settings.supabase_key == "service"


def test_environment_fills_missing_options(monkeypatch):
    monkeypatch.setenv("VITE_SUPABASE_URL", "http://localhost:54321")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("GEMINI_API_KEY", "gemini")

    settings = load_coach_settings()
    assert settings.supabase_url == "http://localhost:54321"
    assert settings.gemini_api_key == "gemini"


def test_explicit_option_wins_over_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    settings = load_coach_settings(
        {"supabaseUrl": "https://explicit.supabase.co", "supabaseAnonKey": "a", "geminiApiKey": "g"}
    )
    assert settings.supabase_url == "https://explicit.supabase.co"


@pytest.mark.parametrize("url", [None, "not a url", "ftp://demo.supabase.co", "https://"])
def test_invalid_supabase_url_is_rejected(url):
    with pytest.raises(ConfigurationError, match="supabaseUrl"):
        load_coach_settings({"supabaseUrl": url, "supabaseAnonKey": "a", "geminiApiKey": "g"})


def test_missing_supabase_keys_are_rejected():
    with pytest.raises(ConfigurationError, match="supabaseServiceRoleKey or supabaseAnonKey"):
        load_coach_settings({"supabaseUrl": "https://demo.supabase.co", "geminiApiKey": "g"})


def test_missing_gemini_key_is_rejected():
    with pytest.raises(ConfigurationError, match="geminiApiKey"):
        load_coach_settings({"supabaseUrl": "https://demo.supabase.co", "supabaseAnonKey": "a"})


def test_unknown_option_is_rejected():
    with pytest.raises(ConfigurationError, match="Unknown configuration option"):
        load_coach_settings({"supabaseUrl": "https://demo.supabase.co", "colour": "blue"})


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_email_settings_defaults(monkeypatch):
    for name in ["APP_URL", "VITE_APP_URL", "APP_NAME", "EMAIL_TRANSPORT"]:
        monkeypatch.delenv(name, raising=False)
    settings = EmailSettings()
    assert settings.app_name == "Lumi"
    assert settings.app_url == "http://localhost:5173"
    assert settings.email_server_port == 4001


def test_email_settings_read_vite_app_url(monkeypatch):
    monkeypatch.delenv("APP_URL", raising=False)
    monkeypatch.setenv("VITE_APP_URL", "https://lumi.example")
    assert EmailSettings().app_url == "https://lumi.example"
