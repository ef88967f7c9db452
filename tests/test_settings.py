import pytest

import settings as settings_module
from settings import DEFAULT_MODEL, DEFAULT_PORT, load_settings, require_telegram_token, require_webhook_url

_VARIABLES = (
    "TELEGRAM_BOT_TOKEN",
    "GOOGLE_AI_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "WEBHOOK_URL",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's local .env out of the tests
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: False)


def test_defaults():
    loaded = load_settings()

    assert loaded.telegram_bot_token is None
    assert loaded.gemini_api_key is None
    assert loaded.gemini_model == DEFAULT_MODEL
    assert loaded.port == DEFAULT_PORT
    assert loaded.log_level == "INFO"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("GEMINI_API_KEY", "gem-key")
    monkeypatch.setenv("GOOGLE_AI_API_KEY", "google-ai-key")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("WEBHOOK_URL", "https://example.com/webhook")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    loaded = load_settings()

    assert loaded.telegram_bot_token == "123:abc"
    assert loaded.gemini_api_key == "google-ai-key"
    assert loaded.port == 8080
    assert loaded.log_level == "DEBUG"
    assert require_webhook_url(loaded) == "https://example.com/webhook"


def test_invalid_port(monkeypatch):
    monkeypatch.setenv("PORT", "eighty")

    with pytest.raises(ValueError):
        load_settings()


def test_required_values_raise_when_missing():
    loaded = load_settings()

    with pytest.raises(RuntimeError, match="TELEGRAM_BOT_TOKEN"):
        require_telegram_token(loaded)
    with pytest.raises(RuntimeError, match="WEBHOOK_URL"):
        require_webhook_url(loaded)
