import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_PORT = 3000
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_AI_KEY_VARIABLES = ("GOOGLE_AI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY")


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str | None
    gemini_api_key: str | None
    gemini_model: str = DEFAULT_MODEL
    webhook_url: str | None = None
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def _getenv(name: str) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or None


def _get_ai_key() -> str | None:
    for name in _AI_KEY_VARIABLES:
        value = _getenv(name)
        if value:
            return value
    return None


def load_settings() -> Settings:
    load_dotenv()
    raw_port = _getenv("PORT")
    try:
        port = int(raw_port) if raw_port else DEFAULT_PORT
    except ValueError as exc:
        raise ValueError(f"PORT must be an integer, got {raw_port!r}") from exc

    return Settings(
        telegram_bot_token=_getenv("TELEGRAM_BOT_TOKEN"),
        gemini_api_key=_get_ai_key(),
        gemini_model=_getenv("GEMINI_MODEL") or DEFAULT_MODEL,
        webhook_url=_getenv("WEBHOOK_URL"),
        port=port,
        log_level=(_getenv("LOG_LEVEL") or "INFO").upper(),
    )


def require_telegram_token(settings: Settings) -> str:
    if not settings.telegram_bot_token:
        raise RuntimeError(
            "Missing TELEGRAM_BOT_TOKEN. Add it to your environment or .env file."
        )
    return settings.telegram_bot_token


def require_webhook_url(settings: Settings) -> str:
    if not settings.webhook_url:
        raise RuntimeError(
            "Missing WEBHOOK_URL. Set it to your public app URL + /webhook, "
            "e.g. https://your-app.example.com/webhook"
        )
    return settings.webhook_url


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    # httpx logs full request URLs at INFO, and Telegram URLs embed the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)
