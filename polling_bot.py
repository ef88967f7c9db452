import asyncio
import logging
import sys
from typing import Optional

from bot_dispatcher import BotDispatcher
from gemini_chat import GeminiGateway
from settings import configure_logging, load_settings, require_telegram_token
from telegram_client import TelegramAPIError, TelegramClient
from telegram_models import MalformedUpdateError

logger = logging.getLogger(__name__)


async def process_batch(dispatcher: BotDispatcher, updates: list[dict], offset: int | None) -> int | None:
    """Dispatch ``updates`` one by one and return the next ``getUpdates`` offset."""
    for raw in updates:
        update_id = raw.get("update_id") if isinstance(raw, dict) else None
        if isinstance(update_id, int):
            offset = max(offset or 0, update_id + 1)
        try:
            await dispatcher.handle_update(raw)
        except MalformedUpdateError:
            logger.warning("Skipping malformed update update_id=%s", update_id)
        except Exception:
            logger.exception("Failed to handle update update_id=%s", update_id)
    return offset


async def poll_forever(dispatcher: BotDispatcher, poll_timeout: int = 30) -> None:
    offset: int | None = None
    while True:
        try:
            updates = await dispatcher.telegram.get_updates(offset=offset, timeout=poll_timeout)
        except TelegramAPIError as exc:
            logger.error("getUpdates failed: %s", exc.description)
            await asyncio.sleep(5)
            continue
        offset = await process_batch(dispatcher, updates, offset)


async def run(token: str, api_key: str | None, model_name: str) -> None:
    async with TelegramClient(token) as telegram:
        await telegram.delete_webhook()
        dispatcher = BotDispatcher(telegram, GeminiGateway(api_key, model_name=model_name))
        print("Test bot started with polling. Press Ctrl+C to stop.")
        await poll_forever(dispatcher)


def main(argv: Optional[list[str]] = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        token = require_telegram_token(settings)
        model_name = args[0] if args else settings.gemini_model
        asyncio.run(run(token, settings.gemini_api_key, model_name))
        return 0
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0
    except Exception as exc:
        print(f"Startup error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
