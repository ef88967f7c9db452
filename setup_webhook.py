import asyncio
import logging
import sys
from typing import Optional

from settings import configure_logging, load_settings, require_telegram_token, require_webhook_url
from telegram_client import TelegramAPIError, TelegramClient

logger = logging.getLogger(__name__)


async def register_webhook(token: str, url: str, drop_pending_updates: bool = False) -> dict:
    async with TelegramClient(token) as telegram:
        await telegram.set_webhook(url, drop_pending_updates=drop_pending_updates)
        return await telegram.get_webhook_info()


async def remove_webhook(token: str) -> bool:
    async with TelegramClient(token) as telegram:
        return await telegram.delete_webhook()


def main(argv: Optional[list[str]] = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    delete = "--delete" in args
    drop_pending = "--drop-pending" in args
    positional = [arg for arg in args if not arg.startswith("--")]

    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        token = require_telegram_token(settings)

        if delete:
            asyncio.run(remove_webhook(token))
            print("Webhook removed.")
            return 0

        url = positional[0] if positional else require_webhook_url(settings)
        print(f"Setting up webhook: {url}")
        info = asyncio.run(register_webhook(token, url, drop_pending_updates=drop_pending))
        print("Webhook set successfully!")
        print(f"Pending updates: {info.get('pending_update_count', 0)}")
        return 0
    except TelegramAPIError as exc:
        print(f"Failed to set webhook: {exc.description}")
        return 1
    except Exception as exc:
        print(f"Startup error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
