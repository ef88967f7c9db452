import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from api.health.router import router as health_router
from api.webhook.router import router as webhook_router
from bot_dispatcher import BotDispatcher
from gemini_chat import GeminiGateway
from settings import Settings, configure_logging, load_settings, require_telegram_token
from telegram_client import TelegramClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "dispatcher", None) is not None:
        yield
        return

    settings: Settings = app.state.settings or load_settings()
    token = require_telegram_token(settings)
    async with TelegramClient(token) as telegram:
        gateway = GeminiGateway(settings.gemini_api_key, model_name=settings.gemini_model)
        app.state.dispatcher = BotDispatcher(telegram, gateway)
        logger.info("Bot controller initialized model=%s ai_initialized=%s", gateway.model_name, gateway.initialized)
        try:
            yield
        finally:
            app.state.dispatcher = None
            logger.info("Shutting down bot controller")


def create_app(dispatcher: BotDispatcher | None = None, settings: Settings | None = None) -> FastAPI:
    app = FastAPI(title="Telegram AI Assistant Bot", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    app.state.started_at = time.monotonic()

    app.include_router(health_router)
    app.include_router(webhook_router)
    return app


app = create_app()


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("Server starting on port %d", settings.port)
    logger.info("Health check: http://localhost:%d/health", settings.port)
    logger.info("Webhook endpoint: http://localhost:%d/webhook", settings.port)
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
