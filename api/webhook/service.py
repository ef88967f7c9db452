import json
from typing import Any

from fastapi import Request

from api.webhook.schemas import WebhookAck
from bot_dispatcher import BotDispatcher
from telegram_models import MalformedUpdateError


async def read_update_payload(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body) if body else None
    except ValueError as exc:
        raise MalformedUpdateError("Request body is not valid JSON") from exc


def payload_update_id(raw: Any) -> Any:
    return raw.get("update_id") if isinstance(raw, dict) else None


async def handle_webhook(dispatcher: BotDispatcher, raw: Any) -> WebhookAck:
    await dispatcher.handle_update(raw)
    return WebhookAck()
