import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.dependencies import get_dispatcher
from api.webhook.schemas import WebhookAck, WebhookError
from bot_dispatcher import BotDispatcher
from telegram_models import MalformedUpdateError
from .service import handle_webhook, payload_update_id, read_update_payload

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=WebhookError(error=message).model_dump())


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={400: {"model": WebhookError}, 500: {"model": WebhookError}},
)
async def webhook_route(request: Request, dispatcher: BotDispatcher | None = Depends(get_dispatcher)):
    if dispatcher is None:
        logger.error("Bot controller not initialized")
        return _error(500, "Internal server error")

    raw = None
    try:
        raw = await read_update_payload(request)
        return await handle_webhook(dispatcher, raw)
    except MalformedUpdateError:
        return _error(400, "Invalid webhook data")
    except Exception:
        logger.exception("Error handling webhook update_id=%s", payload_update_id(raw))
        return _error(500, "Internal server error")
