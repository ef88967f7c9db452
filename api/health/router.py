from typing import Any

from fastapi import APIRouter, Request

from api.health.schemas import RootResponse
from .service import build_health

router = APIRouter()


@router.get("/health")
async def health_route(request: Request) -> dict[str, Any]:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    health = await build_health(dispatcher, request.app.state.started_at)
    # "bot" stays in the body as null; "bot_error" only appears on failure.
    exclude = {"bot_error"} if health.bot_error is None else set()
    return health.model_dump(exclude=exclude)


@router.get("/", response_model=RootResponse)
def root_route() -> RootResponse:
    return RootResponse(message="Telegram AI Assistant Bot is running!", status="active")
