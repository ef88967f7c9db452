from fastapi import Request

from bot_dispatcher import BotDispatcher


def get_dispatcher(request: Request) -> BotDispatcher | None:
    return getattr(request.app.state, "dispatcher", None)
