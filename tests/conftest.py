import asyncio
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app import create_app
from bot_dispatcher import BotDispatcher
from gemini_chat import GeminiGateway


class FakeTelegram:
    """Records outbound Bot API calls instead of performing them."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.actions: list[tuple[int, str]] = []
        self.fail_send = False
        self.fail_action = False
        self.me: dict[str, Any] | Exception = {"id": 42, "is_bot": True, "username": "relay_bot", "first_name": "Relay"}

    async def send_message(self, chat_id, text, parse_mode="HTML", **options):
        if self.fail_send:
            raise RuntimeError("Bad Request: chat not found")
        self.sent.append({"chat_id": chat_id, "text": text, "parse_mode": parse_mode, **options})
        return {"message_id": len(self.sent), "chat": {"id": chat_id}}

    async def send_chat_action(self, chat_id, action="typing"):
        if self.fail_action:
            raise RuntimeError("network down")
        self.actions.append((chat_id, action))
        return True

    async def get_me(self):
        if isinstance(self.me, Exception):
            raise self.me
        return self.me


class FakeModels:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.reply: str | None = "Hi there"
        self.error: Exception | None = None

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


class FakeGenaiClient:
    def __init__(self) -> None:
        self.models = FakeModels()
        self.aio = SimpleNamespace(models=self.models)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture()
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture()
def genai_client() -> FakeGenaiClient:
    return FakeGenaiClient()


@pytest.fixture()
def gateway(genai_client) -> GeminiGateway:
    return GeminiGateway("test-key", model_name="gemini-test", client=genai_client)


@pytest.fixture()
def offline_gateway(genai_client) -> GeminiGateway:
    return GeminiGateway(None, model_name="gemini-test", client=genai_client)


@pytest.fixture()
def dispatcher(telegram, gateway) -> BotDispatcher:
    return BotDispatcher(telegram, gateway)


@pytest.fixture()
def client(dispatcher):
    """A test client for the FastAPI app wired to the fake collaborators."""
    with TestClient(create_app(dispatcher=dispatcher)) as test_client:
        yield test_client


def make_update(text: str | None = "hello", update_id: int = 1, chat_id: int = 100) -> dict[str, Any]:
    message: dict[str, Any] = {"message_id": 5, "chat": {"id": chat_id, "type": "private"}, "from": {"id": 7, "is_bot": False}}
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}
