import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramAPIError(RuntimeError):
    def __init__(self, method: str, description: str, error_code: int | None = None) -> None:
        super().__init__(f"Telegram {method} failed: {description}")
        self.method = method
        self.description = description
        self.error_code = error_code


class TelegramClient:
    def __init__(
        self,
        token: str,
        base_url: str = TELEGRAM_API_BASE,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Telegram bot token is required")
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "TelegramClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _call(self, method: str, payload: dict[str, Any] | None = None, timeout: float | None = None) -> Any:
        url = f"{self._base_url}/bot{self._token}/{method}"
        body = {key: value for key, value in (payload or {}).items() if value is not None}
        request_kwargs: dict[str, Any] = {"json": body}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        try:
            resp = await self._http.post(url, **request_kwargs)
        except httpx.HTTPError as exc:
            logger.error("Telegram %s transport error: %s", method, type(exc).__name__)
            raise TelegramAPIError(method, f"transport error: {type(exc).__name__}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Telegram %s returned non-JSON body status=%d", method, resp.status_code)
            raise TelegramAPIError(method, f"HTTP {resp.status_code} with non-JSON body", resp.status_code) from exc

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description", "unknown error") if isinstance(data, dict) else "unknown error"
            error_code = data.get("error_code", resp.status_code) if isinstance(data, dict) else resp.status_code
            logger.error("Telegram %s failed status=%d description=%s", method, resp.status_code, description)
            raise TelegramAPIError(method, description, error_code)

        return data.get("result")

    async def send_message(self, chat_id: int, text: str, parse_mode: str | None = "HTML", **options: Any) -> dict[str, Any]:
        payload = {"chat_id": chat_id, "text": text, "parse_mode": parse_mode, **options}
        return await self._call("sendMessage", payload)

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> bool:
        return bool(await self._call("sendChatAction", {"chat_id": chat_id, "action": action}))

    async def get_me(self) -> dict[str, Any]:
        return await self._call("getMe")

    async def set_webhook(self, url: str, drop_pending_updates: bool = False) -> bool:
        payload = {"url": url, "drop_pending_updates": drop_pending_updates or None}
        return bool(await self._call("setWebhook", payload))

    async def delete_webhook(self, drop_pending_updates: bool = False) -> bool:
        return bool(await self._call("deleteWebhook", {"drop_pending_updates": drop_pending_updates or None}))

    async def get_webhook_info(self) -> dict[str, Any]:
        return await self._call("getWebhookInfo")

    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict[str, Any]]:
        # The HTTP timeout must outlast Telegram's long-poll window.
        result = await self._call(
            "getUpdates",
            {"offset": offset, "timeout": timeout},
            timeout=timeout + 10,
        )
        return list(result or [])
