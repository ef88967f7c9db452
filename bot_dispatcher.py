import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from gemini_chat import AIServiceError, ContextEntry, ErrorKind, GeminiGateway, get_fallback_message
from telegram_client import TelegramClient
from telegram_models import MalformedUpdateError, Message, Update, parse_update
from utils import escape_html, truncate_text

logger = logging.getLogger(__name__)


GREETING_TEXT = "👋 Hi! I'm your AI assistant. Ask me anything!"
HELP_TEXT = (
    "📋 Available commands:\n"
    "/start - Start the bot\n"
    "/help - Show this help\n"
    "/status - Bot status\n"
    "\n"
    "Just send me a message and I'll answer!"
)
UNKNOWN_COMMAND_TEXT = "Unknown command. Use /help to see the list of commands."
TEXT_ONLY_TEXT = "Please send a text message."
PROCESSING_ERROR_TEXT = "Sorry, something went wrong while processing your message. Please try again."
STATUS_ERROR_TEXT = "❌ Failed to get the bot status."


class SendFailureError(RuntimeError):
    """A reply could not be delivered to the chat."""


def parse_command(text: str) -> str:
    """Return the lower-cased command name of ``text`` without any ``@botname`` suffix."""
    parts = text.split(maxsplit=1)
    token = parts[0] if parts else text
    return token.lower().split("@", 1)[0]


def _flag(value: bool, ok: str, failed: str) -> str:
    return f"✅ {ok}" if value else f"❌ {failed}"


class BotDispatcher:
    def __init__(self, telegram: TelegramClient, gateway: GeminiGateway) -> None:
        self.telegram = telegram
        self.gateway = gateway
        self._commands: dict[str, Callable[[int], Awaitable[None]]] = {
            "/start": self._handle_start,
            "/help": self._handle_help,
            "/status": self.handle_status_command,
        }

    def validate(self, raw: Any) -> bool:
        try:
            parse_update(raw)
        except MalformedUpdateError:
            return False
        return True

    async def handle_update(self, raw: Any) -> Update:
        try:
            update = parse_update(raw)
        except MalformedUpdateError:
            logger.warning("Invalid webhook received payload_type=%s", type(raw).__name__)
            raise

        message = update.message
        logger.info(
            "Webhook received update_id=%s message_id=%s chat_id=%s has_message=%s",
            update.update_id,
            message.message_id if message else None,
            message.chat_id if message else None,
            message is not None,
        )

        if message is not None:
            await self.process_message(message)
        return update

    async def process_message(self, message: Message) -> None:
        try:
            await self.route(message)
        except SendFailureError:
            raise
        except Exception:
            logger.exception("Error processing message chat_id=%s message_id=%s", message.chat_id, message.message_id)
            await self.send_message(message.chat_id, PROCESSING_ERROR_TEXT)

    async def route(self, message: Message) -> None:
        text = message.text or ""
        is_command = text.startswith("/")
        logger.info(
            "Processing message chat_id=%s user_id=%s text=%r is_command=%s",
            message.chat_id,
            message.user_id,
            truncate_text(text),
            is_command,
        )

        if is_command:
            await self.handle_command(message.chat_id, text)
        elif not text.strip():
            await self.send_message(message.chat_id, TEXT_ONLY_TEXT)
        else:
            await self.handle_text_message(message.chat_id, message.user_id, text)

    async def handle_command(self, chat_id: int, text: str) -> None:
        command = parse_command(text)
        logger.info("Handling command chat_id=%s command=%s", chat_id, command)
        handler = self._commands.get(command)
        if handler is None:
            await self.send_message(chat_id, UNKNOWN_COMMAND_TEXT)
            return
        await handler(chat_id)

    async def _handle_start(self, chat_id: int) -> None:
        await self.send_message(chat_id, GREETING_TEXT)

    async def _handle_help(self, chat_id: int) -> None:
        await self.send_message(chat_id, HELP_TEXT)

    async def handle_status_command(self, chat_id: int) -> None:
        try:
            status = self.gateway.get_status()
            available = await self.gateway.is_available()
            checked_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
            report = (
                "🤖 <b>Bot status</b>\n\n"
                f"🧠 <b>AI service:</b> {_flag(available, 'Available', 'Unavailable')}\n"
                f"🔧 <b>Initialization:</b> {_flag(status.initialized, 'OK', 'Failed')}\n"
                f"🔑 <b>API key:</b> {_flag(status.has_api_key, 'Configured', 'Missing')}\n"
                f"🤖 <b>Model:</b> {escape_html(status.model_name)}\n\n"
                f"⏰ <b>Checked at:</b> {checked_at}"
            )
        except Exception:
            logger.exception("Error getting status chat_id=%s", chat_id)
            await self.send_message(chat_id, STATUS_ERROR_TEXT)
            return
        await self.send_message(chat_id, report)

    async def handle_text_message(
        self,
        chat_id: int,
        user_id: Optional[int],
        text: str,
        context: Optional[Iterable[ContextEntry | Mapping[str, Any]]] = None,
    ) -> None:
        logger.info("Handling text message chat_id=%s user_id=%s text_len=%d", chat_id, user_id, len(text))

        try:
            await self.telegram.send_chat_action(chat_id, "typing")
        except Exception:
            logger.warning("Typing indicator failed chat_id=%s", chat_id, exc_info=True)

        try:
            reply = await self.gateway.generate_response(text, context)
        except AIServiceError as exc:
            logger.error("AI reply failed chat_id=%s kind=%s", chat_id, exc.kind.value)
            await self.send_message(chat_id, get_fallback_message(exc.kind))
            return
        except Exception:
            logger.exception("Unexpected AI failure chat_id=%s", chat_id)
            await self.send_message(chat_id, get_fallback_message(ErrorKind.GENERAL_ERROR))
            return

        await self.send_message(chat_id, reply, parse_mode=None)

    async def send_message(self, chat_id: int, text: str, **options: Any) -> dict[str, Any]:
        options.setdefault("parse_mode", "HTML")
        try:
            result = await self.telegram.send_message(chat_id, text, **options)
        except Exception as exc:
            logger.exception("Error sending message chat_id=%s text_len=%d", chat_id, len(text))
            raise SendFailureError(f"Failed to send message to chat {chat_id}") from exc

        logger.info(
            "Message sent chat_id=%s message_id=%s text_len=%d",
            chat_id,
            (result or {}).get("message_id"),
            len(text),
        )
        return result

    async def get_bot_info(self) -> dict[str, Any]:
        try:
            return await self.telegram.get_me()
        except Exception:
            logger.exception("Error getting bot info")
            raise
