import asyncio
import logging
import sys
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Iterable, Literal, Mapping, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from settings import DEFAULT_MODEL, configure_logging, load_settings

logger = logging.getLogger(__name__)


CONTEXT_WINDOW = 10
PROBE_PROMPT = "Hello"

GENERATION_CONFIG = types.GenerateContentConfig(
    temperature=0.7,
    top_k=40,
    top_p=0.95,
    max_output_tokens=1024,
)
PROBE_CONFIG = types.GenerateContentConfig(
    temperature=0.1,
    max_output_tokens=10,
)


class ErrorKind(str, Enum):
    QUOTA_EXCEEDED = "AI_QUOTA_EXCEEDED"
    INVALID_KEY = "AI_INVALID_KEY"
    NETWORK_ERROR = "AI_NETWORK_ERROR"
    GENERAL_ERROR = "AI_GENERAL_ERROR"
    NOT_CONFIGURED = "AI_NOT_CONFIGURED"


FALLBACK_MESSAGES: dict[str, str] = {
    ErrorKind.QUOTA_EXCEEDED.value: "⏳ The AI request limit has been reached. Please try again later.",
    ErrorKind.INVALID_KEY.value: "🔑 There is a problem with the AI access key. Please contact the administrator.",
    ErrorKind.NETWORK_ERROR.value: "🌐 Network problem. Please try again in a few seconds.",
    ErrorKind.GENERAL_ERROR.value: "🤖 The AI service is having a temporary problem. Please try again later.",
    ErrorKind.NOT_CONFIGURED.value: "⚙️ The AI service is not configured. Please contact the administrator.",
}
DEFAULT_FALLBACK_MESSAGE = "😔 Sorry, the AI is temporarily unavailable. Please try again later."


class AIServiceError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class GatewayNotInitializedError(AIServiceError):
    def __init__(self) -> None:
        super().__init__(ErrorKind.NOT_CONFIGURED, "AI service not initialized")


class InvalidPromptError(AIServiceError, ValueError):
    def __init__(self) -> None:
        super().__init__(ErrorKind.GENERAL_ERROR, "Invalid prompt provided")


@dataclass(frozen=True)
class ContextEntry:
    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class ServiceStatus:
    initialized: bool
    has_api_key: bool
    model_name: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


_QUOTA_STATUSES = {"RESOURCE_EXHAUSTED"}
_KEY_STATUSES = {"UNAUTHENTICATED", "PERMISSION_DENIED"}
_NETWORK_STATUSES = {"UNAVAILABLE", "DEADLINE_EXCEEDED"}


def classify_error(exc: BaseException) -> ErrorKind:
    """Map a generation failure onto an :class:`ErrorKind`.

    Structured information (API status codes, transport exception types) is
    consulted first; the message substring rules only apply when neither
    identifies the failure.
    """
    if isinstance(exc, AIServiceError):
        return exc.kind

    if isinstance(exc, genai_errors.APIError):
        code = getattr(exc, "code", None)
        status = (getattr(exc, "status", None) or "").upper()
        if code == 429 or status in _QUOTA_STATUSES:
            return ErrorKind.QUOTA_EXCEEDED
        if code in (401, 403) or status in _KEY_STATUSES:
            return ErrorKind.INVALID_KEY
        if code in (408, 503, 504) or status in _NETWORK_STATUSES:
            return ErrorKind.NETWORK_ERROR

    if isinstance(exc, (httpx.TransportError, asyncio.TimeoutError, ConnectionError)):
        return ErrorKind.NETWORK_ERROR

    message = str(exc)
    if "quota" in message or "limit" in message:
        return ErrorKind.QUOTA_EXCEEDED
    if "API key" in message:
        return ErrorKind.INVALID_KEY
    if "network" in message or "timeout" in message:
        return ErrorKind.NETWORK_ERROR
    return ErrorKind.GENERAL_ERROR


def get_fallback_message(kind: ErrorKind | str | None) -> str:
    key = kind.value if isinstance(kind, ErrorKind) else kind
    return FALLBACK_MESSAGES.get(key or "", DEFAULT_FALLBACK_MESSAGE)


def _entry_role_and_content(entry: ContextEntry | Mapping[str, Any]) -> tuple[str, str]:
    if isinstance(entry, Mapping):
        return str(entry.get("role", "")), str(entry.get("content", ""))
    return entry.role, entry.content


def format_context(context: Iterable[ContextEntry | Mapping[str, Any]] | None) -> str:
    entries = list(context or [])
    if not entries:
        return ""

    lines = []
    for entry in entries[-CONTEXT_WINDOW:]:
        role, content = _entry_role_and_content(entry)
        label = "User" if role == "user" else "Assistant"
        lines.append(f"{label}: {content}")
    return "Conversation context:\n" + "\n".join(lines) + "\n"


def build_prompt(prompt: str, context: Iterable[ContextEntry | Mapping[str, Any]] | None = None) -> str:
    context_block = format_context(context)
    if not context_block:
        return prompt
    return f"{context_block}\n\nUser: {prompt}"


def _user_content(text: str) -> list[types.Content]:
    return [types.Content(role="user", parts=[types.Part(text=text)])]


class GeminiGateway:
    def __init__(
        self,
        api_key: str | None,
        model_name: str = DEFAULT_MODEL,
        client: Any = None,
    ) -> None:
        self._api_key = (api_key or "").strip() or None
        self.model_name = model_name
        self._client = client
        self._initialized = False
        self.initialize()

    def initialize(self) -> None:
        try:
            if not self._api_key:
                raise RuntimeError(
                    "No AI API key found. Set GOOGLE_AI_API_KEY (or GEMINI_API_KEY) in your environment or .env file."
                )
            if self._client is None:
                self._client = genai.Client(api_key=self._api_key)
            self._initialized = True
            logger.info("AI service initialized model=%s", self.model_name)
        except Exception:
            logger.exception("Failed to initialize AI service")
            self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def generate_response(
        self,
        prompt: str,
        context: Optional[Iterable[ContextEntry | Mapping[str, Any]]] = None,
    ) -> str:
        if not self._initialized:
            raise GatewayNotInitializedError()
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidPromptError()

        context_entries = list(context or [])
        full_prompt = build_prompt(prompt, context_entries)
        logger.info(
            "Calling Gemini model=%s prompt_len=%d context_entries=%d",
            self.model_name,
            len(prompt),
            len(context_entries),
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=_user_content(full_prompt),
                config=GENERATION_CONFIG,
            )
        except Exception as exc:
            kind = classify_error(exc)
            logger.exception("Gemini request failed model=%s kind=%s", self.model_name, kind.value)
            raise AIServiceError(kind, str(exc)) from exc

        text = response.text or ""
        if not text.strip():
            logger.error("Empty response from AI model model=%s", self.model_name)
            raise AIServiceError(ErrorKind.GENERAL_ERROR, "Empty response from AI model")

        logger.info(
            "Gemini response received model=%s prompt_len=%d resp_len=%d has_context=%s",
            self.model_name,
            len(prompt),
            len(text),
            bool(context_entries),
        )
        return text

    async def is_available(self) -> bool:
        """Run a tiny live generation. Every call reaches the API."""
        if not self._initialized:
            return False
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_name,
                contents=_user_content(PROBE_PROMPT),
                config=PROBE_CONFIG,
            )
            return bool(response.text)
        except Exception:
            logger.warning("AI service availability check failed", exc_info=True)
            return False

    def get_status(self) -> ServiceStatus:
        return ServiceStatus(
            initialized=self._initialized,
            has_api_key=bool(self._api_key),
            model_name=self.model_name,
        )

    @staticmethod
    def get_fallback_message(kind: ErrorKind | str | None) -> str:
        return get_fallback_message(kind)


async def chat_loop(gateway: GeminiGateway) -> None:
    print(f"Gemini chat started with model: {gateway.model_name}")
    print("Type 'exit' to quit.\n")

    loop = asyncio.get_running_loop()
    while True:
        try:
            user_input = (await loop.run_in_executor(None, input, "You: ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            return

        if not user_input:
            continue
        if user_input.lower() in {"exit", "quit"}:
            print("Goodbye!")
            return

        try:
            text = await gateway.generate_response(user_input)
            print(f"Gemini: {text}\n")
        except AIServiceError as exc:
            print(f"Error: {get_fallback_message(exc.kind)}\n")


def main(argv: Optional[list[str]] = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    try:
        settings = load_settings()
        configure_logging(settings.log_level)
        model_name = args[0] if args else settings.gemini_model
        gateway = GeminiGateway(settings.gemini_api_key, model_name=model_name)
        if not gateway.initialized:
            print("Startup error: AI service is not configured.")
            return 1
        asyncio.run(chat_loop(gateway))
        return 0
    except Exception as exc:
        print(f"Startup error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
