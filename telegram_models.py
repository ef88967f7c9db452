from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, ValidatorFunctionWrapHandler, field_validator


class MalformedUpdateError(ValueError):
    """Raised when an inbound payload is not a usable Telegram update."""


def _drop_unparsable(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    # Only update_id, message_id and chat.id decide whether an update is valid.
    try:
        return handler(value)
    except ValidationError:
        return None


class User(BaseModel):
    """https://core.telegram.org/bots/api#user"""
    model_config = ConfigDict(extra="ignore")

    id: StrictInt
    is_bot: bool = False
    first_name: str | None = None
    username: str | None = None


class Chat(BaseModel):
    """https://core.telegram.org/bots/api#chat"""
    model_config = ConfigDict(extra="ignore")

    id: StrictInt
    type: str | None = None

    @field_validator("type", mode="wrap")
    @classmethod
    def lenient_type(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        return _drop_unparsable(value, handler)


class Message(BaseModel):
    """https://core.telegram.org/bots/api#message"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: StrictInt
    chat: Chat
    from_user: User | None = Field(default=None, alias="from")
    text: str | None = None

    @field_validator("from_user", "text", mode="wrap")
    @classmethod
    def lenient_optional_fields(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        return _drop_unparsable(value, handler)

    @property
    def chat_id(self) -> int:
        return self.chat.id

    @property
    def user_id(self) -> int | None:
        return self.from_user.id if self.from_user else None


class Update(BaseModel):
    """https://core.telegram.org/bots/api#update"""
    model_config = ConfigDict(extra="ignore")

    update_id: StrictInt
    message: Message | None = None


def parse_update(raw: Any) -> Update:
    if not isinstance(raw, dict):
        raise MalformedUpdateError("Update payload must be a JSON object")
    try:
        return Update.model_validate(raw)
    except ValidationError as exc:
        raise MalformedUpdateError(f"Invalid update: {exc.error_count()} validation error(s)") from exc
