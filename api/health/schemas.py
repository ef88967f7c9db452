from pydantic import BaseModel


class BotIdentity(BaseModel):
    id: int
    username: str | None = None
    first_name: str | None = None


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str
    uptime: float
    bot: BotIdentity | None = None
    bot_error: str | None = None


class RootResponse(BaseModel):
    message: str
    status: str
