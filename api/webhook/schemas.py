from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    status: str = Field(default="ok", description="Update accepted")


class WebhookError(BaseModel):
    error: str
