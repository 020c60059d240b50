from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class JandiOutgoingWebhook(BaseModel):
    """Payload JANDI posts for every message starting with the trigger word."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    team_name: str = Field(default="", alias="teamName")
    room_name: str = Field(default="", alias="roomName")
    writer_name: str = Field(default="", alias="writerName")
    writer_email: str = Field(default="", alias="writerEmail")
    text: str = ""
    data: str = ""
    keyword: str = ""
    ip: str = ""
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class JandiWebhookResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    body: str
    connect_color: Optional[str] = Field(default=None, alias="connectColor")


class DevCommand(BaseModel):
    text: Optional[str] = None
    data: Optional[str] = None
