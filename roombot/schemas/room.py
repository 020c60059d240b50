from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RoomBase(BaseModel):
    name: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    calendar_id: str = Field(min_length=1)
    capacity: int = Field(default=0, ge=0)
    location: str = ""
    auto_accept: bool = True


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    display_name: Optional[str] = None
    email: Optional[str] = None
    calendar_id: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = None
    auto_accept: Optional[bool] = None


class RoomResponse(RoomBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
