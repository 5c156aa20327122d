from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class HandleUpdate(BaseModel):
    handle: str = Field(min_length=1, max_length=64)


class HandleAvailability(BaseModel):
    handle: str
    available: bool


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: str
    handle: str | None = None
    onboarded: bool
    created_at: datetime
