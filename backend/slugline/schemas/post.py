from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    subtitle: str | None = Field(default=None, max_length=300)
    content: str = ""
    slug: str | None = Field(default=None, max_length=50)


class PostCreated(BaseModel):
    id: UUID
    slug: str


class PostRename(BaseModel):
    title: str = Field(min_length=1, max_length=200)


class PostSlug(BaseModel):
    slug: str


class PostUpdate(BaseModel):
    subtitle: str | None = Field(default=None, max_length=300)
    content: str | None = None


class PostRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    title: str
    subtitle: str | None = None
    content: str
    slug: str
    created_at: datetime
    updated_at: datetime


class SlugAvailability(BaseModel):
    slug: str
    available: bool
