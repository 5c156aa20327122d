import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from slugline.db.base import Base

HANDLE_MAX_LEN = 20


def _handle_checks(column: str) -> tuple[CheckConstraint, CheckConstraint]:
    return (
        CheckConstraint(f"{column} ~ '^[a-z0-9_]{{3,20}}$'", name=f"{column}_format").ddl_if(dialect="postgresql"),
        CheckConstraint(
            f"{column} NOT GLOB '*[^a-z0-9_]*' AND length({column}) BETWEEN 3 AND 20", name=f"{column}_charset"
        ).ddl_if(dialect="sqlite"),
    )


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = _handle_checks("handle")

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str] = mapped_column(String(120), nullable=False, default="New user")
    handle: Mapped[str | None] = mapped_column(String(HANDLE_MAX_LEN), nullable=True, unique=True, index=True)
    onboarded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ProfileHandleAlias(Base):
    """A retired handle. Rows are only ever inserted; they go away with the profile."""

    __tablename__ = "profile_handle_aliases"
    __table_args__ = _handle_checks("handle")

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    handle: Mapped[str] = mapped_column(String(HANDLE_MAX_LEN), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
