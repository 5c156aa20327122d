import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from slugline.db.base import Base

SLUG_MAX_LEN = 50


def _slug_checks() -> tuple[CheckConstraint, CheckConstraint]:
    return (
        CheckConstraint("slug ~ '^[a-z0-9-]{1,50}$'", name="slug_format").ddl_if(dialect="postgresql"),
        CheckConstraint(
            "slug NOT GLOB '*[^a-z0-9-]*' AND length(slug) BETWEEN 1 AND 50", name="slug_charset"
        ).ddl_if(dialect="sqlite"),
    )


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        UniqueConstraint("author_id", "slug", name="uq_posts_author_slug"),
        *_slug_checks(),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(300), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    slug: Mapped[str] = mapped_column(String(SLUG_MAX_LEN), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    aliases: Mapped[list["PostSlugAlias"]] = relationship(
        "PostSlugAlias", back_populates="post", cascade="all, delete-orphan", lazy="selectin"
    )


class PostSlugAlias(Base):
    """A retired slug of a post, scoped to the author.

    The alias stores the post id rather than the slug it was renamed to, so a
    lookup always lands on the post's live slug no matter how many renames
    happened since.
    """

    __tablename__ = "post_slug_aliases"
    __table_args__ = (
        UniqueConstraint("author_id", "slug", name="uq_post_slug_aliases_author_slug"),
        *_slug_checks(),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    post_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(String(SLUG_MAX_LEN), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    post: Mapped[Post] = relationship("Post", back_populates="aliases")
