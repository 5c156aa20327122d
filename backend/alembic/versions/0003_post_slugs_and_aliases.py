"""post slugs, slug aliases and handle aliases

Revision ID: 0003
Revises: 0002
Create Date: 2026-09-16
"""

from __future__ import annotations

from collections.abc import Sequence
import re
import secrets
import string

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0003"
down_revision: str | None = "0002"
branch_labels: str | Sequence[str] | None = None
depends_on: Sequence[str] | None = None


SLUG_MAX_LEN = 50
SLUG_MAX_COUNTER = 1000
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_BASE36 = string.digits + string.ascii_lowercase


def _random_tail(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


# Frozen copy of the generator as it stood when this migration was written.
def _base_slug(title: str | None) -> str:
    slug = _NON_SLUG_RE.sub("-", (title or "").strip().lower()).strip("-")
    if len(slug) > SLUG_MAX_LEN:
        slug = slug[:SLUG_MAX_LEN].strip("-")
    return slug or f"post-{_random_tail(8)}"


def _with_suffix(base: str, suffix: str) -> str:
    return f"{base[: SLUG_MAX_LEN - len(suffix)].rstrip('-')}{suffix}"


def _make_unique_slug(base: str, used: set[str]) -> str:
    if base not in used:
        used.add(base)
        return base
    for counter in range(2, SLUG_MAX_COUNTER + 1):
        candidate = _with_suffix(base, f"-{counter}")
        if candidate not in used:
            used.add(candidate)
            return candidate
    candidate = _with_suffix(base, f"-{_random_tail(6)}")
    used.add(candidate)
    return candidate


def _backfill_slugs(conn) -> None:
    posts = sa.table(
        "posts",
        sa.column("id", postgresql.UUID(as_uuid=True)),
        sa.column("author_id", postgresql.UUID(as_uuid=True)),
        sa.column("title", sa.String()),
        sa.column("slug", sa.String()),
        sa.column("created_at", sa.DateTime(timezone=True)),
    )
    rows = conn.execute(
        sa.select(posts.c.id, posts.c.author_id, posts.c.title).order_by(posts.c.created_at, posts.c.id)
    ).all()
    used_by_author: dict[object, set[str]] = {}
    for post_id, author_id, title in rows:
        used = used_by_author.setdefault(author_id, set())
        slug = _make_unique_slug(_base_slug(title), used)
        conn.execute(sa.update(posts).where(posts.c.id == post_id).values(slug=slug))


def upgrade() -> None:
    op.add_column("posts", sa.Column("slug", sa.String(length=SLUG_MAX_LEN), nullable=True))
    _backfill_slugs(op.get_bind())
    op.alter_column("posts", "slug", nullable=False)
    op.create_check_constraint("ck_posts_slug_format", "posts", "slug ~ '^[a-z0-9-]{1,50}$'")
    op.create_unique_constraint("uq_posts_author_slug", "posts", ["author_id", "slug"])
    op.create_index("ix_posts_slug", "posts", ["slug"])

    op.create_table(
        "post_slug_aliases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("posts.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("slug", sa.String(length=SLUG_MAX_LEN), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("slug ~ '^[a-z0-9-]{1,50}$'", name="ck_post_slug_aliases_slug_format"),
        sa.UniqueConstraint("author_id", "slug", name="uq_post_slug_aliases_author_slug"),
    )
    op.create_index("ix_post_slug_aliases_post_id", "post_slug_aliases", ["post_id"])
    op.create_index("ix_post_slug_aliases_author_id", "post_slug_aliases", ["author_id"])

    op.create_table(
        "profile_handle_aliases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "profile_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("handle", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("handle ~ '^[a-z0-9_]{3,20}$'", name="ck_profile_handle_aliases_handle_format"),
    )
    op.create_index("ix_profile_handle_aliases_profile_id", "profile_handle_aliases", ["profile_id"])
    op.create_index("ix_profile_handle_aliases_handle", "profile_handle_aliases", ["handle"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_profile_handle_aliases_handle", table_name="profile_handle_aliases")
    op.drop_index("ix_profile_handle_aliases_profile_id", table_name="profile_handle_aliases")
    op.drop_table("profile_handle_aliases")

    op.drop_index("ix_post_slug_aliases_author_id", table_name="post_slug_aliases")
    op.drop_index("ix_post_slug_aliases_post_id", table_name="post_slug_aliases")
    op.drop_table("post_slug_aliases")

    op.drop_index("ix_posts_slug", table_name="posts")
    op.drop_constraint("uq_posts_author_slug", "posts", type_="unique")
    op.drop_constraint("ck_posts_slug_format", "posts", type_="check")
    op.drop_column("posts", "slug")
