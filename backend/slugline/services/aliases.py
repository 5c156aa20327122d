"""Append-only history of retired slugs and handles.

Both relations are written with insert-or-ignore: recording a value that is
already there (a rename back and forth, or two concurrent renames retiring
the same slug) is a no-op rather than an error.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core import metrics
from slugline.models.post import PostSlugAlias
from slugline.models.profile import ProfileHandleAlias

logger = logging.getLogger(__name__)


def _conflict_insert_fn(session: AsyncSession):
    bind = session.get_bind()
    dialect = getattr(getattr(bind, "dialect", None), "name", "")
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    return None


async def _insert_ignoring_conflict(session: AsyncSession, model, index_elements: list, values: dict) -> bool:
    insert_fn = _conflict_insert_fn(session)
    if insert_fn is not None:
        stmt = insert_fn(model).values(id=uuid.uuid4(), **values).on_conflict_do_nothing(index_elements=index_elements)
        result = await session.execute(stmt)
        return bool(result.rowcount)
    conditions = [getattr(model, column.key) == values[column.key] for column in index_elements]
    existing = await session.scalar(select(model.id).where(*conditions))
    if existing is not None:
        return False
    session.add(model(**values))
    await session.flush()
    return True


async def record_slug_alias(session: AsyncSession, *, author_id: uuid.UUID, post_id: uuid.UUID, slug: str) -> bool:
    """Remember ``slug`` as a retired slug of ``post_id``. Returns False when it was already recorded."""
    inserted = await _insert_ignoring_conflict(
        session,
        PostSlugAlias,
        [PostSlugAlias.author_id, PostSlugAlias.slug],
        {"author_id": author_id, "post_id": post_id, "slug": slug},
    )
    if inserted:
        metrics.record_alias_written("slug")
        logger.info("slug_alias_recorded", extra={"author_id": str(author_id), "post_id": str(post_id), "slug": slug})
    return inserted


async def drop_own_slug_alias(session: AsyncSession, *, author_id: uuid.UUID, post_id: uuid.UUID, slug: str) -> None:
    """Remove the post's alias for ``slug`` once that slug is live again on the same post."""
    await session.execute(
        delete(PostSlugAlias).where(
            PostSlugAlias.author_id == author_id,
            PostSlugAlias.post_id == post_id,
            PostSlugAlias.slug == slug,
        )
    )


async def find_slug_alias(session: AsyncSession, *, author_id: uuid.UUID, slug: str) -> PostSlugAlias | None:
    result = await session.execute(
        select(PostSlugAlias).where(PostSlugAlias.author_id == author_id, PostSlugAlias.slug == slug)
    )
    return result.scalar_one_or_none()


async def list_slug_aliases(session: AsyncSession, post_id: uuid.UUID) -> list[str]:
    result = await session.execute(
        select(PostSlugAlias.slug).where(PostSlugAlias.post_id == post_id).order_by(PostSlugAlias.created_at)
    )
    return list(result.scalars().all())


async def record_handle_alias(session: AsyncSession, *, profile_id: uuid.UUID, handle: str) -> bool:
    inserted = await _insert_ignoring_conflict(
        session,
        ProfileHandleAlias,
        [ProfileHandleAlias.handle],
        {"profile_id": profile_id, "handle": handle},
    )
    if inserted:
        metrics.record_alias_written("handle")
        logger.info("handle_alias_recorded", extra={"profile_id": str(profile_id), "handle": handle})
    return inserted


async def drop_own_handle_alias(session: AsyncSession, *, profile_id: uuid.UUID, handle: str) -> None:
    await session.execute(
        delete(ProfileHandleAlias).where(
            ProfileHandleAlias.profile_id == profile_id,
            ProfileHandleAlias.handle == handle,
        )
    )


async def find_handle_alias(session: AsyncSession, handle: str) -> ProfileHandleAlias | None:
    result = await session.execute(select(ProfileHandleAlias).where(ProfileHandleAlias.handle == handle))
    return result.scalar_one_or_none()
