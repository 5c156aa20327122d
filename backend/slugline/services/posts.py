"""Create and rename posts while keeping slugs unique and old URLs alive.

Each public coroutine is one unit of work: it either commits everything it
wrote or rolls back to the state it found. Uniqueness is enforced by the
database; a rejected write is rolled back and retried with a fresh slug.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core import metrics
from slugline.core.config import settings
from slugline.core.errors import (
    NotAuthenticated,
    NotFoundOrForbidden,
    SlugAllocationExhausted,
    UniquenessConflict,
    ValidationError,
)
from slugline.db.integrity import as_uniqueness_conflict
from slugline.models.post import Post
from slugline.services import aliases
from slugline.services.allocator import allocate_slug
from slugline.services.slugs import generate_slug, is_valid_slug, random_suffixed_slug

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title is required")
    return cleaned


async def _pick_slug(
    session: AsyncSession,
    author_id: uuid.UUID,
    base: str,
    *,
    exclude_id: uuid.UUID | None,
    last_attempt: bool,
) -> str:
    if last_attempt:
        # Repeated conflicts mean other writers keep winning the same -N; step off the sequence.
        slug = random_suffixed_slug(base)
        metrics.record_slug_fallback()
        return slug
    try:
        return await allocate_slug(session, author_id, base, exclude_id=exclude_id)
    except SlugAllocationExhausted:
        if settings.slug_exhaustion_policy == "error":
            raise
        metrics.record_slug_fallback()
        logger.warning("slug_random_fallback", extra={"author_id": str(author_id), "candidate": base})
        return random_suffixed_slug(base)


async def _commit_or_conflict(session: AsyncSession) -> None:
    try:
        await session.flush()
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        conflict = as_uniqueness_conflict(exc)
        if conflict is None:
            raise
        raise conflict from exc


async def _with_conflict_retries(operation: str, attempt_fn: Callable[[int, bool], Awaitable[T]]) -> T:
    retries = settings.slug_conflict_retries
    for attempt in range(1, retries + 1):
        try:
            return await attempt_fn(attempt, attempt == retries and retries > 1)
        except UniquenessConflict as exc:
            metrics.record_slug_conflict()
            logger.warning(
                "slug_conflict_retry",
                extra={"operation": operation, "attempt": attempt, "error": exc.detail},
            )
    raise SlugAllocationExhausted()


async def create_with_slug(
    session: AsyncSession,
    author_id: uuid.UUID | None,
    title: str,
    content: str,
    subtitle: str | None = None,
    slug: str | None = None,
) -> dict[str, Any]:
    """Insert a post under a slug that is unique for ``author_id``.

    ``slug`` is an optional caller-chosen candidate; otherwise one is derived
    from ``title``. Returns ``{"id": ..., "slug": ...}`` for the row written.
    """
    if author_id is None:
        raise NotAuthenticated()
    title = _require_title(title)
    if slug is not None:
        if not is_valid_slug(slug):
            raise ValidationError("Slug must be 1-50 characters of a-z, 0-9 and hyphens")
        base = slug
    else:
        base = generate_slug(title)

    async def attempt(_: int, last_attempt: bool) -> dict[str, Any]:
        final_slug = await _pick_slug(session, author_id, base, exclude_id=None, last_attempt=last_attempt)
        post = Post(
            id=uuid.uuid4(),
            author_id=author_id,
            title=title,
            subtitle=subtitle or None,
            content=content or "",
            slug=final_slug,
        )
        session.add(post)
        result = {"id": post.id, "slug": final_slug}
        await _commit_or_conflict(session)
        return result

    result = await _with_conflict_retries("create", attempt)
    metrics.record_post_created()
    logger.info("post_created", extra={"author_id": str(author_id), "post_id": str(result["id"]), "slug": result["slug"]})
    return result


def _owned_post_query(author_id: uuid.UUID, post_id: uuid.UUID, *, for_update: bool = False):
    query = select(Post).where(Post.id == post_id, Post.author_id == author_id)
    if for_update:
        # Lock the post row only, never rows pulled in by eager joins.
        query = query.with_for_update(of=Post)
    return query


async def _get_owned_post(
    session: AsyncSession, author_id: uuid.UUID, post_id: uuid.UUID, *, for_update: bool = False
) -> Post:
    result = await session.execute(_owned_post_query(author_id, post_id, for_update=for_update))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundOrForbidden()
    return post


async def rename_with_slug(
    session: AsyncSession,
    author_id: uuid.UUID | None,
    post_id: uuid.UUID,
    new_title: str,
) -> dict[str, str]:
    """Retitle a post, moving it to a new slug and keeping the old one as an alias.

    Only the title and slug change here; the editor saves other fields with
    ``update_post_fields`` afterwards.
    """
    if author_id is None:
        raise NotAuthenticated()
    new_title = _require_title(new_title)
    candidate = generate_slug(new_title)

    async def attempt(_: int, last_attempt: bool) -> dict[str, str]:
        post = await _get_owned_post(session, author_id, post_id, for_update=True)
        current = post.slug
        if candidate == current:
            new_slug = current
        else:
            new_slug = await _pick_slug(session, author_id, candidate, exclude_id=post.id, last_attempt=last_attempt)
        if new_slug != current:
            await aliases.record_slug_alias(session, author_id=author_id, post_id=post.id, slug=current)
            # Renaming back to a retired slug: the slug is live again, so its alias must go.
            await aliases.drop_own_slug_alias(session, author_id=author_id, post_id=post.id, slug=new_slug)
        post.title = new_title
        post.slug = new_slug
        post.updated_at = datetime.now(timezone.utc)
        await _commit_or_conflict(session)
        if new_slug != current:
            logger.info(
                "post_renamed",
                extra={"author_id": str(author_id), "post_id": str(post_id), "old_slug": current, "new_slug": new_slug},
            )
        return {"slug": new_slug}

    result = await _with_conflict_retries("rename", attempt)
    metrics.record_post_renamed()
    return result


async def update_post_fields(
    session: AsyncSession,
    author_id: uuid.UUID | None,
    post_id: uuid.UUID,
    data: dict[str, Any],
) -> Post:
    """Save the non-identity fields of a post (subtitle, content)."""
    if author_id is None:
        raise NotAuthenticated()
    post = await _get_owned_post(session, author_id, post_id)
    if "subtitle" in data:
        post.subtitle = data["subtitle"] or None
    if "content" in data and data["content"] is not None:
        post.content = data["content"]
    post.updated_at = datetime.now(timezone.utc)
    await session.commit()
    await session.refresh(post)
    return post


async def delete_post(session: AsyncSession, author_id: uuid.UUID | None, post_id: uuid.UUID) -> None:
    if author_id is None:
        raise NotAuthenticated()
    post = await _get_owned_post(session, author_id, post_id)
    # Aliases are written with core inserts, so the loaded collection may be stale.
    await session.refresh(post, attribute_names=["aliases"])
    await session.delete(post)
    await session.commit()
    logger.info("post_deleted", extra={"author_id": str(author_id), "post_id": str(post_id)})


async def get_post(session: AsyncSession, post_id: uuid.UUID) -> Post | None:
    return await session.get(Post, post_id)


async def get_post_by_slug(session: AsyncSession, author_id: uuid.UUID, slug: str) -> Post | None:
    result = await session.execute(select(Post).where(Post.author_id == author_id, Post.slug == slug))
    return result.scalar_one_or_none()
