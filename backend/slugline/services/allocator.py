"""Turn a candidate slug into one that is free within an author's namespace.

The check here is optimistic: nothing is reserved, and two transactions can
both see the same slug as free. The unique index on ``(author_id, slug)`` is
what actually decides; callers catch the violation and allocate again.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core.config import settings
from slugline.core.errors import SlugAllocationExhausted
from slugline.models.post import Post, PostSlugAlias
from slugline.services.slugs import generate_slug, is_valid_slug, random_suffixed_slug, suffixed_slug

logger = logging.getLogger(__name__)


async def slug_is_free(
    session: AsyncSession,
    author_id: uuid.UUID,
    slug: str,
    exclude_id: uuid.UUID | None = None,
) -> bool:
    live = select(Post.id).where(Post.author_id == author_id, Post.slug == slug)
    retired = select(PostSlugAlias.id).where(PostSlugAlias.author_id == author_id, PostSlugAlias.slug == slug)
    if exclude_id is not None:
        live = live.where(Post.id != exclude_id)
        # A post may take back one of its own retired slugs.
        retired = retired.where(PostSlugAlias.post_id != exclude_id)
    taken = await session.scalar(select(or_(live.exists(), retired.exists())))
    return not taken


async def allocate_slug(
    session: AsyncSession,
    author_id: uuid.UUID,
    candidate: str,
    exclude_id: uuid.UUID | None = None,
    max_attempts: int | None = None,
) -> str:
    """Return ``candidate`` or the first free ``candidate-N`` (N >= 2).

    Raises ``SlugAllocationExhausted`` after ``max_attempts`` candidates
    (``settings.slug_max_attempts`` by default) were all taken.
    """
    limit = max_attempts or settings.slug_max_attempts
    slug = candidate
    for attempt in range(1, limit + 1):
        if attempt > 1:
            slug = suffixed_slug(candidate, attempt)
        if await slug_is_free(session, author_id, slug, exclude_id=exclude_id):
            return slug
    logger.warning(
        "slug_allocation_exhausted",
        extra={"author_id": str(author_id), "candidate": candidate, "attempts": limit},
    )
    raise SlugAllocationExhausted()


async def check_availability(
    session: AsyncSession,
    author_id: uuid.UUID,
    slug: str | None,
    exclude_id: uuid.UUID | None = None,
) -> bool:
    """Advisory check for live typing feedback; never a reservation."""
    if not is_valid_slug(slug):
        return False
    return await slug_is_free(session, author_id, slug, exclude_id=exclude_id)


async def suggest_slug(
    session: AsyncSession,
    author_id: uuid.UUID,
    title: str,
    exclude_id: uuid.UUID | None = None,
) -> str:
    """Preview of the slug ``title`` would get; uses the same bound as the write path."""
    candidate = generate_slug(title)
    try:
        return await allocate_slug(session, author_id, candidate, exclude_id=exclude_id)
    except SlugAllocationExhausted:
        if settings.slug_exhaustion_policy == "error":
            raise
        return random_suffixed_slug(candidate)
