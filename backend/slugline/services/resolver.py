"""Read path: map an owner reference and a slug to a post or a redirect.

An owner reference is either a handle (live or retired) or the owner's id.
Aliases point at post/profile ids, and the current slug is read at
resolution time, so any rename history collapses into a single redirect.

Lookup order matters: the live slug is checked before the alias table. A
post renamed back to one of its old slugs may briefly have an alias equal to
its live slug, and live-first keeps that harmless.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Union

from sqlalchemy.ext.asyncio import AsyncSession

from slugline.models.post import Post
from slugline.models.profile import Profile
from slugline.services import aliases
from slugline.services.handles import normalize_handle
from slugline.services.owners import get_owner_by_handle
from slugline.services.posts import get_post_by_slug

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    item: Any


@dataclass(frozen=True)
class Redirect:
    """Where the caller should go instead.

    ``permanent`` is True when the requested identifier was retired by a
    rename, and False when the request used a legacy id and only needs to be
    canonicalised.
    """

    owner_ref: str
    slug: str | None = None
    permanent: bool = True


@dataclass(frozen=True)
class NotFound:
    pass


Resolution = Union[Found, Redirect, NotFound]

# How the owner was reached: by its live handle, a retired handle, or its id.
_LIVE, _ALIAS, _ID = "live", "alias", "id"


def canonical_owner_ref(owner: Profile) -> str:
    return owner.handle or str(owner.id)


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


async def _lookup_owner(session: AsyncSession, owner_ref: str) -> tuple[Profile | None, str]:
    handle = normalize_handle(owner_ref)
    if handle:
        owner = await get_owner_by_handle(session, handle)
        if owner is not None:
            return owner, _LIVE
        alias = await aliases.find_handle_alias(session, handle)
        if alias is not None:
            return await session.get(Profile, alias.profile_id), _ALIAS
    owner_id = _parse_uuid(owner_ref)
    if owner_id is not None:
        return await session.get(Profile, owner_id), _ID
    return None, _LIVE


def _needs_redirect(owner: Profile, reached_by: str, owner_ref: str) -> bool:
    if reached_by == _ALIAS:
        return True
    if reached_by == _ID:
        return owner.handle is not None
    return owner_ref != canonical_owner_ref(owner)


async def resolve_owner(session: AsyncSession, owner_ref: str) -> Resolution:
    owner, reached_by = await _lookup_owner(session, owner_ref)
    if owner is None:
        return NotFound()
    if _needs_redirect(owner, reached_by, owner_ref):
        return Redirect(owner_ref=canonical_owner_ref(owner), permanent=reached_by == _ALIAS)
    return Found(owner)


async def resolve_content(session: AsyncSession, owner_ref: str, slug: str) -> Resolution:
    owner, reached_by = await _lookup_owner(session, owner_ref)
    if owner is None:
        return NotFound()
    owner_redirect = _needs_redirect(owner, reached_by, owner_ref)
    permanent = reached_by != _ID

    post = await get_post_by_slug(session, owner.id, slug)
    if post is not None:
        if owner_redirect:
            return Redirect(owner_ref=canonical_owner_ref(owner), slug=post.slug, permanent=permanent)
        return Found(post)

    alias = await aliases.find_slug_alias(session, author_id=owner.id, slug=slug)
    if alias is None:
        return NotFound()
    target = await session.get(Post, alias.post_id, populate_existing=True)
    if target is None:
        return NotFound()
    logger.debug("slug_alias_hit", extra={"author_id": str(owner.id), "slug": slug, "post_id": str(target.id)})
    return Redirect(owner_ref=canonical_owner_ref(owner), slug=target.slug, permanent=True)


async def resolve_post_id(session: AsyncSession, post_id: uuid.UUID) -> Resolution:
    """Legacy id route: always a temporary redirect to the canonical location."""
    post = await session.get(Post, post_id)
    if post is None:
        return NotFound()
    owner = await session.get(Profile, post.author_id)
    if owner is None:
        return NotFound()
    return Redirect(owner_ref=canonical_owner_ref(owner), slug=post.slug, permanent=False)
