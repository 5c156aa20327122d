import uuid

import pytest

from slugline.core.config import settings
from slugline.core.errors import SlugAllocationExhausted
from slugline.models.post import Post, PostSlugAlias
from slugline.models.profile import Profile
from slugline.services import allocator

pytestmark = pytest.mark.anyio


async def _seed(session, *slugs: str, alias_slugs: tuple[str, ...] = ()) -> tuple[uuid.UUID, list[uuid.UUID]]:
    author = Profile(display_name="Alice", handle="alice")
    session.add(author)
    await session.flush()
    post_ids = []
    for slug in slugs:
        post = Post(author_id=author.id, title=slug, content="", slug=slug)
        session.add(post)
        await session.flush()
        post_ids.append(post.id)
    for slug in alias_slugs:
        session.add(PostSlugAlias(author_id=author.id, post_id=post_ids[0], slug=slug))
    await session.commit()
    return author.id, post_ids


async def test_free_candidate_is_returned_unchanged(session_factory) -> None:
    async with session_factory() as session:
        author_id, _ = await _seed(session)
        assert await allocator.allocate_slug(session, author_id, "my-trip") == "my-trip"


async def test_taken_candidate_gets_counter_suffix(session_factory) -> None:
    async with session_factory() as session:
        author_id, _ = await _seed(session, "my-trip", "my-trip-2")
        assert await allocator.allocate_slug(session, author_id, "my-trip") == "my-trip-3"


async def test_aliases_count_as_taken(session_factory) -> None:
    async with session_factory() as session:
        author_id, _ = await _seed(session, "current", alias_slugs=("old-name",))
        assert await allocator.allocate_slug(session, author_id, "old-name") == "old-name-2"


async def test_exclude_id_ignores_own_live_slug_and_own_aliases(session_factory) -> None:
    async with session_factory() as session:
        author_id, post_ids = await _seed(session, "current", alias_slugs=("old-name",))
        own = post_ids[0]
        assert await allocator.allocate_slug(session, author_id, "current", exclude_id=own) == "current"
        assert await allocator.allocate_slug(session, author_id, "old-name", exclude_id=own) == "old-name"


async def test_namespaces_are_per_author(session_factory) -> None:
    async with session_factory() as session:
        _, _ = await _seed(session, "shared")
        other = Profile(display_name="Bob", handle="bob")
        session.add(other)
        await session.commit()
        assert await allocator.allocate_slug(session, other.id, "shared") == "shared"


async def test_suffix_respects_length_limit(session_factory) -> None:
    base = "x" * 50
    async with session_factory() as session:
        author_id, _ = await _seed(session, base)
        slug = await allocator.allocate_slug(session, author_id, base)
        assert slug == "x" * 48 + "-2"


async def test_exhaustion_raises_after_bound(session_factory) -> None:
    async with session_factory() as session:
        author_id, _ = await _seed(session, "busy", "busy-2", "busy-3")
        with pytest.raises(SlugAllocationExhausted):
            await allocator.allocate_slug(session, author_id, "busy", max_attempts=3)
        assert await allocator.allocate_slug(session, author_id, "busy", max_attempts=4) == "busy-4"


async def test_check_availability(session_factory) -> None:
    async with session_factory() as session:
        author_id, post_ids = await _seed(session, "taken", alias_slugs=("retired",))
        assert await allocator.check_availability(session, author_id, "free-one") is True
        assert await allocator.check_availability(session, author_id, "taken") is False
        assert await allocator.check_availability(session, author_id, "retired") is False
        assert await allocator.check_availability(session, author_id, "taken", exclude_id=post_ids[0]) is True
        assert await allocator.check_availability(session, author_id, "Not Valid") is False


async def test_suggestion_shares_the_server_bound(session_factory) -> None:
    settings.slug_max_attempts = 2
    settings.slug_exhaustion_policy = "error"
    async with session_factory() as session:
        author_id, _ = await _seed(session, "busy", "busy-2")
        with pytest.raises(SlugAllocationExhausted):
            await allocator.suggest_slug(session, author_id, "Busy")
        settings.slug_max_attempts = 3
        assert await allocator.suggest_slug(session, author_id, "Busy") == "busy-3"


async def test_suggestion_falls_back_to_random_tail(session_factory) -> None:
    settings.slug_max_attempts = 1
    settings.slug_exhaustion_policy = "random_suffix"
    async with session_factory() as session:
        author_id, _ = await _seed(session, "busy")
        slug = await allocator.suggest_slug(session, author_id, "Busy")
        assert slug.startswith("busy-")
        assert len(slug) == len("busy-") + 6
