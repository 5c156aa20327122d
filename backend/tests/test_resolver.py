import uuid

import pytest

from slugline.core.config import settings
from slugline.services import owners, posts as posts_service, resolver

pytestmark = pytest.mark.anyio


async def test_unknown_owner_and_slug_are_not_found(session_factory) -> None:
    async with session_factory() as session:
        alice = await owners.create_owner(session, display_name="Alice", handle="alice")
        assert await resolver.resolve_owner(session, "nobody") == resolver.NotFound()
        assert await resolver.resolve_owner(session, str(uuid.uuid4())) == resolver.NotFound()
        assert await resolver.resolve_content(session, "nobody", "anything") == resolver.NotFound()
        assert await resolver.resolve_content(session, "alice", "missing") == resolver.NotFound()
        assert await resolver.resolve_post_id(session, uuid.uuid4()) == resolver.NotFound()
        assert isinstance(await resolver.resolve_owner(session, "alice"), resolver.Found)
        assert (await resolver.resolve_owner(session, "alice")).item.id == alice.id


async def test_slugs_are_scoped_per_owner(session_factory) -> None:
    async with session_factory() as session:
        alice = await owners.create_owner(session, display_name="Alice", handle="alice")
        bob = await owners.create_owner(session, display_name="Bob", handle="bob")
        a = await posts_service.create_with_slug(session, alice.id, "Hello", "")
        b = await posts_service.create_with_slug(session, bob.id, "Hello", "")
        assert a["slug"] == b["slug"] == "hello"

        await posts_service.rename_with_slug(session, alice.id, a["id"], "Goodbye")
        # Alice's retired slug does not leak into Bob's namespace.
        found = await resolver.resolve_content(session, "bob", "hello")
        assert isinstance(found, resolver.Found)
        assert found.item.id == b["id"]
        assert await resolver.resolve_content(session, "bob", "goodbye") == resolver.NotFound()


async def test_owner_reached_by_id_is_canonicalised_temporarily(session_factory) -> None:
    async with session_factory() as session:
        alice = await owners.create_owner(session, display_name="Alice", handle="alice")
        post = await posts_service.create_with_slug(session, alice.id, "Hello", "")

        assert await resolver.resolve_owner(session, str(alice.id)) == resolver.Redirect(
            owner_ref="alice", permanent=False
        )
        assert await resolver.resolve_content(session, str(alice.id), "hello") == resolver.Redirect(
            owner_ref="alice", slug="hello", permanent=False
        )
        assert await resolver.resolve_post_id(session, post["id"]) == resolver.Redirect(
            owner_ref="alice", slug="hello", permanent=False
        )


async def test_owner_without_handle_is_served_by_id(session_factory) -> None:
    async with session_factory() as session:
        anon = await owners.create_owner(session, display_name="Anon")
        post = await posts_service.create_with_slug(session, anon.id, "Untitled thoughts", "")

        found = await resolver.resolve_content(session, str(anon.id), "untitled-thoughts")
        assert isinstance(found, resolver.Found)
        assert found.item.id == post["id"]
        assert await resolver.resolve_post_id(session, post["id"]) == resolver.Redirect(
            owner_ref=str(anon.id), slug="untitled-thoughts", permanent=False
        )


async def test_handle_lookup_is_case_insensitive(session_factory) -> None:
    async with session_factory() as session:
        await owners.create_owner(session, display_name="Alice", handle="alice")
        assert await resolver.resolve_owner(session, "Alice") == resolver.Redirect(owner_ref="alice", permanent=False)


async def test_retired_handle_redirects_permanently(session_factory) -> None:
    settings.allow_handle_changes = True
    async with session_factory() as session:
        alice = await owners.create_owner(session, display_name="Alice", handle="alice")
        await posts_service.create_with_slug(session, alice.id, "Hello", "")
        await owners.set_handle(session, alice.id, "alice_w")

        assert await resolver.resolve_owner(session, "alice") == resolver.Redirect(owner_ref="alice_w", permanent=True)
        assert await resolver.resolve_content(session, "alice", "hello") == resolver.Redirect(
            owner_ref="alice_w", slug="hello", permanent=True
        )
        assert isinstance(await resolver.resolve_content(session, "alice_w", "hello"), resolver.Found)


async def test_retired_handle_and_retired_slug_collapse_to_one_redirect(session_factory) -> None:
    settings.allow_handle_changes = True
    async with session_factory() as session:
        alice = await owners.create_owner(session, display_name="Alice", handle="alice")
        post = await posts_service.create_with_slug(session, alice.id, "First", "")
        await posts_service.rename_with_slug(session, alice.id, post["id"], "Second")
        await posts_service.rename_with_slug(session, alice.id, post["id"], "Third")
        await owners.set_handle(session, alice.id, "alice_w")

        assert await resolver.resolve_content(session, "alice", "first") == resolver.Redirect(
            owner_ref="alice_w", slug="third", permanent=True
        )
