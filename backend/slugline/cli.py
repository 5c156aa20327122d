import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core import security
from slugline.core.errors import SluglineError
from slugline.db.session import SessionLocal
from slugline.models.post import Post, PostSlugAlias
from slugline.services import owners as owners_service, resolver
from slugline.services.slugs import is_valid_slug


async def create_owner(display_name: str, handle: str | None) -> Dict[str, Any]:
    async with SessionLocal() as session:
        profile = await owners_service.create_owner(session, display_name=display_name, handle=handle)
        return {
            "id": str(profile.id),
            "handle": profile.handle,
            "token": security.create_access_token(str(profile.id)),
        }


def _serialize_resolution(resolution: resolver.Resolution) -> Dict[str, Any]:
    if isinstance(resolution, resolver.Redirect):
        return {"result": "redirect", **asdict(resolution)}
    if isinstance(resolution, resolver.Found):
        item = resolution.item
        if isinstance(item, Post):
            return {"result": "found", "post_id": str(item.id), "slug": item.slug, "title": item.title}
        return {"result": "found", "profile_id": str(item.id), "handle": item.handle}
    return {"result": "not_found"}


async def resolve(owner_ref: str, slug: str | None) -> Dict[str, Any]:
    async with SessionLocal() as session:
        if slug:
            resolution = await resolver.resolve_content(session, owner_ref, slug)
        else:
            resolution = await resolver.resolve_owner(session, owner_ref)
        return _serialize_resolution(resolution)


async def find_slug_issues(session: AsyncSession) -> list[Dict[str, str]]:
    """Rows the storage constraints should have made impossible, plus aliases shadowed by a live slug."""
    issues: list[Dict[str, str]] = []
    for post_id, slug in (await session.execute(select(Post.id, Post.slug))).all():
        if not is_valid_slug(slug):
            issues.append({"kind": "invalid_slug", "post_id": str(post_id), "slug": slug})
    shadowed = await session.execute(
        select(PostSlugAlias.post_id, PostSlugAlias.slug, Post.id).join(
            Post, (Post.author_id == PostSlugAlias.author_id) & (Post.slug == PostSlugAlias.slug)
        )
    )
    for alias_post_id, slug, live_post_id in shadowed.all():
        issues.append(
            {
                "kind": "alias_matches_live_slug",
                "slug": slug,
                "alias_post_id": str(alias_post_id),
                "live_post_id": str(live_post_id),
            }
        )
    return issues


async def audit_slugs() -> list[Dict[str, str]]:
    async with SessionLocal() as session:
        return await find_slug_issues(session)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Slug and handle maintenance utilities")
    subparsers = parser.add_subparsers(dest="command")

    owner = subparsers.add_parser("create-owner", help="Create a profile and print a development token")
    owner.add_argument("--display-name", required=True)
    owner.add_argument("--handle", help="Handle to assign right away (optional)")

    resolve_cmd = subparsers.add_parser("resolve", help="Show how a profile or post URL resolves")
    resolve_cmd.add_argument("owner_ref", help="Handle (current or retired) or profile id")
    resolve_cmd.add_argument("slug", nargs="?", help="Post slug (omit to resolve the profile)")

    subparsers.add_parser("audit-slugs", help="Report invalid slugs and aliases shadowed by live slugs")
    return parser


def _run_cli_command(args: argparse.Namespace) -> int | None:
    if args.command == "create-owner":
        print(json.dumps(asyncio.run(create_owner(args.display_name, args.handle)), indent=2))
        return 0

    if args.command == "resolve":
        print(json.dumps(asyncio.run(resolve(args.owner_ref, args.slug)), indent=2))
        return 0

    if args.command == "audit-slugs":
        issues = asyncio.run(audit_slugs())
        print(json.dumps({"issues": issues}, indent=2))
        return 1 if issues else 0

    return None


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        code = _run_cli_command(args)
    except SluglineError as exc:
        print(f"error: {exc.detail}", file=sys.stderr)
        return 2
    if code is None:
        parser.print_help()
        return 0
    return code


if __name__ == "__main__":
    sys.exit(main())
