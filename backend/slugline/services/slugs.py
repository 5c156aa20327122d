"""Title to slug conversion.

Everything here is pure: the output is only a *candidate* and carries no
uniqueness guarantee. See ``slugline.services.allocator`` for that.
"""

from __future__ import annotations

import re
import secrets
import string

from slugline.models.post import SLUG_MAX_LEN

SLUG_RE = re.compile(r"^[a-z0-9-]{1,50}$")
FALLBACK_PREFIX = "post"
RANDOM_TAIL_LEN = 6
# Only back off to a word boundary when it keeps most of the title.
WORD_BREAK_MIN_INDEX = 30

_SEPARATORS_RE = re.compile(r"[\s_]+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]")
_HYPHENS_RE = re.compile(r"-+")
_BASE36 = string.digits + string.ascii_lowercase


def random_tail(length: int = RANDOM_TAIL_LEN) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def fallback_slug() -> str:
    return f"{FALLBACK_PREFIX}-{random_tail()}"


def _truncate(slug: str) -> str:
    if len(slug) <= SLUG_MAX_LEN:
        return slug
    slug = slug[:SLUG_MAX_LEN]
    last_hyphen = slug.rfind("-")
    if last_hyphen > WORD_BREAK_MIN_INDEX:
        slug = slug[:last_hyphen]
    return slug.rstrip("-")


def generate_slug(title: str | None) -> str:
    if not title or not isinstance(title, str):
        return fallback_slug()
    slug = title.lower().strip()
    slug = _SEPARATORS_RE.sub("-", slug)
    slug = _DISALLOWED_RE.sub("", slug)
    slug = _HYPHENS_RE.sub("-", slug).strip("-")
    if not slug:
        return fallback_slug()
    return _truncate(slug)


def is_valid_slug(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(SLUG_RE.fullmatch(value))


def _with_suffix(base: str, suffix: str) -> str:
    trimmed = base[: SLUG_MAX_LEN - len(suffix)].rstrip("-")
    if not trimmed:
        return suffix.lstrip("-")
    return f"{trimmed}{suffix}"


def suffixed_slug(base: str, counter: int) -> str:
    """``base-N``, re-truncating ``base`` so the result still fits the column."""
    return _with_suffix(base, f"-{counter}")


def random_suffixed_slug(base: str) -> str:
    return _with_suffix(base, f"-{random_tail()}")
