from __future__ import annotations

import re

from slugline.models.profile import HANDLE_MAX_LEN

HANDLE_RE = re.compile(r"^[a-z0-9_]+$")
HANDLE_MIN_LEN = 3

# Kept off-limits to avoid impersonation and to leave room for system routes.
RESERVED_HANDLES = frozenset(
    {
        "about",
        "account",
        "admin",
        "administrator",
        "api",
        "auth",
        "bot",
        "comment",
        "comments",
        "contact",
        "help",
        "info",
        "login",
        "logout",
        "mail",
        "me",
        "mod",
        "moderator",
        "official",
        "post",
        "posts",
        "privacy",
        "profile",
        "register",
        "root",
        "settings",
        "signup",
        "staff",
        "support",
        "system",
        "team",
        "terms",
        "user",
        "users",
        "www",
    }
)


def normalize_handle(value: str | None) -> str:
    if not value or not isinstance(value, str):
        return ""
    return value.strip().lower()


def handle_error(value: str | None) -> str | None:
    """Return a user-facing message describing why ``value`` is unusable, or None."""
    if not isinstance(value, str) or not value.strip():
        return "Handle is required"
    handle = normalize_handle(value)
    if len(handle) < HANDLE_MIN_LEN:
        return f"Handle must be at least {HANDLE_MIN_LEN} characters"
    if len(handle) > HANDLE_MAX_LEN:
        return f"Handle must be {HANDLE_MAX_LEN} characters or less"
    if not HANDLE_RE.fullmatch(handle):
        return "Handle can only contain lowercase letters, numbers, and underscores"
    if handle in RESERVED_HANDLES:
        return "This handle is reserved"
    return None


def is_valid_handle(value: str | None) -> bool:
    return handle_error(value) is None
