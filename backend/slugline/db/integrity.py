from sqlalchemy.exc import IntegrityError

from slugline.core.errors import UniquenessConflict

# SQLSTATE for unique_violation (asyncpg exposes it as ``sqlstate``).
_UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == _UNIQUE_VIOLATION or getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig).lower()


def as_uniqueness_conflict(exc: IntegrityError) -> UniquenessConflict | None:
    """Translate a unique-index rejection; other integrity failures are left to propagate."""
    if is_unique_violation(exc):
        return UniquenessConflict(str(getattr(exc, "orig", exc)))
    return None
