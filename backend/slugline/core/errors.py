"""Error taxonomy shared by services, the HTTP layer and the CLI."""

from __future__ import annotations


class SluglineError(Exception):
    """Base error; carries the HTTP status and a stable machine-readable code."""

    status_code: int = 400
    code: str = "error"
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(SluglineError):
    """Bad slug/handle format or missing title. Not retried."""

    status_code = 400
    code = "validation_error"
    default_detail = "Invalid input"


class NotAuthenticated(SluglineError):
    status_code = 401
    code = "not_authenticated"
    default_detail = "Not authenticated"


class NotFoundOrForbidden(SluglineError):
    """Raised both for missing rows and rows owned by someone else."""

    status_code = 404
    code = "not_found"
    default_detail = "Post not found or access denied"


class SlugAllocationExhausted(SluglineError):
    status_code = 409
    code = "slug_allocation_exhausted"
    default_detail = "Could not generate unique slug"


class UniquenessConflict(SluglineError):
    """A unique index rejected a write; callers convert this into a retry."""

    status_code = 409
    code = "uniqueness_conflict"
    default_detail = "Identifier already taken"
