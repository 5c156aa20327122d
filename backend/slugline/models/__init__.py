from slugline.db.base import Base  # noqa: F401
from slugline.models.profile import Profile, ProfileHandleAlias  # noqa: F401
from slugline.models.post import Post, PostSlugAlias  # noqa: F401

__all__ = [
    "Base",
    "Profile",
    "ProfileHandleAlias",
    "Post",
    "PostSlugAlias",
]
