from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core.config import settings
from slugline.core.errors import NotAuthenticated, NotFoundOrForbidden, ValidationError
from slugline.db.integrity import is_unique_violation
from slugline.models.profile import Profile, ProfileHandleAlias
from slugline.services import aliases
from slugline.services.handles import handle_error, normalize_handle

logger = logging.getLogger(__name__)

HANDLE_TAKEN = "This handle is already taken"


async def create_owner(session: AsyncSession, display_name: str | None = None, handle: str | None = None) -> Profile:
    """Create a profile; account issuance itself lives with the auth provider."""
    profile = Profile(display_name=(display_name or "").strip() or "New user")
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    if handle:
        profile = await set_handle(session, profile.id, handle)
    return profile


async def get_owner(session: AsyncSession, owner_id: uuid.UUID) -> Profile | None:
    return await session.get(Profile, owner_id)


async def get_owner_by_handle(session: AsyncSession, handle: str) -> Profile | None:
    result = await session.execute(select(Profile).where(Profile.handle == normalize_handle(handle)))
    return result.scalar_one_or_none()


async def _handle_is_free(session: AsyncSession, handle: str, owner_id: uuid.UUID | None = None) -> bool:
    live = select(Profile.id).where(Profile.handle == handle)
    retired = select(ProfileHandleAlias.id).where(ProfileHandleAlias.handle == handle)
    if owner_id is not None:
        live = live.where(Profile.id != owner_id)
        retired = retired.where(ProfileHandleAlias.profile_id != owner_id)
    taken = await session.scalar(select(or_(live.exists(), retired.exists())))
    return not taken


async def check_handle_availability(session: AsyncSession, handle: str | None, owner_id: uuid.UUID | None = None) -> bool:
    """Advisory check used while the user types; retired handles count as taken."""
    if handle_error(handle):
        return False
    return await _handle_is_free(session, normalize_handle(handle), owner_id=owner_id)


async def set_handle(session: AsyncSession, owner_id: uuid.UUID | None, raw_handle: str | None) -> Profile:
    """Assign the owner's handle during onboarding.

    Handles are immutable once set unless ``settings.allow_handle_changes`` is
    on; a change retires the previous handle into the alias history so old
    profile URLs keep redirecting.
    """
    if owner_id is None:
        raise NotAuthenticated()
    error = handle_error(raw_handle)
    if error:
        raise ValidationError(error)
    handle = normalize_handle(raw_handle)

    profile = await session.get(Profile, owner_id, with_for_update=True)
    if profile is None:
        raise NotFoundOrForbidden("Profile not found")
    current = profile.handle
    if current == handle:
        return profile
    if current and not settings.allow_handle_changes:
        raise ValidationError("Handle cannot be changed once set")
    if not await _handle_is_free(session, handle, owner_id=owner_id):
        raise ValidationError(HANDLE_TAKEN)

    if current:
        await aliases.record_handle_alias(session, profile_id=owner_id, handle=current)
        await aliases.drop_own_handle_alias(session, profile_id=owner_id, handle=handle)
    profile.handle = handle
    profile.onboarded = True
    profile.updated_at = datetime.now(timezone.utc)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise ValidationError(HANDLE_TAKEN) from exc
        raise
    await session.refresh(profile)
    logger.info("handle_set", extra={"profile_id": str(owner_id), "handle": handle, "previous": current})
    return profile
