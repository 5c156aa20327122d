from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.api.v1.redirects import redirect_for
from slugline.core.dependencies import get_current_owner
from slugline.core.errors import NotFoundOrForbidden
from slugline.db.session import get_session
from slugline.models.profile import Profile
from slugline.schemas.post import PostRead
from slugline.schemas.profile import HandleAvailability, HandleUpdate, ProfileRead
from slugline.services import owners as owners_service, resolver
from slugline.services.handles import normalize_handle

router = APIRouter(tags=["profiles"])


@router.get("/profiles/me", response_model=ProfileRead)
async def read_me(owner: Profile = Depends(get_current_owner)) -> ProfileRead:
    return ProfileRead.model_validate(owner)


@router.put("/profiles/me/handle", response_model=ProfileRead)
async def set_my_handle(
    payload: HandleUpdate,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> ProfileRead:
    profile = await owners_service.set_handle(session, owner.id, payload.handle)
    return ProfileRead.model_validate(profile)


@router.get("/profiles/handle-availability", response_model=HandleAvailability)
async def handle_availability(
    handle: str = Query(min_length=1, max_length=64),
    session: AsyncSession = Depends(get_session),
) -> HandleAvailability:
    available = await owners_service.check_handle_availability(session, handle)
    return HandleAvailability(handle=normalize_handle(handle), available=available)


@router.get("/u/{owner_ref}", name="read_profile", response_model=ProfileRead)
async def read_profile(owner_ref: str, request: Request, session: AsyncSession = Depends(get_session)):
    resolution = await resolver.resolve_owner(session, owner_ref)
    if isinstance(resolution, resolver.Redirect):
        return redirect_for(request, resolution)
    if isinstance(resolution, resolver.Found):
        return ProfileRead.model_validate(resolution.item)
    raise NotFoundOrForbidden("Profile not found")


@router.get("/u/{owner_ref}/{slug}", name="read_post", response_model=PostRead)
async def read_post(owner_ref: str, slug: str, request: Request, session: AsyncSession = Depends(get_session)):
    resolution = await resolver.resolve_content(session, owner_ref, slug)
    if isinstance(resolution, resolver.Redirect):
        return redirect_for(request, resolution)
    if isinstance(resolution, resolver.Found):
        return PostRead.model_validate(resolution.item)
    raise NotFoundOrForbidden("Post not found")
