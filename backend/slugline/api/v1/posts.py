from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.api.v1.redirects import redirect_for
from slugline.core.dependencies import get_current_owner
from slugline.core.errors import NotFoundOrForbidden
from slugline.db.session import get_session
from slugline.models.profile import Profile
from slugline.schemas.post import PostCreate, PostCreated, PostRead, PostRename, PostSlug, PostUpdate, SlugAvailability
from slugline.services import allocator, posts as posts_service, resolver

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostCreated, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> PostCreated:
    created = await posts_service.create_with_slug(
        session,
        owner.id,
        title=payload.title,
        content=payload.content,
        subtitle=payload.subtitle,
        slug=payload.slug,
    )
    return PostCreated(**created)


@router.get("/slug-availability", response_model=SlugAvailability)
async def slug_availability(
    slug: str = Query(min_length=1, max_length=100),
    exclude_id: UUID | None = None,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> SlugAvailability:
    available = await allocator.check_availability(session, owner.id, slug, exclude_id=exclude_id)
    return SlugAvailability(slug=slug, available=available)


@router.get("/slug-suggestion", response_model=PostSlug)
async def slug_suggestion(
    title: str = Query(default="", max_length=200),
    exclude_id: UUID | None = None,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> PostSlug:
    return PostSlug(slug=await allocator.suggest_slug(session, owner.id, title, exclude_id=exclude_id))


@router.post("/{post_id}/rename", response_model=PostSlug)
async def rename_post(
    post_id: UUID,
    payload: PostRename,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> PostSlug:
    renamed = await posts_service.rename_with_slug(session, owner.id, post_id, payload.title)
    return PostSlug(**renamed)


@router.patch("/{post_id}", response_model=PostRead)
async def update_post(
    post_id: UUID,
    payload: PostUpdate,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> PostRead:
    post = await posts_service.update_post_fields(session, owner.id, post_id, payload.model_dump(exclude_unset=True))
    return PostRead.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    session: AsyncSession = Depends(get_session),
    owner: Profile = Depends(get_current_owner),
) -> Response:
    await posts_service.delete_post(session, owner.id, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{post_id}", response_class=RedirectResponse)
async def post_by_id(post_id: UUID, request: Request, session: AsyncSession = Depends(get_session)) -> RedirectResponse:
    resolution = await resolver.resolve_post_id(session, post_id)
    if not isinstance(resolution, resolver.Redirect):
        raise NotFoundOrForbidden("Post not found")
    return redirect_for(request, resolution)
