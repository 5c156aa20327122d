from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from slugline.core.errors import NotAuthenticated
from slugline.core.security import decode_token
from slugline.db.session import get_session
from slugline.models.profile import Profile

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Profile:
    if credentials is None:
        raise NotAuthenticated()

    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise NotAuthenticated("Invalid token")

    try:
        owner_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise NotAuthenticated("Invalid token payload")

    owner = await session.get(Profile, owner_id)
    if owner is None:
        raise NotAuthenticated("Profile not found")
    return owner
