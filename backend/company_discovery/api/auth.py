import logging

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..services.identity import CurrentUser, resolve_user

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> CurrentUser | None:
    """
    Resolve the bearer token if one was sent.

    A missing or unresolvable token means anonymous; endpoints that need an
    identity depend on `require_user` instead.
    """
    if credentials is None:
        return None
    return await resolve_user(credentials.credentials)


async def require_user(user: CurrentUser | None = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
