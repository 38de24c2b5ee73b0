from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: Optional[str] = None


async def resolve_user(
    token: str,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CurrentUser | None:
    """
    Resolve a bearer access token to the user it belongs to via the auth
    provider's `/auth/v1/user` endpoint.

    Returns None for an unknown/expired token, an unconfigured provider or a
    provider error; callers decide whether that means anonymous or 401.
    """
    settings = settings or get_settings()
    if not token or not settings.SUPABASE_URL:
        return None

    headers = {"Authorization": f"Bearer {token}"}
    if settings.SUPABASE_ANON_KEY:
        headers["apikey"] = settings.SUPABASE_ANON_KEY

    try:
        async with httpx.AsyncClient(timeout=settings.AUTH_TIMEOUT_SECONDS, transport=transport) as client:
            resp = await client.get(f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/user", headers=headers)
    except httpx.HTTPError as e:
        logger.warning("Auth provider unreachable: %s", e, extra={"step": "auth"})
        return None

    if resp.status_code != 200:
        logger.info("Bearer token rejected (%s)", resp.status_code, extra={"step": "auth"})
        return None

    try:
        data = resp.json()
    except ValueError:
        return None
    user_id = data.get("id") if isinstance(data, dict) else None
    if not user_id:
        return None
    return CurrentUser(id=str(user_id), email=data.get("email"))
