"""Authentication boundary.

Sessions and cookies are handled upstream; by the time a request reaches
this app the caller's id travels in the ``X-User-Id`` header.
"""

from fastapi import Header, HTTPException

from backend.config import settings


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the authenticated user's id or reject the request with 401."""
    user_id = x_user_id or settings.default_user_id
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized. Please log in.")
    return user_id
