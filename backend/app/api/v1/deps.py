# app/api/v1/deps.py
from fastapi import Header, Request, status
from app.config import settings
from app.core.errors import ApiError
from app.core.security import decode_access_token
from app.models.user import User
from app.services.media import MediaService

def _extract_access_token(request: Request, authorization: str | None) -> str | None:
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    # 2) Secondly HttpOnly Cookie: accessToken
    return request.cookies.get("accessToken")

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    The access token is read from the Authorization header (Bearer token) or,
    failing that, from the HttpOnly "accessToken" cookie.

    Raises:
        ApiError (401): No token, invalid/expired token, or unknown user

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            ...
    """
    token = _extract_access_token(request, authorization)
    if not token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized request")

    try:
        payload = decode_access_token(token)
    except Exception:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid access token")

    user_id = payload.get("sub")
    if not user_id:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid access token")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid access token")
    return user

async def get_optional_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> User | None:
    """
    Same as get_current_user, but anonymous or badly authenticated requests
    resolve to None instead of failing.
    """
    try:
        return await get_current_user(request, authorization)
    except ApiError:
        return None

def get_media_service() -> MediaService:
    """Media host client built from the explicit media settings."""
    return MediaService(settings.media)
