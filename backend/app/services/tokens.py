"""
Token pair issuance for login and refresh
"""
import logging

from fastapi import status

from app.core.errors import ApiError
from app.models.user import User

logger = logging.getLogger("uvicorn.error")


async def generate_access_and_refresh_tokens(user_id) -> tuple[str, str]:
    """
    Sign a new (access, refresh) pair for the user and store the refresh token
    on the user record, replacing any previous one.

    Only the refresh_token column is written. Any failure is logged and
    reported as a generic 500 so the cause does not leak to the client.
    """
    try:
        user = await User.get_or_none(id=user_id)
        if user is None:
            raise LookupError(f"user {user_id} not found")

        access_token = user.generate_access_token()
        refresh_token = user.generate_refresh_token()

        user.refresh_token = refresh_token
        await user.save(update_fields=["refresh_token"])
        return access_token, refresh_token
    except Exception as e:
        logger.exception("[tokens] issuing token pair failed for user_id=%s: %r", user_id, e)
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Something went wrong while generating access and refresh token",
        ) from e
