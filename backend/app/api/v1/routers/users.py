# app/api/v1/routers/users.py
import logging
from fastapi import APIRouter, Cookie, Depends, File, Form, Response, UploadFile, status
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q

from app.api.v1.deps import get_current_user, get_optional_user, get_media_service
from app.config import settings
from app.core.errors import ApiError
from app.core.responses import ApiResponse
from app.core.security import decode_refresh_token
from app.models.subscription import Subscription
from app.models.user import User
from app.schemas.user import (
    ChangePasswordIn,
    ChannelProfileOut,
    LoginIn,
    RefreshTokenIn,
    UpdateAccountIn,
    UserOut,
)
from app.services.media import MediaService, MediaUploadResult, stage_upload
from app.services.profile_media import replace_user_media
from app.services.tokens import generate_access_and_refresh_tokens

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/users", tags=["users"])


def _cookie_options() -> dict:
    return {"httponly": True, "secure": settings.cookie_secure}

def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie("accessToken", access_token, **_cookie_options())
    response.set_cookie("refreshToken", refresh_token, **_cookie_options())

def _user_out(u: User) -> dict:
    return UserOut.from_model(u).model_dump()

def _clean(value: str | None) -> str:
    return (value or "").strip()

async def _discard_uploads(media: MediaService, *uploads: MediaUploadResult | None) -> None:
    """Best-effort removal of objects that will not be referenced by any user."""
    for uploaded in uploads:
        if not uploaded or not uploaded.url:
            continue
        public_id = uploaded.public_id or media.extract_public_id(uploaded.url)
        if not await media.delete(public_id, uploaded.resource_type):
            logger.warning("[users] could not discard orphaned media public_id=%s", public_id)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    fullName: str | None = Form(default=None),
    email: str | None = Form(default=None),
    username: str | None = Form(default=None),
    password: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    coverImage: UploadFile | None = File(default=None),
    media: MediaService = Depends(get_media_service),
):
    """
    Register a new user account (multipart form).

    Fields: fullName, email, username, password; files: avatar (required),
    coverImage (optional). Both images are pushed to the media host and the
    account stores their URLs. The username is stored lowercase.

    Returns:
        ApiResponse (201): the created user, without password or refresh token

    Raises:
        ApiError (409): username or email already taken
        ApiError (400): a field is blank, or the avatar file is missing
        ApiError (500): avatar upload failed, or the new record cannot be read back
    """
    username_norm = _clean(username).lower()
    email_norm = _clean(email).lower()

    # Duplicate identity wins over any other validation problem
    identity = []
    if username_norm:
        identity.append(Q(username=username_norm))
    if email_norm:
        identity.append(Q(email=email_norm))
    if identity and await User.filter(Q(*identity, join_type="OR")).exists():
        raise ApiError(status.HTTP_409_CONFLICT, "User with email or username already exists")

    if not all(_clean(v) for v in (fullName, email, username, password)):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Please fill in all fields")

    if avatar is None or not avatar.filename:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Avatar file is required")

    # Avatar first: when it fails, the cover image never reaches the media host
    avatar_uploaded = await media.upload(await stage_upload(avatar, settings.upload_temp_dir))
    if not avatar_uploaded or not avatar_uploaded.url:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to upload avatar")

    cover_uploaded = None
    if coverImage is not None and coverImage.filename:
        cover_uploaded = await media.upload(await stage_upload(coverImage, settings.upload_temp_dir))

    user = User(
        username=username_norm,
        email=email_norm,
        full_name=_clean(fullName),
        avatar=avatar_uploaded.url,
        cover_image=cover_uploaded.url if cover_uploaded else "",
    )
    user.set_password(password)
    try:
        await user.save()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same identity
        await _discard_uploads(media, avatar_uploaded, cover_uploaded)
        raise ApiError(status.HTTP_409_CONFLICT, "User with email or username already exists")

    created = await User.get_or_none(id=user.id)
    if not created:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create user")

    logger.info("[users] registered username=%s id=%s", created.username, created.id)
    return ApiResponse.of(status.HTTP_201_CREATED, _user_out(created), "User registered successfully")


@router.post("/login")
async def login_user(body: LoginIn, response: Response):
    """
    Authenticate by username or email plus password.

    On success a new token pair is issued; both tokens are set as HttpOnly,
    Secure cookies and also returned in the body for clients without cookies.

    Raises:
        ApiError (400): neither username nor email given, or no such user
        ApiError (401): incorrect password
    """
    filters = []
    if _clean(body.username):
        filters.append(Q(username=_clean(body.username).lower()))
    if _clean(body.email):
        filters.append(Q(email=_clean(body.email).lower()))
    if not filters:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "username or email is required")

    user = await User.filter(Q(*filters, join_type="OR")).first()
    if not user:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "User not found")

    if not user.is_password_matched(body.password):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Incorrect password")

    access_token, refresh_token = await generate_access_and_refresh_tokens(user.id)
    logged_in = await User.get(id=user.id)

    _set_auth_cookies(response, access_token, refresh_token)
    return ApiResponse.of(
        status.HTTP_200_OK,
        {"user": _user_out(logged_in), "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully",
    )


@router.post("/logout")
async def logout_user(response: Response, user: User = Depends(get_current_user)):
    """
    Forget the stored refresh token and clear both auth cookies.
    Any refresh token issued before this call is rejected afterwards.
    """
    await User.filter(id=user.id).update(refresh_token=None)
    response.delete_cookie("accessToken", **_cookie_options())
    response.delete_cookie("refreshToken", **_cookie_options())
    return ApiResponse.of(status.HTTP_200_OK, {}, "User logged out")


@router.post("/refresh-token")
async def refresh_access_token(
    response: Response,
    body: RefreshTokenIn | None = None,
    refreshToken: str | None = Cookie(default=None),
):
    """
    Exchange a refresh token (cookie first, then JSON body) for a new pair.

    The token must verify and must equal the one stored on the user, so only
    the most recently issued refresh token is ever accepted.

    Raises:
        ApiError (401): token missing, invalid, expired, unknown user, or superseded
    """
    incoming = refreshToken or (body.refreshToken if body else None)
    if not incoming:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized request")

    try:
        payload = decode_refresh_token(incoming)
    except Exception:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")

    user_id = payload.get("sub")
    user = await User.get_or_none(id=user_id) if user_id else None
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid refresh token")

    if incoming != user.refresh_token:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Refresh token is expired or used")

    access_token, new_refresh_token = await generate_access_and_refresh_tokens(user.id)

    _set_auth_cookies(response, access_token, new_refresh_token)
    return ApiResponse.of(
        status.HTTP_200_OK,
        {"accessToken": access_token, "refreshToken": new_refresh_token},
        "Access token refreshed successfully",
    )


@router.post("/change-password")
async def change_current_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change the password of the logged-in user after re-checking the old one.

    Raises:
        ApiError (400): new password blank, or old password does not match
            (nothing is changed in either case)
    """
    if not _clean(body.newPassword):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "New password is required")

    if not user.is_password_matched(body.oldPassword):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid old password")

    user.set_password(body.newPassword)
    await user.save(update_fields=["password_hash", "updated_at"])
    return ApiResponse.of(status.HTTP_200_OK, {}, "Password changed successfully")


@router.get("/current-user")
async def get_current_user_profile(user: User = Depends(get_current_user)):
    """Return the authenticated user as resolved by the auth dependency."""
    return ApiResponse.of(status.HTTP_200_OK, _user_out(user), "User fetched successfully")


@router.patch("/update-account")
async def update_account_details(body: UpdateAccountIn, user: User = Depends(get_current_user)):
    """
    Update full name and email of the logged-in user.

    Raises:
        ApiError (400): either field missing or blank
        ApiError (409): email belongs to another account
    """
    full_name = _clean(body.fullName)
    email = _clean(body.email).lower()
    if not full_name or not email:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "All fields are required")

    if await User.filter(email=email).exclude(id=user.id).exists():
        raise ApiError(status.HTTP_409_CONFLICT, "Email is already in use")

    user.full_name = full_name
    user.email = email
    try:
        await user.save(update_fields=["full_name", "email", "updated_at"])
    except IntegrityError:
        raise ApiError(status.HTTP_409_CONFLICT, "Email is already in use")

    return ApiResponse.of(status.HTTP_200_OK, _user_out(user), "Account details updated successfully")


async def _update_profile_media(
    user: User,
    upload: UploadFile | None,
    field: str,
    label: str,
    media: MediaService,
) -> User:
    if upload is None or not upload.filename:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "File missing")

    uploaded = await media.upload(await stage_upload(upload, settings.upload_temp_dir))
    if not uploaded or not uploaded.url:
        raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Error while uploading {label}")

    current = await User.get_or_none(id=user.id)
    if not current:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")

    return await replace_user_media(current, field, uploaded.url, media)


@router.patch("/avatar")
async def update_user_avatar(
    avatar: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
    media: MediaService = Depends(get_media_service),
):
    """
    Replace the avatar (multipart file "avatar"); the previous image is
    removed from the media host afterwards.
    """
    updated = await _update_profile_media(user, avatar, "avatar", "avatar", media)
    return ApiResponse.of(status.HTTP_200_OK, _user_out(updated), "Avatar updated successfully")


@router.patch("/cover-image")
async def update_user_cover_image(
    coverImage: UploadFile | None = File(default=None),
    user: User = Depends(get_current_user),
    media: MediaService = Depends(get_media_service),
):
    """
    Replace the cover image (multipart file "coverImage"); a previous image,
    if there was one, is removed from the media host afterwards.
    """
    updated = await _update_profile_media(user, coverImage, "cover_image", "cover image", media)
    return ApiResponse.of(status.HTTP_200_OK, _user_out(updated), "Cover image updated successfully")


@router.get("/c/{username}")
async def get_user_channel_profile(username: str, viewer: User | None = Depends(get_optional_user)):
    """
    Public channel page for `username` (case-insensitive).

    Counts the channel's subscribers and the channels it subscribes to, and
    tells whether the (optional) viewer is one of its subscribers.

    Raises:
        ApiError (400): blank username
        ApiError (404): no such channel
    """
    name = _clean(username).lower()
    if not name:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Username is required")

    channel = await User.get_or_none(username=name)
    if not channel:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Channel does not exist")

    subscribers_count = await Subscription.filter(channel_id=channel.id).count()
    subscribed_to_count = await Subscription.filter(subscriber_id=channel.id).count()
    is_subscribed = False
    if viewer is not None:
        is_subscribed = await Subscription.filter(channel_id=channel.id, subscriber_id=viewer.id).exists()

    profile = ChannelProfileOut(
        fullName=channel.full_name,
        username=channel.username,
        subscribersCount=subscribers_count,
        channelsSubscribedToCount=subscribed_to_count,
        isSubscribed=is_subscribed,
        avatar=channel.avatar,
        coverImage=channel.cover_image or "",
        email=channel.email,
    )
    return ApiResponse.of(status.HTTP_200_OK, profile.model_dump(), "User channel fetched successfully")
