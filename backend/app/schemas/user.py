# app/schemas/user.py
"""
Pydantic schemas for the user account endpoints.
Defines JSON request bodies and the outward shapes of users and channels.
Registration and media updates are multipart forms and are declared on the routes.
"""
from typing import Optional
from pydantic import BaseModel

class LoginIn(BaseModel):
    """
    Request model for login.
    At least one of username / email must be present (checked by the handler).
    """
    username: Optional[str] = None
    email: Optional[str] = None
    password: str

class RefreshTokenIn(BaseModel):
    """Refresh token sent in the body by clients that cannot use cookies."""
    refreshToken: Optional[str] = None

class ChangePasswordIn(BaseModel):
    oldPassword: str
    newPassword: str

class UpdateAccountIn(BaseModel):
    """Both fields are required; kept optional here so blanks answer 400 from the handler."""
    fullName: Optional[str] = None
    email: Optional[str] = None

class UserOut(BaseModel):
    """
    User as returned by the API.
    Never contains the password hash or the refresh token.
    """
    id: str
    username: str
    email: str
    fullName: str
    avatar: str
    coverImage: str = ""
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @classmethod
    def from_model(cls, u) -> "UserOut":
        return cls(
            id=str(u.id),
            username=u.username,
            email=u.email,
            fullName=u.full_name,
            avatar=u.avatar,
            coverImage=u.cover_image or "",
            createdAt=u.created_at.isoformat() if u.created_at else None,
            updatedAt=u.updated_at.isoformat() if u.updated_at else None,
        )

class ChannelProfileOut(BaseModel):
    """Public channel view with subscription counts relative to the viewer."""
    fullName: str
    username: str
    subscribersCount: int
    channelsSubscribedToCount: int
    isSubscribed: bool
    avatar: str
    coverImage: str = ""
    email: str
