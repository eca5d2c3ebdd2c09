# app/models/user.py
"""
Database model for users.
Represents a registered account: credentials, profile information and the
currently valid refresh token.
"""
import uuid
from tortoise import fields, models

from app.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
)

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Subscriptions as subscriber (related_name="subscriptions")
    - Has many Subscriptions as channel (related_name="subscribers")

    Security:
    - Password is stored as an argon2 hash, never returned by the API
    - Username and email are unique across all users; username is stored lowercase
    - refresh_token mirrors the only refresh token that is currently accepted
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(
        max_length=256,
        unique=True,
    )  # Login / channel name (lowercase; the unique constraint also indexes it)
    email = fields.CharField(max_length=256, unique=True)
    full_name = fields.CharField(max_length=256)
    avatar = fields.CharField(max_length=1024)  # Media-host URL, required at registration
    cover_image = fields.CharField(max_length=1024, default="")  # Media-host URL, empty when not set
    password_hash = fields.CharField(max_length=255)
    refresh_token = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"

    def set_password(self, plain: str) -> None:
        """Replace the stored secret; the caller persists the change."""
        self.password_hash = hash_password(plain)

    def is_password_matched(self, plain: str) -> bool:
        return verify_password(plain, self.password_hash)

    def generate_access_token(self) -> str:
        return create_access_token(str(self.id), self.email, self.username, self.full_name)

    def generate_refresh_token(self) -> str:
        return create_refresh_token(str(self.id))
