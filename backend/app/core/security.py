# app/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT access/refresh token creation and validation.
"""
import uuid
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

from app.config import settings

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plain text password against a hashed password.

    Returns False instead of raising when the stored value is not a usable hash.
    """
    if not plain or not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False

def create_access_token(user_id: str, email: str, username: str, full_name: str) -> str:
    """
    Create a short-lived JWT access token.

    Token payload includes:
        - sub: Subject (user ID)
        - email, username, fullName: identity claims for the client
        - iat: Issued at timestamp
        - exp: Expiration timestamp
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "username": username,
        "fullName": full_name,
        "iat": now,
        "exp": now + dt.timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.access_token_secret, algorithm=settings.jwt_alg)

def create_refresh_token(user_id: str) -> str:
    """
    Create a long-lived JWT refresh token.

    The random jti keeps every issued refresh token distinct, so a newly issued
    token never equals the one it replaces.
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + dt.timedelta(days=settings.refresh_token_expire_days),
    }
    return jwt.encode(payload, settings.refresh_token_secret, algorithm=settings.jwt_alg)

def decode_access_token(token: str) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, settings.access_token_secret, algorithms=[settings.jwt_alg])

def decode_refresh_token(token: str) -> dict:
    """Decode and validate a JWT refresh token (same errors as decode_access_token)."""
    return jwt.decode(token, settings.refresh_token_secret, algorithms=[settings.jwt_alg])
