"""
Services Module

Provides the pieces handlers orchestrate:
- Media hosting (Cloudinary): upload, delete, public id extraction
- Token pair issuance (access + refresh JWT)
- Avatar / cover image replacement
"""

# Media hosting
from .media import (
    MediaService,
    MediaUploadResult,
    save_upload_to_temp,
    stage_upload,
)

# Tokens
from .tokens import generate_access_and_refresh_tokens

# Profile media
from .profile_media import replace_user_media

__all__ = [
    # Media
    "MediaService",
    "MediaUploadResult",
    "save_upload_to_temp",
    "stage_upload",
    # Tokens
    "generate_access_and_refresh_tokens",
    # Profile media
    "replace_user_media",
]
