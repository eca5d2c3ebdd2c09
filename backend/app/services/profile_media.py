"""
Replacing a user's stored media (avatar or cover image)
"""
import logging

from app.models.user import User
from app.services.media import MediaService

logger = logging.getLogger("uvicorn.error")

# Columns on User that hold media-host URLs
MEDIA_FIELDS = ("avatar", "cover_image")


async def replace_user_media(user: User, field: str, new_url: str, media: MediaService) -> User:
    """
    Point `field` at new_url, persist it, then purge the object it used to
    reference (if any). The purge is best effort: MediaService.delete never raises.
    """
    if field not in MEDIA_FIELDS:
        raise ValueError(f"not a media field: {field}")

    old_url = getattr(user, field)
    setattr(user, field, new_url)
    await user.save(update_fields=[field, "updated_at"])

    if old_url:
        public_id = media.extract_public_id(old_url)
        deleted = await media.delete(public_id)
        if not deleted:
            logger.warning("[media] previous %s not removed: public_id=%s", field, public_id)
    return user
