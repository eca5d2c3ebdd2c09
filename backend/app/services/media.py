"""
Media hosting client (Cloudinary REST API)

Uploads a staged local file and returns its durable URL, deletes a remote
object by public id, and derives that public id back from a URL.
"""
import os
import time
import asyncio
import uuid
import hashlib
import shutil
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import UploadFile

from app.config import MediaSettings

logger = logging.getLogger("uvicorn.error")


@dataclass
class MediaUploadResult:
    """Uploaded object as reported by the media host"""
    url: str
    public_id: str
    resource_type: str = "image"


def save_upload_to_temp(upload: UploadFile, temp_dir: str) -> str:
    """Write an incoming request file to temp_dir under a random name; return its path"""
    os.makedirs(temp_dir, exist_ok=True)
    suffix = os.path.splitext(upload.filename or "")[1]
    path = os.path.join(temp_dir, f"{uuid.uuid4().hex}{suffix}")
    with open(path, "wb") as out:
        upload.file.seek(0)
        shutil.copyfileobj(upload.file, out)
    return path


async def stage_upload(upload: UploadFile, temp_dir: str) -> str:
    """save_upload_to_temp in the default executor so the event loop is not blocked"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, save_upload_to_temp, upload, temp_dir)


def _read_local_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _remove_local_file(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class MediaService:
    """Cloudinary upload/destroy over HTTP"""

    def __init__(self, config: MediaSettings):
        self.config = config

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{self.config.api_base.rstrip('/')}/{self.config.cloud_name}/{resource_type}/{action}"

    def _sign(self, params: dict) -> str:
        """
        Cloudinary signature: sha1 over the sorted "key=value" pairs joined
        by "&", immediately followed by the API secret.
        """
        to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1(f"{to_sign}{self.config.api_secret}".encode("utf-8")).hexdigest()

    def _signed(self, params: dict) -> dict:
        signed = dict(params)
        signed["signature"] = self._sign(params)
        signed["api_key"] = self.config.api_key
        return signed

    async def upload(self, local_path: Optional[str]) -> Optional[MediaUploadResult]:
        """
        Upload a local file (resource type detected by the host).

        Returns None when there is nothing to upload or the upload fails.
        The local file is removed in every case.
        """
        if not local_path:
            return None

        data = self._signed({"timestamp": int(time.time())})
        try:
            loop = asyncio.get_running_loop()
            content = await loop.run_in_executor(None, _read_local_file, local_path)
            files = {"file": (os.path.basename(local_path), content)}
            async with httpx.AsyncClient(timeout=self.config.timeout_sec) as client:
                resp = await client.post(self._endpoint("auto", "upload"), data=data, files=files)
                resp.raise_for_status()
                body = resp.json()
            url = body.get("secure_url") or body.get("url")
            if not url:
                raise ValueError("media upload returned no url")
            return MediaUploadResult(
                url=url,
                public_id=body.get("public_id", ""),
                resource_type=body.get("resource_type", "image"),
            )
        except Exception as e:
            logger.error("[media] upload failed for %s: %r", local_path, e)
            return None
        finally:
            _remove_local_file(local_path)

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        """Best effort: failures are logged and reported as False, never raised"""
        data = self._signed({"public_id": public_id, "timestamp": int(time.time())})
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_sec) as client:
                resp = await client.post(self._endpoint(resource_type, "destroy"), data=data)
            resp.raise_for_status()
            return resp.json().get("result") == "ok"
        except Exception as e:
            logger.error("[media] delete failed for public_id=%s: %r", public_id, e)
            return False

    @staticmethod
    def extract_public_id(url: str) -> str:
        """
        .../image/upload/v1712345678/abc123_xyz.png -> "abc123"
        (last path segment, extension dropped, cut at the first underscore)
        """
        last = url.rstrip("/").split("/")[-1]
        return last.split(".")[0].split("_")[0]
