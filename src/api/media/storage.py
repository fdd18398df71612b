import logging
import mimetypes
import os
import shutil
import tempfile
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from fastapi import UploadFile

from api.config import settings

logger = logging.getLogger("media")


class MediaStorageError(Exception):
    """Raised when the media host rejects an upload or delete."""


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    public_id: str
    duration: Optional[float] = None


class MediaStorage(ABC):
    """Contract for the third-party host that stores video and image files."""

    @abstractmethod
    def upload(self, path: Path) -> UploadedMedia:
        """Upload the file at ``path``. Raises MediaStorageError on failure."""

    @abstractmethod
    def delete(self, public_id: str) -> None:
        """Remove a previously uploaded asset. Raises MediaStorageError on failure."""


class SupabaseMediaStorage(MediaStorage):
    """Stores assets in a Supabase storage bucket under random object names."""

    def __init__(self, url: str, service_key: str, bucket: str):
        from supabase import create_client

        self._client = create_client(url, service_key)
        self._bucket = bucket

    def upload(self, path: Path) -> UploadedMedia:
        public_id = f"{uuid.uuid4().hex}{path.suffix}"
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        try:
            with open(path, "rb") as f:
                self._client.storage.from_(self._bucket).upload(
                    path=public_id,
                    file=f.read(),
                    file_options={"content-type": content_type, "upsert": "false"},
                )
            url = self._client.storage.from_(self._bucket).get_public_url(public_id)
        except Exception as e:
            raise MediaStorageError(f"Failed to upload {path.name}: {e}") from e
        logger.info(f"Uploaded {path.name} as {public_id}")
        return UploadedMedia(url=url, public_id=public_id)

    def delete(self, public_id: str) -> None:
        try:
            self._client.storage.from_(self._bucket).remove([public_id])
        except Exception as e:
            raise MediaStorageError(f"Failed to delete {public_id}: {e}") from e
        logger.info(f"Deleted media asset {public_id}")


@lru_cache
def _supabase_storage() -> SupabaseMediaStorage:
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set for media uploads")
    return SupabaseMediaStorage(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY, settings.SUPABASE_BUCKET)


def get_media_storage() -> MediaStorage:
    return _supabase_storage()


@contextmanager
def staged_uploads(*files: UploadFile) -> Iterator[list[Path]]:
    """Copy incoming uploads to a temp dir for the duration of the block."""
    temp_dir = tempfile.mkdtemp(dir=settings.UPLOAD_TEMP_DIR)
    try:
        paths = []
        for index, upload in enumerate(files):
            suffix = Path(upload.filename or "").suffix
            destination = Path(temp_dir) / f"{index}-{uuid.uuid4().hex}{suffix}"
            with open(destination, "wb") as buffer:
                shutil.copyfileobj(upload.file, buffer)
            paths.append(destination)
        yield paths
    finally:
        if os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)


def discard(storage: MediaStorage, *public_ids: str) -> None:
    """Best-effort removal of assets left behind by a failed operation."""
    for public_id in public_ids:
        try:
            storage.delete(public_id)
        except MediaStorageError as e:
            logger.error(f"Cleanup of {public_id} failed: {e}")
