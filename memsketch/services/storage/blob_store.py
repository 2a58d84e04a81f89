"""
Filesystem object storage.

Objects live in named buckets under ``settings.storage_dir`` and are
addressed by a relative path such as ``{user_id}/{memory_id}.webm``. That
path string is what gets persisted on the memory record.
"""

import asyncio
import base64
import binascii
import logging
import re
import shutil
from pathlib import Path

from memsketch.core.config import get_settings
from memsketch.core.exceptions import BlobNotFoundError, MemorySketchError

logger = logging.getLogger(__name__)

AUDIO_BUCKET = "memory-audio"
SKETCH_BUCKET = "memory-sketches"

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)

MEDIA_TYPES = {
    "webm": "audio/webm",
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "ogg": "audio/ogg",
    "png": "image/png",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}
_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/ogg": "ogg",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


def extension_for(content_type: str | None, default: str = "webm") -> str:
    """Map a MIME type (parameters ignored) to a file extension."""
    if not content_type:
        return default
    return _EXTENSIONS.get(content_type.split(";")[0].strip().lower(), default)


def media_type_for(path: str) -> str:
    return MEDIA_TYPES.get(Path(path).suffix.lstrip(".").lower(), "application/octet-stream")


def decode_data_url(url: str) -> tuple[bytes, str] | None:
    """Decode a ``data:<mime>;base64,...`` URL into (bytes, mime).

    Returns None for anything that is not a well-formed base64 data URL.
    """
    match = _DATA_URL.match(url.strip())
    if match is None:
        return None
    try:
        return base64.b64decode(match.group("data"), validate=True), match.group("mime")
    except (binascii.Error, ValueError):
        return None


class BlobStore:
    """A bucket of binary objects on local disk.

    Args:
        bucket: Bucket name (sub-directory of *root*).
        root: Storage root; defaults to ``settings.storage_dir``.
    """

    def __init__(self, bucket: str, root: str | None = None) -> None:
        self.bucket = bucket
        self._root = (Path(root or get_settings().storage_dir) / bucket).resolve()

    def _resolve(self, path: str) -> Path:
        """Map a stored path onto disk, refusing anything outside the bucket."""
        resolved = (self._root / path).resolve()
        if not resolved.is_relative_to(self._root):
            raise MemorySketchError(
                detail=f"Path outside bucket {self.bucket}: {path}",
                code="INVALID_PATH",
                status_code=400,
            )
        return resolved

    def local_path(self, path: str) -> Path:
        """Return the on-disk location of an existing object."""
        resolved = self._resolve(path)
        if not resolved.is_file():
            raise BlobNotFoundError(path)
        return resolved

    async def upload(self, path: str, data: bytes) -> str:
        """Write *data* at *path* (overwriting) and return *path*."""
        target = self._resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("Stored %d bytes at %s/%s", len(data), self.bucket, path)
        return path

    async def download(self, path: str) -> bytes:
        """Read the object at *path*.

        Raises:
            BlobNotFoundError: If nothing is stored there.
        """
        target = self.local_path(path)
        return await asyncio.to_thread(target.read_bytes)

    async def remove(self, paths: list[str]) -> int:
        """Delete objects; missing ones are skipped. Returns how many were removed."""
        removed = 0
        for path in paths:
            target = self._resolve(path)
            if target.is_file():
                await asyncio.to_thread(target.unlink)
                removed += 1
        return removed

    async def remove_prefix(self, prefix: str) -> int:
        """Delete every object under a directory prefix, and the directory itself."""
        base = self._resolve(prefix)
        if not base.is_dir() or base == self._root:
            return 0

        def _clear() -> int:
            count = sum(1 for p in base.rglob("*") if p.is_file())
            shutil.rmtree(base)
            return count

        return await asyncio.to_thread(_clear)


def audio_path(user_id: str, memory_id: str, ext: str = "webm") -> str:
    return f"{user_id}/{memory_id}.{ext}"


def sketch_path(user_id: str, memory_id: str, scene_index: int, ext: str = "png") -> str:
    return f"{user_id}/{memory_id}/sketch-{scene_index}.{ext}"
