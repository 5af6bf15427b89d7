"""
Media service - local storage for report photos, videos and voice notes.

Files are written under UPLOAD_DIR and served by the app at /uploads.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional
import logging
import random
import re
import time

from civicsense.core.exceptions import NotFoundError, ValidationError
from civicsense.core.settings import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
ALLOWED_VIDEO_TYPES = ["video/mp4", "video/mpeg", "video/quicktime", "video/webm"]
ALLOWED_AUDIO_TYPES = ["audio/mpeg", "audio/wav", "audio/ogg", "audio/webm"]
ALLOWED_TYPES = ALLOWED_IMAGE_TYPES + ALLOWED_VIDEO_TYPES + ALLOWED_AUDIO_TYPES

UPLOAD_URL_PREFIX = "/uploads"
FIELD_NAME = "media"
READ_CHUNK_BYTES = 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name or "upload")


def format_file_size(size: int) -> str:
    """1536 -> "1.5 KB" """
    if size == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {units[exponent]}"


def media_type_for(mimetype: str) -> str:
    for prefix in ("image", "video", "audio"):
        if mimetype.startswith(f"{prefix}/"):
            return prefix
    return "unknown"


class MediaService:

    @property
    def upload_dir(self) -> Path:
        path = Path(settings.UPLOAD_DIR)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _resolve(self, filename: str) -> Path:
        """
        Map a stored filename to its path inside UPLOAD_DIR.

        Raises:
            ValidationError: If the name escapes the upload directory
        """
        root = self.upload_dir.resolve()
        candidate = (root / filename).resolve()
        if candidate.parent != root:
            raise ValidationError("Invalid filename")
        return candidate

    def read_upload(self, upload) -> bytes:
        """
        Read an UploadFile body, stopping once it passes MAX_UPLOAD_BYTES.

        Raises:
            ValidationError: File too large
        """
        limit = settings.MAX_UPLOAD_BYTES
        if upload.size is not None and upload.size > limit:
            raise self._too_large()

        chunks = []
        received = 0
        while True:
            chunk = upload.file.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            received += len(chunk)
            if received > limit:
                raise self._too_large()
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _too_large() -> ValidationError:
        return ValidationError(
            f"File too large: maximum file size is {format_file_size(settings.MAX_UPLOAD_BYTES)}"
        )

    def validate_upload(self, content: bytes, mimetype: Optional[str]):
        if mimetype not in ALLOWED_TYPES:
            raise ValidationError(
                f"Invalid file type: {mimetype} not allowed. Supported types: images, videos, audio files."
            )
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise self._too_large()

    def save_upload(self, content: bytes, original_name: Optional[str], mimetype: Optional[str]) -> Dict:
        """
        Validate and store an uploaded file.

        Args:
            content: Raw file bytes
            original_name: Client-supplied filename
            mimetype: Client-supplied content type

        Returns:
            Stored media info (url, filename, original_name, size, mimetype)

        Raises:
            ValidationError: Disallowed type or file too large
        """
        self.validate_upload(content, mimetype)

        original_name = original_name or "upload"
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10 ** 9)}"
        filename = f"{FIELD_NAME}-{unique_suffix}-{sanitize_filename(original_name)}"
        path = self._resolve(filename)
        path.write_bytes(content)

        logger.info(f"📎 Media uploaded: {filename} ({format_file_size(len(content))})")
        return {
            "url": f"{UPLOAD_URL_PREFIX}/{filename}",
            "filename": filename,
            "original_name": original_name,
            "size": len(content),
            "mimetype": mimetype,
        }

    def describe_upload(self, media: Dict) -> Dict:
        """Upload response: stored media info plus display metadata."""
        response = {"success": True}
        response.update(media)
        response["media_type"] = media_type_for(media["mimetype"])
        response["uploaded_at"] = datetime.now(timezone.utc)
        response["size_formatted"] = format_file_size(media["size"])
        return response

    def get_info(self, filename: str) -> Dict:
        path = self._resolve(filename)
        if not path.is_file():
            raise NotFoundError("File not found")
        stats = path.stat()
        return {
            "filename": filename,
            "url": f"{UPLOAD_URL_PREFIX}/{filename}",
            "size": stats.st_size,
            "size_formatted": format_file_size(stats.st_size),
            "uploaded_at": datetime.fromtimestamp(stats.st_ctime, tz=timezone.utc),
            "last_modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
        }

    def delete(self, filename: str) -> Dict:
        path = self._resolve(filename)
        if not path.is_file():
            raise NotFoundError("File not found")
        path.unlink()
        logger.info(f"🗑️ Media file deleted: {filename}")
        return {"success": True, "message": "File deleted successfully", "filename": filename}


# Global service instance (singleton)
_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """Get or create the global media service instance."""
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service
