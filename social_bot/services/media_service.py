import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import quote
from uuid import uuid4

from social_bot.logging_config import get_logger

logger = get_logger("media_service")


@dataclass(frozen=True)
class OutgoingMedia:
    """One operator-uploaded file waiting to be stored and sent."""

    filename: str
    content_type: str
    content: bytes

    @property
    def kind(self) -> Literal["image", "video"]:
        return "video" if (self.content_type or "").startswith("video/") else "image"


def _guess_extension(mime: Optional[str], file_name: Optional[str]) -> str:
    if file_name:
        suffix = Path(file_name).suffix
        if suffix and re.fullmatch(r"\.[A-Za-z0-9]{1,8}", suffix):
            return suffix.lower()
    if mime:
        ext = mimetypes.guess_extension(mime.split(";")[0].strip())
        if ext:
            return ext
    return ""


def store_upload(media: OutgoingMedia, upload_dir: str | Path) -> str:
    """Write the file under `upload_dir` with a random name; return that name."""
    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid4().hex}{_guess_extension(media.content_type, media.filename)}"
    (target_dir / stored_name).write_bytes(media.content)
    logger.info(
        "Upload stored",
        extra={"context": {"name": media.filename, "stored_as": stored_name, "size_bytes": len(media.content)}},
    )
    return stored_name


def build_public_url(public_base_url: str, stored_name: str) -> str:
    return f"{public_base_url.rstrip('/')}/uploads/{quote(stored_name)}"
