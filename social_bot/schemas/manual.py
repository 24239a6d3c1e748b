from typing import Literal, Optional

from pydantic import BaseModel


class ManualReplyRequest(BaseModel):
    conversationId: Optional[str] = None
    message: Optional[str] = None


class ManualReplyResponse(BaseModel):
    ok: bool


class SentMediaItem(BaseModel):
    type: Literal["image", "video"]
    url: str


class FailedMediaItem(BaseModel):
    name: str
    mimetype: str
    error: str


class MediaReplyResponse(BaseModel):
    ok: bool
    sent: int
    failed: int
    sentItems: list[SentMediaItem]
    failedItems: list[FailedMediaItem]
