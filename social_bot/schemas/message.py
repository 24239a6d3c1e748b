from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel

from social_bot.models import ChatMessage


def to_isoformat(value: datetime) -> str:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class LiveMessage(BaseModel):
    """Payload of the `new_message` live event; mirrors one stored record."""

    conversationId: str
    customerName: str
    sender: Literal["customer", "bot"]
    message: str
    platform: Literal["facebook", "instagram"]
    pageId: str
    timestamp: str

    @classmethod
    def from_record(cls, record: ChatMessage) -> "LiveMessage":
        return cls(
            conversationId=record.conversation_id,
            customerName=record.customer_name,
            sender=record.sender,
            message=record.message,
            platform=record.platform,
            pageId=record.page_id,
            timestamp=to_isoformat(record.timestamp),
        )


class MessageOut(LiveMessage):
    id: int
    mediaUrls: list[str] = []


class ConversationSummary(BaseModel):
    conversationId: str
    customerName: str
    platform: Literal["facebook", "instagram"]
    pageId: str
    lastMessage: str
    lastTime: str
