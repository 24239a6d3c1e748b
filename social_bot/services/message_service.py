from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from social_bot.models import ChatMessage

CONVERSATION_LIST_LIMIT = 200
MESSAGE_HISTORY_LIMIT = 500


def save_message(
    db: Session,
    *,
    conversation_id: str,
    customer_name: str,
    sender: str,
    message: str,
    platform: str,
    page_id: str,
    timestamp: Optional[datetime] = None,
) -> ChatMessage:
    """Append one message record. Callers commit."""
    if not conversation_id:
        raise ValueError("conversation_id is required")
    now = datetime.now(timezone.utc)
    record = ChatMessage(
        conversation_id=conversation_id,
        customer_name=customer_name or "",
        sender=sender,
        message=message,
        platform=platform,
        page_id=page_id,
        timestamp=timestamp or now,
        created_at=now,
    )
    db.add(record)
    db.flush()
    return record


def get_last_message(db: Session, conversation_id: str) -> Optional[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.conversation_id == conversation_id)
        .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
        .first()
    )


def get_conversation_messages(
    db: Session, conversation_id: str, limit: int = MESSAGE_HISTORY_LIMIT
) -> List[ChatMessage]:
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.conversation_id == conversation_id)
        .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
        .limit(limit)
        .all()
    )


def list_recent_conversations(db: Session, limit: int = CONVERSATION_LIST_LIMIT) -> List[ChatMessage]:
    """Latest record of each conversation, most recent conversation first."""
    latest_id = (
        db.query(func.max(ChatMessage.id).label("id"))
        .group_by(ChatMessage.conversation_id)
        .subquery()
    )
    return (
        db.query(ChatMessage)
        .join(latest_id, ChatMessage.id == latest_id.c.id)
        .order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())
        .limit(limit)
        .all()
    )
