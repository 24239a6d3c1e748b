from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from social_bot.database import get_db
from social_bot.logging_config import get_logger
from social_bot.schemas.message import ConversationSummary, LiveMessage, MessageOut, to_isoformat
from social_bot.services.message_service import get_conversation_messages, list_recent_conversations
from social_bot.services.normalizer import extract_media_urls

logger = get_logger("conversations")

router = APIRouter()


@router.get("/conversations", response_model=list[ConversationSummary])
def get_conversations(db: Session = Depends(get_db)):
    try:
        latest = list_recent_conversations(db)
    except SQLAlchemyError as exc:
        logger.error(f"Failed to load conversations: {exc}")
        raise HTTPException(status_code=500, detail="Failed to load conversations")

    return [
        ConversationSummary(
            conversationId=record.conversation_id,
            customerName=record.customer_name,
            platform=record.platform,
            pageId=record.page_id,
            lastMessage=record.message,
            lastTime=to_isoformat(record.timestamp),
        )
        for record in latest
    ]


@router.get("/messages/{conversation_id}", response_model=list[MessageOut])
def get_messages(conversation_id: str, db: Session = Depends(get_db)):
    try:
        records = get_conversation_messages(db, conversation_id)
    except SQLAlchemyError as exc:
        logger.error(f"Failed to load messages for {conversation_id}: {exc}")
        raise HTTPException(status_code=500, detail="Failed to load messages")

    return [
        MessageOut(
            id=record.id,
            mediaUrls=extract_media_urls(record.message),
            **LiveMessage.from_record(record).model_dump(),
        )
        for record in records
    ]
