from sqlalchemy import Column, DateTime, Integer, Text

from social_bot.database import Base


class ChatMessage(Base):
    __tablename__ = "social_chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Text, nullable=False, index=True)  # {page_id}_{sender_id}
    customer_name = Column(Text, nullable=False, default="")
    sender = Column(Text, nullable=False)  # customer, bot
    message = Column(Text, nullable=False)
    platform = Column(Text, nullable=False)  # facebook, instagram
    page_id = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
