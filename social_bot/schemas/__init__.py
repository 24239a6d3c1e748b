from social_bot.schemas.manual import ManualReplyRequest, ManualReplyResponse, MediaReplyResponse
from social_bot.schemas.message import ConversationSummary, LiveMessage, MessageOut

__all__ = [
    "LiveMessage",
    "MessageOut",
    "ConversationSummary",
    "ManualReplyRequest",
    "ManualReplyResponse",
    "MediaReplyResponse",
]
