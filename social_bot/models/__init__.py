from social_bot.models.chat_message import ChatMessage

__all__ = ["ChatMessage"]
