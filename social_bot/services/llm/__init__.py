from social_bot.services.llm.base import LLMProvider, LLMResponse
from social_bot.services.llm.groq_provider import GroqProvider, LLMProviderError

__all__ = ["LLMProvider", "LLMResponse", "GroqProvider", "LLMProviderError"]
