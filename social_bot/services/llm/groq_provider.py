from typing import List, Optional

import httpx

from social_bot.logging_config import get_logger
from social_bot.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.groq")


class LLMProviderError(Exception):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Groq API error: {status_code} - {body[:200]}")


class GroqProvider(LLMProvider):
    """Groq chat completions (OpenAI-compatible wire format)."""

    name = "groq"

    def __init__(
        self,
        api_key: str,
        default_model: str = "llama-3.3-70b-versatile",
        base_url: str = "https://api.groq.com/openai/v1",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.completions_url = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def generate(
        self,
        messages: List[dict],
        *,
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 120,
    ) -> LLMResponse:
        model = model or self.default_model
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug(f"Groq request: model={model}, messages_count={len(messages)}")

        with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = client.post(
                self.completions_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )

        logger.debug(f"Groq response status: {response.status_code}")
        if response.status_code != 200:
            logger.error(f"Groq error: {response.text[:500]}")
            raise LLMProviderError(response.status_code, response.text)

        data = response.json()
        content = ""
        finish_reason = None
        choices = data.get("choices") or []
        if choices:
            message = choices[0].get("message") or {}
            content = message.get("content") or ""
            finish_reason = choices[0].get("finish_reason")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
            finish_reason=finish_reason,
        )
