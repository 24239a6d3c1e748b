from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Optional[dict] = None
    finish_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        # Replies are capped at a few dozen tokens; "length" means the cap cut the sentence.
        return self.finish_reason == "length"


class LLMProvider(ABC):
    """Chat-completion backend used for free-form customer replies."""

    name: str = "llm"

    @abstractmethod
    def generate(
        self,
        messages: List[dict],
        *,
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 120,
    ) -> LLMResponse:
        """Return the first completion for role-tagged `messages`. Raises on transport or API errors."""
