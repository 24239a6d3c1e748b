from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Literal

MAX_CONTEXT_PAIRS = 5


@dataclass(frozen=True)
class ChatTurn:
    role: Literal["user", "assistant"]
    content: str

    def as_message(self) -> dict:
        return {"role": self.role, "content": self.content}


class ConversationContextStore:
    """
    Short-term chat history per conversation, used only to condition AI replies.

    Lives in process memory. Keys are never evicted; each window keeps the most
    recent `max_pairs` user/assistant pairs and drops the oldest turns first.
    Appends to the same conversation from concurrent requests are not serialized.
    """

    def __init__(self, max_pairs: int = MAX_CONTEXT_PAIRS):
        self.max_turns = max_pairs * 2
        self._windows: Dict[str, Deque[ChatTurn]] = {}

    def _window(self, conversation_id: str) -> Deque[ChatTurn]:
        window = self._windows.get(conversation_id)
        if window is None:
            window = deque(maxlen=self.max_turns)
            self._windows[conversation_id] = window
        return window

    def get(self, conversation_id: str) -> List[ChatTurn]:
        """Turns oldest-first; a copy, safe to iterate while others append."""
        return list(self._windows.get(conversation_id, ()))

    def append(self, conversation_id: str, turn: ChatTurn) -> None:
        self._window(conversation_id).append(turn)

    def append_exchange(self, conversation_id: str, user_text: str, assistant_text: str) -> None:
        window = self._window(conversation_id)
        window.append(ChatTurn(role="user", content=user_text))
        window.append(ChatTurn(role="assistant", content=assistant_text))

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._windows

    def __len__(self) -> int:
        return len(self._windows)
