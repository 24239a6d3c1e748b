from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from social_bot.logging_config import get_logger
from social_bot.services.context_store import ChatTurn, ConversationContextStore
from social_bot.services.llm import LLMProvider
from social_bot.services.normalizer import InboundEvent
from social_bot.services.product_catalog import ProductCatalog
from social_bot.services.result import Result

logger = get_logger("reply_policy")

ATTACHMENT_REPLY = (
    "ধন্যবাদ! ছবিটা পেয়েছি দয়া করে আপনার whatsapp নাম্বার দিন, "
    "আমাদের একজন প্রতিনিধি শিগ্রই আপনার সাথে যোগাযোগ করবে।"
)
FALLBACK_REPLY = "ধন্যবাদ! অনুগ্রহ করে আপনার প্রোডাক্টের ছবি দিন 😊"
PRICE_REPLY_TEMPLATE = "আপনার প্রোডাক্টের দাম: {price} টাকা। অনুগ্রহ করে ছবি পাঠান।"

SYSTEM_PROMPT = f"""
You are a customer support assistant for "Takesell".

Rules:
- Always reply in the SAME language as the user (Bangla or English)
- Be polite, professional, and short (1-2 lines only)
- Do NOT give unnecessary information

Conversation handling:
- Always check the customer's previous message history before replying
- If the customer is NEW, talk in a friendly and welcoming way like a first-time customer
- If the customer is already chatting, reply based on the conversation context

Business behavior:
- We provide custom sofa covers, pillow covers, and chair covers
- Cash on Delivery is available all over Bangladesh
- First, ask the customer to send a product photo
- If the customer sends a photo/image, reply exactly:
  "{ATTACHMENT_REPLY}"
- If the customer wants to place an order, ask for:
  • Name
  • Full address
  • Phone number
- After collecting order details, say:
  "Our representative will contact you shortly. Thank you."

Your job:
- ONLY do the tasks mentioned above
- Keep replies simple, helpful, and human-like
- Product prices are fixed and stored in a product list
- Never guess prices
- Ask product type and size before telling price
- Price must match the stored product list exactly
- If product not found, politely say price will be confirmed by representative
"""

REPLY_STYLE_DIRECTIVE = """
Reply rules (must follow):
- Always complete the sentence
- Never cut off mid-sentence
- End reply with a clear question or instruction
- Keep reply within 1-2 short lines
- Sound natural, polite, and human
"""


class ReplySource(str, Enum):
    ATTACHMENT = "attachment"
    PRICE = "price"
    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ReplyDecision:
    text: str
    source: ReplySource


def build_ai_messages(history: List[ChatTurn], user_text: str) -> List[dict]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "assistant", "content": REPLY_STYLE_DIRECTIVE},
        *(turn.as_message() for turn in history),
        {"role": "user", "content": user_text},
    ]


class ReplyPolicy:
    """
    Decide the bot's answer to one inbound event.

    First match wins: attachment acknowledgement, catalog price quote, AI
    completion, fixed fallback. Every decision is recorded in the context
    window as a user/assistant pair.
    """

    def __init__(
        self,
        catalog: ProductCatalog,
        context_store: ConversationContextStore,
        llm_provider: Callable[[], Optional[LLMProvider]],
        *,
        model: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 120,
    ):
        self.catalog = catalog
        self.context_store = context_store
        self._llm_provider = llm_provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def match_price(self, text: str) -> Optional[str]:
        parts = text.split()
        if len(parts) < 2:
            return None
        product = self.catalog.find(parts[0], parts[1])
        if product is None:
            return None
        return PRICE_REPLY_TEMPLATE.format(price=product.price)

    def generate_ai_reply(self, conversation_id: str, user_text: str) -> Result[str]:
        provider = self._llm_provider()
        if provider is None:
            return Result.failure("AI provider not configured", "ai_unavailable")

        messages = build_ai_messages(self.context_store.get(conversation_id), user_text)
        try:
            response = provider.generate(
                messages,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            logger.warning(
                "AI completion failed, using fallback reply",
                extra={"context": {"conversation_id": conversation_id, "error": str(exc)}},
            )
            return Result.from_exception(exc, "ai_error")

        if response.truncated:
            logger.warning(
                "AI completion hit the token cap",
                extra={"context": {"conversation_id": conversation_id, "provider": provider.name}},
            )
        content = (response.content or "").strip()
        if not content:
            return Result.failure("Empty completion", "ai_empty")
        return Result.success(content)

    def decide(self, event: InboundEvent, conversation_id: str) -> ReplyDecision:
        user_text = event.message_text

        if event.has_attachments:
            decision = ReplyDecision(ATTACHMENT_REPLY, ReplySource.ATTACHMENT)
        else:
            price_reply = self.match_price(user_text)
            if price_reply:
                decision = ReplyDecision(price_reply, ReplySource.PRICE)
            else:
                result = self.generate_ai_reply(conversation_id, user_text)
                if result.ok:
                    decision = ReplyDecision(result.value, ReplySource.AI)
                else:
                    decision = ReplyDecision(FALLBACK_REPLY, ReplySource.FALLBACK)

        self.context_store.append_exchange(conversation_id, user_text, decision.text)
        logger.info(
            "Reply decided",
            extra={"context": {"conversation_id": conversation_id, "source": decision.source.value}},
        )
        return decision
