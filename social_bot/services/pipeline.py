"""Webhook-to-reply pipeline and operator-triggered sends."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from social_bot.config import settings
from social_bot.logging_config import get_logger
from social_bot.models import ChatMessage
from social_bot.schemas.message import LiveMessage
from social_bot.services.alert_service import alert_error
from social_bot.services.context_store import ConversationContextStore
from social_bot.services.live_service import LiveBroadcaster, get_broadcaster
from social_bot.services.llm import GroqProvider, LLMProvider
from social_bot.services.media_service import OutgoingMedia, build_public_url, store_upload
from social_bot.services.message_service import get_last_message, save_message
from social_bot.services.normalizer import (
    IMAGE_MARKER,
    VIDEO_MARKER,
    InboundEvent,
    normalize_webhook_payload,
    split_conversation_id,
)
from social_bot.services.platform_client import Platform, PlatformClient, get_platform_client
from social_bot.services.product_catalog import ProductCatalog, load_product_catalog
from social_bot.services.reply_policy import ReplyDecision, ReplyPolicy

logger = get_logger("pipeline")

WEBHOOK_ACK = "EVENT_RECEIVED"


class ManualSendError(Exception):
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


@dataclass
class MediaSendResult:
    sent_items: List[dict] = field(default_factory=list)
    failed_items: List[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.sent_items)


class ReplyPipeline:
    def __init__(
        self,
        *,
        page_tokens: dict[str, str],
        reply_policy: ReplyPolicy,
        broadcaster: LiveBroadcaster,
        client_factory: Callable[..., PlatformClient] = get_platform_client,
        upload_dir: str = "uploads",
        public_base_url: str = "",
        fetch_customer_names: bool = False,
    ):
        self.page_tokens = page_tokens
        self.reply_policy = reply_policy
        self.broadcaster = broadcaster
        self.client_factory = client_factory
        self.upload_dir = upload_dir
        self.public_base_url = public_base_url
        self.fetch_customer_names = fetch_customer_names

    async def _record(self, db: Session, **fields) -> ChatMessage:
        """Persist, commit, then fan out. A record is broadcast only once it is durable."""
        record = save_message(db, **fields)
        db.commit()
        await self.broadcaster.broadcast(LiveMessage.from_record(record))
        return record

    async def _customer_name(self, client: PlatformClient, event: InboundEvent, access_token: str) -> str:
        if not self.fetch_customer_names:
            return event.sender_id
        return await client.fetch_user_name(event.sender_id, access_token)

    async def handle_webhook(self, db: Session, payload: Any) -> str:
        """Process one webhook body. Always returns the acknowledgement token."""
        try:
            event = normalize_webhook_payload(payload)
            if event is not None:
                await self.process_event(db, event)
        except Exception as exc:
            db.rollback()
            logger.error(
                f"Webhook processing failed: {exc}",
                exc_info=True,
                extra={"context": {"error_type": type(exc).__name__}},
            )
            alert_error("Webhook processing failed", {"error": str(exc)[:300]})
        return WEBHOOK_ACK

    async def process_event(self, db: Session, event: InboundEvent) -> Optional[ReplyDecision]:
        access_token = self.page_tokens.get(event.page_id)
        if not access_token:
            logger.warning(f"Unknown page id, ignoring event: page_id={event.page_id}")
            return None

        conversation_id = event.conversation_id
        platform = event.platform.value
        client = self.client_factory(event.platform, event.page_id)
        customer_name = await self._customer_name(client, event, access_token)
        common = {
            "conversation_id": conversation_id,
            "customer_name": customer_name,
            "platform": platform,
            "page_id": event.page_id,
        }

        await self._record(db, sender="customer", message=event.message_text, **common)

        decision = await asyncio.to_thread(self.reply_policy.decide, event, conversation_id)
        await client.send_text(event.sender_id, decision.text, access_token)

        await self._record(db, sender="bot", message=decision.text, **common)
        logger.info(
            "Reply delivered",
            extra={"context": {"conversation_id": conversation_id, "platform": platform, "source": decision.source.value}},
        )
        return decision

    def _resolve_target(self, db: Session, conversation_id: Optional[str]) -> tuple[str, str, Platform, str, str]:
        parts = split_conversation_id(conversation_id or "")
        if parts is None:
            raise ManualSendError(400, "Invalid conversationId")
        page_id, recipient_id = parts

        last = get_last_message(db, conversation_id)
        platform = Platform(last.platform) if last and last.platform else Platform.FACEBOOK
        customer_name = (last.customer_name if last else None) or recipient_id

        access_token = self.page_tokens.get(page_id)
        if not access_token:
            raise ManualSendError(400, "Page token not found")
        return page_id, recipient_id, platform, customer_name, access_token

    async def manual_reply(self, db: Session, conversation_id: Optional[str], message: Optional[str]) -> ChatMessage:
        """Operator text reply. Not retried: a failed send is reported as is."""
        if not conversation_id or not message:
            raise ManualSendError(400, "conversationId and message required")
        page_id, recipient_id, platform, customer_name, access_token = self._resolve_target(db, conversation_id)

        client = self.client_factory(platform, page_id)
        try:
            await client.send_text(recipient_id, message, access_token, manual=True)
        except Exception as exc:
            logger.error(f"Manual reply failed: conversation_id={conversation_id}, error={exc}")
            raise ManualSendError(500, "Failed to send") from exc

        return await self._record(
            db,
            conversation_id=conversation_id,
            customer_name=customer_name,
            sender="bot",
            message=message,
            platform=platform.value,
            page_id=page_id,
        )

    async def manual_media_reply(
        self, db: Session, conversation_id: Optional[str], files: List[OutgoingMedia]
    ) -> MediaSendResult:
        """
        Operator media reply: each file is stored, sent (with retry) and recorded
        on its own. One failure never stops the remaining files.
        """
        if not conversation_id or not files:
            raise ManualSendError(400, "conversationId and files required")
        page_id, recipient_id, platform, customer_name, access_token = self._resolve_target(db, conversation_id)
        if not self.public_base_url:
            raise ManualSendError(500, "PUBLIC_BASE_URL missing")

        client = self.client_factory(platform, page_id)
        result = MediaSendResult()

        for media in files:
            try:
                stored_name = store_upload(media, self.upload_dir)
                media_url = build_public_url(self.public_base_url, stored_name)
                await client.send_attachment(recipient_id, media_url, media.kind, access_token)

                marker = VIDEO_MARKER if media.kind == "video" else IMAGE_MARKER
                await self._record(
                    db,
                    conversation_id=conversation_id,
                    customer_name=customer_name,
                    sender="bot",
                    message=f"{marker} {media_url}",
                    platform=platform.value,
                    page_id=page_id,
                )
                result.sent_items.append({"type": media.kind, "url": media_url})
            except Exception as exc:
                db.rollback()
                logger.error(
                    f"Manual media send failed: {media.filename}",
                    extra={"context": {"conversation_id": conversation_id, "error": str(exc)}},
                )
                result.failed_items.append(
                    {"name": media.filename, "mimetype": media.content_type, "error": str(exc)}
                )

        return result


_llm_provider: Optional[LLMProvider] = None
_pipeline: Optional[ReplyPipeline] = None


def get_llm_provider() -> Optional[LLMProvider]:
    global _llm_provider
    if _llm_provider is None and settings.groq_api_key:
        _llm_provider = GroqProvider(
            api_key=settings.groq_api_key,
            default_model=settings.ai_model,
            base_url=settings.groq_base_url,
            timeout_seconds=settings.ai_timeout_seconds,
        )
    return _llm_provider


def build_pipeline(catalog: Optional[ProductCatalog] = None) -> ReplyPipeline:
    policy = ReplyPolicy(
        catalog if catalog is not None else load_product_catalog(settings.products_path),
        ConversationContextStore(),
        get_llm_provider,
        model=settings.ai_model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
    )
    return ReplyPipeline(
        page_tokens=settings.page_tokens,
        reply_policy=policy,
        broadcaster=get_broadcaster(),
        upload_dir=settings.upload_dir,
        public_base_url=settings.public_base_url,
        fetch_customer_names=settings.fetch_customer_names,
    )


def get_pipeline() -> ReplyPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline
