"""Map Meta webhook payloads (Messenger and Instagram) onto one inbound event shape."""

import re
from dataclasses import dataclass
from typing import Any, Optional

from social_bot.logging_config import get_logger
from social_bot.services.platform_client import Platform

logger = get_logger("normalizer")

IMAGE_MARKER = "📷 Image:"
IMAGES_MARKER = "📷 Images:"
VIDEO_MARKER = "🎥 Video:"

_MEDIA_LINE_PATTERN = re.compile(r"^(?:📷 Images?:|🎥 Video:)?\s*(https?://\S+)\s*$")


class VerificationFailed(Exception):
    pass


@dataclass(frozen=True)
class InboundEvent:
    platform: Platform
    page_id: str
    sender_id: str
    text: Optional[str] = None
    attachment_urls: tuple[str, ...] = ()

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachment_urls)

    @property
    def conversation_id(self) -> str:
        return build_conversation_id(self.page_id, self.sender_id)

    @property
    def message_text(self) -> str:
        """Single text field for storage and AI context."""
        if self.attachment_urls:
            return summarize_attachments(self.attachment_urls)
        return self.text or ""


def build_conversation_id(page_id: str, sender_id: str) -> str:
    return f"{page_id}_{sender_id}"


def split_conversation_id(conversation_id: str) -> Optional[tuple[str, str]]:
    page_id, _, sender_id = (conversation_id or "").partition("_")
    if not page_id or not sender_id:
        return None
    return page_id, sender_id


def summarize_attachments(urls: tuple[str, ...] | list[str]) -> str:
    if len(urls) == 1:
        return f"{IMAGE_MARKER} {urls[0]}"
    return "\n".join([IMAGES_MARKER, *urls])


def extract_media_urls(message: str) -> list[str]:
    """Recover attachment URLs from a stored message built by this module or a manual media send."""
    if not message or not message.startswith(("📷", "🎥")):
        return []
    urls = []
    for line in message.splitlines():
        match = _MEDIA_LINE_PATTERN.match(line.strip())
        if match:
            urls.append(match.group(1))
    return urls


def verify_subscription(
    mode: Optional[str],
    verify_token: Optional[str],
    challenge: Optional[str],
    expected_token: str,
) -> str:
    """Webhook handshake: echo the challenge when the shared token matches."""
    if mode == "subscribe" and expected_token and verify_token == expected_token:
        return challenge or ""
    raise VerificationFailed("Webhook verification failed")


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _first(value: Any) -> dict:
    if isinstance(value, list) and value:
        return _as_dict(value[0])
    return {}


def _clean_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _attachment_urls(message: dict) -> tuple[str, ...]:
    attachments = message.get("attachments")
    if not isinstance(attachments, list):
        return ()
    urls = []
    for attachment in attachments:
        url = _as_dict(_as_dict(attachment).get("payload")).get("url")
        if isinstance(url, str) and url:
            urls.append(url)
    return tuple(urls)


def _coerce_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def normalize_webhook_payload(payload: Any) -> Optional[InboundEvent]:
    """
    Build at most one InboundEvent from a webhook body.

    Only the first entry is read. Returns None when there is nothing to answer:
    no entry, no sender, an echo of the page's own message, or neither text nor
    attachments.
    """
    payload = _as_dict(payload)
    entry = _first(payload.get("entry"))
    if not entry:
        return None

    page_id = _coerce_id(entry.get("id"))
    sender_id = None
    message: dict = {}
    platform = Platform.FACEBOOK

    if isinstance(entry.get("messaging"), list):
        event = _first(entry.get("messaging"))
        sender_id = _coerce_id(_as_dict(event.get("sender")).get("id"))
        message = _as_dict(event.get("message"))
        if payload.get("object") == "instagram":
            platform = Platform.INSTAGRAM
    elif isinstance(entry.get("changes"), list):
        value = _as_dict(_first(entry.get("changes")).get("value"))
        message = _first(value.get("messages"))
        sender_id = _coerce_id(_as_dict(message.get("from")).get("id"))
        platform = Platform.INSTAGRAM

    if message.get("is_echo"):
        logger.debug("Skipping echo event", extra={"context": {"page_id": page_id}})
        return None

    text = _clean_text(message.get("text"))
    urls = _attachment_urls(message)

    if not page_id or not sender_id or (not text and not urls):
        logger.info(
            "Webhook event dropped",
            extra={
                "context": {
                    "has_page_id": bool(page_id),
                    "has_sender": bool(sender_id),
                    "has_text": bool(text),
                    "attachments": len(urls),
                }
            },
        )
        return None

    return InboundEvent(
        platform=platform,
        page_id=page_id,
        sender_id=sender_id,
        text=None if urls else text,
        attachment_urls=urls,
    )
