"""Graph API send clients for Facebook Messenger and Instagram."""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Literal, Optional

import httpx

from social_bot.config import settings
from social_bot.logging_config import get_logger
from social_bot.services.retry import RetryPolicy, linear_backoff

logger = get_logger("platform_client")

# Meta signals an upstream timeout with code -2 or subcode 2018386.
TRANSIENT_ERROR_CODE = -2
TRANSIENT_ERROR_SUBCODE = 2018386

AttachmentKind = Literal["image", "video"]


class Platform(str, Enum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"


class PlatformSendError(Exception):
    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[int] = None,
        subcode: Optional[int] = None,
        payload: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.subcode = subcode
        self.payload = payload or {}
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        return self.code == TRANSIENT_ERROR_CODE or self.subcode == TRANSIENT_ERROR_SUBCODE

    def __str__(self) -> str:
        return f"{self.message} (status={self.status_code}, code={self.code}, subcode={self.subcode})"


def is_transient_send_error(exc: Exception) -> bool:
    return isinstance(exc, PlatformSendError) and exc.is_transient


ATTACHMENT_RETRY_POLICY = RetryPolicy(
    max_attempts=3,
    backoff=linear_backoff(0.8),
    retryable=is_transient_send_error,
)


class PlatformClient(ABC):
    """
    Outbound sends for one page on one platform.

    Text sends are best-effort and never retried. Attachment sends go through
    `retry_policy`, which only retries Meta's transient timeout signature.
    """

    platform: Platform

    def __init__(
        self,
        page_id: str,
        *,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        retry_policy: RetryPolicy = ATTACHMENT_RETRY_POLICY,
        sleep_func=None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.page_id = page_id
        base_url = base_url or settings.graph_api_base_url
        api_version = api_version or settings.graph_api_version
        self.graph_url = f"{base_url.rstrip('/')}/{api_version}"
        self.timeout_seconds = timeout_seconds or settings.platform_timeout_seconds
        self.retry_policy = retry_policy
        self._sleep_func = sleep_func or asyncio.sleep
        self._transport = transport

    @property
    @abstractmethod
    def messages_url(self) -> str:
        """Send API endpoint for this platform."""

    def _build_body(self, recipient_id: str, message: dict, *, manual: bool) -> dict:
        return {"recipient": {"id": recipient_id}, "message": message}

    async def _post(self, url: str, body: dict, access_token: str) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, params={"access_token": access_token}, json=body)
        except httpx.HTTPError as exc:
            raise PlatformSendError(f"{self.platform.value} request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        error = data.get("error")
        if response.status_code >= 400 or error:
            error = error if isinstance(error, dict) else {}
            raise PlatformSendError(
                error.get("message") or f"{self.platform.value} send failed",
                status_code=response.status_code,
                code=error.get("code"),
                subcode=error.get("error_subcode"),
                payload=data,
            )
        return data

    async def send_text(self, recipient_id: str, text: str, access_token: str, *, manual: bool = False) -> dict:
        body = self._build_body(recipient_id, {"text": text}, manual=manual)
        data = await self._post(self.messages_url, body, access_token)
        logger.info(
            "Text sent",
            extra={"context": {"platform": self.platform.value, "page_id": self.page_id, "recipient": recipient_id}},
        )
        return data

    async def send_attachment(
        self,
        recipient_id: str,
        media_url: str,
        kind: AttachmentKind,
        access_token: str,
        *,
        manual: bool = True,
    ) -> dict:
        message = {"attachment": {"type": kind, "payload": {"url": media_url}}}
        body = self._build_body(recipient_id, message, manual=manual)

        async def _attempt() -> dict:
            return await self._post(self.messages_url, body, access_token)

        data = await self.retry_policy.run(_attempt, sleep_func=self._sleep_func)
        logger.info(
            "Attachment sent",
            extra={
                "context": {
                    "platform": self.platform.value,
                    "page_id": self.page_id,
                    "recipient": recipient_id,
                    "kind": kind,
                }
            },
        )
        return data

    async def fetch_user_name(self, user_id: str, access_token: str) -> str:
        """Profile name for `user_id`; the id itself when the lookup is blocked or fails."""
        if not access_token:
            return user_id
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(
                    f"{self.graph_url}/{user_id}",
                    params={"fields": "name,first_name,last_name", "access_token": access_token},
                )
            if response.status_code != 200:
                logger.info(f"Profile lookup refused: user={user_id}, status={response.status_code}")
                return user_id
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info(f"Profile lookup failed: user={user_id}, error={exc}")
            return user_id

        name = data.get("name") or " ".join(part for part in (data.get("first_name"), data.get("last_name")) if part)
        return name or user_id


class FacebookClient(PlatformClient):
    platform = Platform.FACEBOOK

    @property
    def messages_url(self) -> str:
        return f"{self.graph_url}/me/messages"

    def _build_body(self, recipient_id: str, message: dict, *, manual: bool) -> dict:
        body = super()._build_body(recipient_id, message, manual=manual)
        if manual:
            body["messaging_type"] = "RESPONSE"
        return body


class InstagramClient(PlatformClient):
    platform = Platform.INSTAGRAM

    @property
    def messages_url(self) -> str:
        return f"{self.graph_url}/{self.page_id}/messages"


_CLIENTS = {
    Platform.FACEBOOK: FacebookClient,
    Platform.INSTAGRAM: InstagramClient,
}


def get_platform_client(platform: Platform | str, page_id: str, **kwargs) -> PlatformClient:
    return _CLIENTS[Platform(platform)](page_id, **kwargs)
