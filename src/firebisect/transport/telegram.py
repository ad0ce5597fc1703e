"""Telegram Bot API transport over httpx.

Only the three Bot API methods the search needs are used: getUpdates
(long polling), sendMessage and sendPhoto.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx
import tenacity
from pydantic import BaseModel, ConfigDict, ValidationError

from firebisect.core.errors import (
    TransportAuthError,
    TransportError,
    TransportResponseError,
)
from firebisect.core.http import RETRYABLE_STATUS_CODES, describe, retrying
from firebisect.core.log import logger
from firebisect.transport.base import (
    DEFAULT_IMAGE_TYPE,
    IncomingMessage,
    image_suffix,
)

DEFAULT_API_BASE = "https://api.telegram.org"

# Telegram answers 401 for a revoked token and 404 for a malformed one
_AUTH_ERROR_STATUS_CODES = {401, 404}


class Chat(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int


class Message(BaseModel):
    model_config = ConfigDict(extra='ignore')

    message_id: int
    chat: Chat
    text: str | None = None


class Update(BaseModel):
    model_config = ConfigDict(extra='ignore')

    update_id: int
    message: Message | None = None


class TelegramTransport:
    """Bot API client implementing the Transport protocol.

    messages() long-polls getUpdates and acknowledges every update it
    yields by advancing the offset, so no update is handled twice.
    """

    def __init__(
        self,
        token: str,
        api_base: str = DEFAULT_API_BASE,
        poll_timeout: int = 30,
        timeout: float = 60.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait: tenacity.wait.wait_base | None = None,
        poll_backoff: float = 5.0,
    ) -> None:
        """Initialize the transport.

        Args:
            token: Bot token
            api_base: Bot API base URL
            poll_timeout: Seconds getUpdates waits for new updates
            timeout: HTTP timeout for other requests
            max_retries: Attempts for transient failures
            transport: httpx transport override (tests)
            retry_wait: Backoff override (tests)
            poll_backoff: Pause after a failed poll, in seconds
        """
        self.poll_timeout = poll_timeout
        self.offset: int | None = None
        self._max_retries = max_retries
        self._retry_wait = retry_wait
        self._poll_backoff = poll_backoff
        self._client = httpx.AsyncClient(
            base_url=f"{api_base.rstrip('/')}/bot{token}/",
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, **kwargs) -> TelegramTransport:
        """Build a transport from a TelegramConfig section."""
        if not config.token:
            raise TransportAuthError("No Telegram bot token configured")
        return cls(
            token=config.token,
            api_base=config.api_base,
            poll_timeout=config.poll_timeout,
            timeout=config.timeout,
            max_retries=config.max_retries,
            **kwargs,
        )

    # ------------------------------------------------------------
    # Transport protocol
    # ------------------------------------------------------------

    async def messages(self) -> AsyncIterator[IncomingMessage]:
        """Yield text messages forever.

        Failed polls are logged and retried after a pause, except
        authentication failures, which propagate.
        """
        while True:
            try:
                updates = await self.get_updates()
            except TransportAuthError:
                raise
            except TransportError as e:
                logger.error("Polling Telegram failed", error=str(e))
                await asyncio.sleep(self._poll_backoff)
                continue

            for update in updates:
                self.offset = update.update_id + 1
                if update.message is None:
                    continue
                yield IncomingMessage(
                    conversation_id=update.message.chat.id,
                    text=update.message.text,
                )

    async def send_text(self, conversation_id: int, text: str) -> None:
        await self._call(
            "sendMessage", json={"chat_id": conversation_id, "text": text}
        )

    async def send_image(
        self,
        conversation_id: int,
        image: str | bytes,
        caption: str,
        content_type: str | None = None,
    ) -> None:
        """Send a photo by URL, or upload it when given its content."""
        if isinstance(image, str):
            await self._call("sendPhoto", json={
                "chat_id": conversation_id,
                "photo": image,
                "caption": caption,
            })
        else:
            await self._call(
                "sendPhoto",
                data={"chat_id": str(conversation_id), "caption": caption},
                files={"photo": (
                    "probe" + image_suffix(content_type),
                    image,
                    content_type or DEFAULT_IMAGE_TYPE,
                )},
            )

    # ------------------------------------------------------------
    # Bot API
    # ------------------------------------------------------------

    async def get_updates(self) -> list[Update]:
        """Fetch pending updates after the current offset."""
        payload: dict[str, Any] = {
            "timeout": self.poll_timeout,
            "allowed_updates": ["message"],
        }
        if self.offset is not None:
            payload["offset"] = self.offset

        result = await self._call(
            "getUpdates", json=payload, timeout=self.poll_timeout + 10
        )
        try:
            return [Update.model_validate(item) for item in result]
        except (TypeError, ValidationError) as e:
            raise TransportResponseError(
                "Malformed getUpdates result", str(e)
            ) from e

    async def _call(self, method: str, **kwargs: Any) -> Any:
        """Call a Bot API method with retry and return its result."""
        retryer = retrying("Telegram", self._max_retries, self._retry_wait)
        try:
            return await retryer(self._call_once, method, **kwargs)
        except (httpx.HTTPStatusError, httpx.TransportError) as e:
            raise TransportError(
                f"Telegram {method} failed: {describe(e)}"
            ) from e

    async def _call_once(self, method: str, **kwargs: Any) -> Any:
        logger.spew("Telegram request", method=method)
        response = await self._client.post(method, **kwargs)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise TransportAuthError(
                f"Telegram rejected the bot token: "
                f"HTTP {response.status_code}"
            )
        if response.status_code in RETRYABLE_STATUS_CODES:
            response.raise_for_status()

        try:
            body = response.json()
        except ValueError as e:
            raise TransportResponseError(
                f"Telegram {method} returned non-JSON "
                f"(HTTP {response.status_code})"
            ) from e

        if not body.get("ok"):
            raise TransportResponseError(
                f"Telegram {method} failed", body.get("description")
            )
        return body.get("result")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TelegramTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
