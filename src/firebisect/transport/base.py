"""Conversational transport interface."""

from __future__ import annotations

import mimetypes
from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class IncomingMessage(BaseModel):
    """A raw message received from a user, not yet classified."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    text: str | None = None


@runtime_checkable
class Transport(Protocol):
    """Delivers user messages in and replies out."""

    def messages(self) -> AsyncIterator[IncomingMessage]:
        """Yield incoming messages until the transport shuts down."""
        ...

    async def send_text(self, conversation_id: int, text: str) -> None:
        ...

    async def send_image(
        self,
        conversation_id: int,
        image: str | bytes,
        caption: str,
        content_type: str | None = None,
    ) -> None:
        """Send an image given by URL or content, with a caption.

        content_type describes image content and is ignored for URLs.
        """
        ...


DEFAULT_IMAGE_TYPE = "image/png"


def image_suffix(content_type: str | None) -> str:
    """File suffix for image content of the given MIME type."""
    suffix = mimetypes.guess_extension(content_type or DEFAULT_IMAGE_TYPE)
    return suffix or ".bin"
