"""Terminal transport: one local conversation on stdin/stdout."""

from __future__ import annotations

import asyncio
import sys
import tempfile
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import TextIO

from firebisect.transport.base import IncomingMessage, image_suffix

CONSOLE_CONVERSATION_ID = 0


class ConsoleTransport:
    """Reads answers from the terminal and prints replies.

    Images given as content are written to image_dir (a temporary
    directory by default) and their path is printed.
    """

    def __init__(
        self,
        read_line: Callable[[str], str] = input,
        out: TextIO | None = None,
        image_dir: Path | None = None,
        prompt: str = "> ",
    ):
        self._read_line = read_line
        self._out = out or sys.stdout
        self._image_dir = image_dir
        self._prompt = prompt
        self._images_saved = 0

    async def messages(self) -> AsyncIterator[IncomingMessage]:
        """Yield one message per line until end of input."""
        while True:
            try:
                line = await asyncio.to_thread(self._read_line, self._prompt)
            except EOFError:
                return
            yield IncomingMessage(
                conversation_id=CONSOLE_CONVERSATION_ID, text=line
            )

    async def send_text(self, conversation_id: int, text: str) -> None:
        print(text, file=self._out, flush=True)

    async def send_image(
        self,
        conversation_id: int,
        image: str | bytes,
        caption: str,
        content_type: str | None = None,
    ) -> None:
        if isinstance(image, bytes):
            image = str(self._save(image, content_type))
        print(f"{caption}\n  {image}", file=self._out, flush=True)

    def _save(self, content: bytes, content_type: str | None) -> Path:
        if self._image_dir is None:
            self._image_dir = Path(tempfile.mkdtemp(prefix="firebisect-"))
        self._images_saved += 1
        name = f"probe-{self._images_saved:03d}{image_suffix(content_type)}"
        path = self._image_dir / name
        path.write_bytes(content)
        return path
