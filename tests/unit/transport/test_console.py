"""Tests for the console transport and message classification."""

import asyncio
import io

import pytest

from firebisect.search.models import Start, Verdict
from firebisect.transport.base import IncomingMessage, Transport
from firebisect.transport.console import CONSOLE_CONVERSATION_ID, ConsoleTransport
from firebisect.transport.parsing import parse_event
from firebisect.transport.telegram import TelegramTransport


def lines(*texts):
    """A read_line callable returning texts, then EOF."""
    pending = list(texts)

    def read_line(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)

    return read_line


@pytest.mark.parametrize("text", ["START", "/start", "  Start \n"])
def test_start_words(text):
    event = parse_event(IncomingMessage(conversation_id=4, text=text))
    assert event == Start(conversation_id=4)


@pytest.mark.parametrize("text, verdict", [
    ("YES", True), ("yes", True), (" Yes ", True),
    ("NO", False), ("no", False), ("No\n", False),
])
def test_verdict_words(text, verdict):
    event = parse_event(IncomingMessage(conversation_id=4, text=text))
    assert event == Verdict(conversation_id=4, verdict=verdict)


@pytest.mark.parametrize("text", [None, "", "maybe", "yes please", "y", "STOP"])
def test_other_messages_are_ignored(text):
    assert parse_event(IncomingMessage(conversation_id=4, text=text)) is None


def test_console_yields_lines_until_eof():
    transport = ConsoleTransport(read_line=lines("start", "yes"),
                                 out=io.StringIO())

    async def collect():
        return [m async for m in transport.messages()]

    received = asyncio.run(collect())

    assert [m.text for m in received] == ["start", "yes"]
    assert {m.conversation_id for m in received} == {CONSOLE_CONVERSATION_ID}


def test_console_prints_text_and_image_url():
    out = io.StringIO()
    transport = ConsoleTransport(read_line=lines(), out=out)

    asyncio.run(transport.send_text(0, "Culprit: 2000-03-01"))
    asyncio.run(transport.send_image(0, "https://img.test/a.png", "caption"))

    assert out.getvalue() == (
        "Culprit: 2000-03-01\ncaption\n  https://img.test/a.png\n"
    )


def test_console_saves_image_content(tmp_path):
    out = io.StringIO()
    transport = ConsoleTransport(read_line=lines(), out=out, image_dir=tmp_path)

    asyncio.run(transport.send_image(0, b"png-1", "first"))
    asyncio.run(transport.send_image(0, b"png-2", "second"))

    assert (tmp_path / "probe-001.png").read_bytes() == b"png-1"
    assert (tmp_path / "probe-002.png").read_bytes() == b"png-2"
    assert str(tmp_path / "probe-002.png") in out.getvalue()


def test_console_names_saved_image_by_content_type(tmp_path):
    transport = ConsoleTransport(
        read_line=lines(), out=io.StringIO(), image_dir=tmp_path
    )

    asyncio.run(transport.send_image(0, b"GIF89a", "first", "image/gif"))
    asyncio.run(transport.send_image(0, b"data", "second", "image/x-unknown"))

    assert (tmp_path / "probe-001.gif").read_bytes() == b"GIF89a"
    assert (tmp_path / "probe-002.bin").read_bytes() == b"data"


def test_transports_satisfy_protocol():
    assert isinstance(ConsoleTransport(read_line=lines()), Transport)
    assert isinstance(TelegramTransport("123:abc"), Transport)
