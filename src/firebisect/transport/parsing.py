"""Classification of user text into search events."""

from __future__ import annotations

from firebisect.search.models import InboundEvent, Start, Verdict
from firebisect.transport.base import IncomingMessage

START_WORDS = {"START", "/START"}
YES_WORDS = {"YES"}
NO_WORDS = {"NO"}


def parse_event(message: IncomingMessage) -> InboundEvent | None:
    """Map a message onto Start or Verdict.

    Matching ignores case and surrounding whitespace. Anything else,
    including messages without text, yields None.
    """
    if message.text is None:
        return None

    word = message.text.strip().upper()
    if word in START_WORDS:
        return Start(conversation_id=message.conversation_id)
    if word in YES_WORDS:
        return Verdict(conversation_id=message.conversation_id, verdict=True)
    if word in NO_WORDS:
        return Verdict(conversation_id=message.conversation_id, verdict=False)
    return None
