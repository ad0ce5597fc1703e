"""Conversational transport collaborators."""

from firebisect.transport.base import IncomingMessage, Transport
from firebisect.transport.console import ConsoleTransport
from firebisect.transport.parsing import parse_event
from firebisect.transport.telegram import TelegramTransport

__all__ = [
    "ConsoleTransport",
    "IncomingMessage",
    "TelegramTransport",
    "Transport",
    "parse_event",
]
