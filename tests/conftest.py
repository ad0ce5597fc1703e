"""Pytest configuration and fixtures for firebisect tests."""

import asyncio
import datetime
import sys
import tempfile
from pathlib import Path

import pytest

from firebisect.catalog.models import ProbeImage
from firebisect.core.errors import CatalogResponseError, CatalogUnavailableError
from firebisect.core.log import ConsoleSink, setup_logger
from firebisect.search.models import CandidateImage
from firebisect.transport.base import IncomingMessage


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging; nothing is sent to logfire.dev."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "firebisect-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


def candidates(*days: str) -> list[CandidateImage]:
    """Build candidates from ISO dates, numbering their source ids."""
    return [
        CandidateImage(
            date=datetime.date.fromisoformat(day), source_id=f"img-{i}"
        )
        for i, day in enumerate(days)
    ]


class FakeCatalog:
    """In-memory imagery catalog."""

    def __init__(
        self,
        days=(),
        fail_assets=False,
        fail_imagery=False,
        first_call_delay=0.0,
        image_content=None,
    ):
        self.candidates = candidates(*days)
        self.fail_assets = fail_assets
        self.fail_imagery = fail_imagery
        self.first_call_delay = first_call_delay
        self.image_content = image_content
        self.asset_calls = 0
        self.imagery_calls = []

    async def assets(self, begin=None):
        self.asset_calls += 1
        if self.asset_calls == 1 and self.first_call_delay:
            await asyncio.sleep(self.first_call_delay)
        if self.fail_assets:
            raise CatalogUnavailableError("Catalog assets unreachable")
        return list(self.candidates)

    async def imagery(self, day):
        self.imagery_calls.append(day)
        if self.fail_imagery:
            raise CatalogResponseError("Catalog imagery/ rejected the request")
        if self.image_content is not None:
            content, content_type = self.image_content
            return ProbeImage(
                date=day, content=content, content_type=content_type
            )
        return ProbeImage(date=day, url=f"https://img.test/{day.isoformat()}.png")


class RecordingTransport:
    """Transport replaying scripted messages and recording replies."""

    def __init__(self, script=()):
        self.script = [
            IncomingMessage(conversation_id=cid, text=text)
            for cid, text in script
        ]
        self.sent = []
        self.content_types = []

    async def messages(self):
        for message in self.script:
            yield message

    async def send_text(self, conversation_id, text):
        self.sent.append(("text", conversation_id, text))

    async def send_image(self, conversation_id, image, caption,
                         content_type=None):
        self.sent.append(("image", conversation_id, caption))
        self.content_types.append(content_type)


@pytest.fixture
def make_state(monkeypatch, tmp_path):
    """Build a State from package defaults wired to fake collaborators.

    sys.argv is replaced so pydantic-settings does not parse pytest's
    own command line; user and project config files are hidden.
    """
    from firebisect.core import yaml_settings
    from firebisect.core.config import State

    monkeypatch.setattr(sys, "argv", ["firebisect"])
    monkeypatch.setattr(
        yaml_settings, "user_config_file", lambda: tmp_path / "none.yaml"
    )
    monkeypatch.delenv("FIREBISECT_CONFIG__TELEGRAM__TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)

    def _make(catalog=None, transport=None):
        state = State()
        state.runtime.search.catalog = catalog or FakeCatalog()
        state.runtime.search.transport = transport or RecordingTransport()
        return state

    return _make
