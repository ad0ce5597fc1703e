"""Tests for the per-event workflow graph, driven through Dispatcher.handle."""

import asyncio
import datetime

from conftest import FakeCatalog, RecordingTransport

from firebisect.search.models import (
    Notice,
    ReportResult,
    ShowProbe,
    Start,
    Verdict,
)
from firebisect.service.dispatcher import Dispatcher
from firebisect.workflow.graph import create_workflow, start_node
from firebisect.workflow.nodes import ApplyVerdict, BeginSearch

FIVE_MONTHS = ("2000-01-01", "2000-02-01", "2000-03-01",
               "2000-04-01", "2000-05-01")


def caption(day):
    return f"[{day}] - Do you see wildfire damages ?"


def handle_all(state, *events):
    dispatcher = Dispatcher(state)

    async def _run():
        return [await dispatcher.handle(event) for event in events]

    return asyncio.run(_run())


def test_start_node_routes_events():
    assert start_node(Start(conversation_id=3)) == BeginSearch(3)
    assert start_node(Verdict(conversation_id=3, verdict=False)) == \
        ApplyVerdict(3, False)


def test_workflow_graph_builds():
    graph = create_workflow()
    assert set(graph.node_defs) == {
        "BeginSearch", "ApplyVerdict", "PresentProbe",
        "AnnounceResult", "SendNotice",
    }


def test_full_conversation(make_state):
    transport = RecordingTransport()
    catalog = FakeCatalog(FIVE_MONTHS)
    state = make_state(catalog=catalog, transport=transport)

    outputs = handle_all(
        state,
        Start(conversation_id=1),
        Verdict(conversation_id=1, verdict=True),
        Verdict(conversation_id=1, verdict=False),
    )

    assert outputs[0] == ShowProbe(
        conversation_id=1,
        date=datetime.date(2000, 3, 1),
        image="https://img.test/2000-03-01.png",
    )
    assert outputs[1].date == datetime.date(2000, 2, 1)
    assert outputs[2] == ReportResult(
        conversation_id=1, culprit=datetime.date(2000, 3, 1)
    )
    assert transport.sent == [
        ("image", 1, caption("2000-03-01")),
        ("image", 1, caption("2000-02-01")),
        ("text", 1, "Culprit: 2000-03-01"),
    ]
    assert catalog.asset_calls == 1
    assert 1 not in state.runtime.search.registry
    assert state.runtime.search.events_handled == 3


def test_search_without_damage(make_state):
    transport = RecordingTransport()
    state = make_state(FakeCatalog(["2000-01-01"]), transport)

    outputs = handle_all(
        state,
        Start(conversation_id=1),
        Verdict(conversation_id=1, verdict=False),
    )

    assert outputs[1] == ReportResult(conversation_id=1, culprit=None)
    assert not outputs[1].found
    assert transport.sent[-1] == (
        "text", 1, state.config.messages.no_culprit
    )


def test_empty_catalog_sends_notice(make_state):
    transport = RecordingTransport()
    state = make_state(FakeCatalog(), transport)

    [output] = handle_all(state, Start(conversation_id=1))

    assert output == Notice(
        conversation_id=1, text="Cannot bisect an empty array..."
    )
    assert transport.sent == [("text", 1, "Cannot bisect an empty array...")]
    assert 1 not in state.runtime.search.registry


def test_catalog_failure_sends_notice(make_state):
    transport = RecordingTransport()
    state = make_state(FakeCatalog(FIVE_MONTHS, fail_assets=True), transport)

    [output] = handle_all(state, Start(conversation_id=1))

    assert isinstance(output, Notice)
    assert output.text == state.config.messages.catalog_unavailable
    assert 1 not in state.runtime.search.registry


def test_image_failure_keeps_session(make_state):
    transport = RecordingTransport()
    state = make_state(FakeCatalog(FIVE_MONTHS, fail_imagery=True), transport)

    [output] = handle_all(state, Start(conversation_id=1))

    assert isinstance(output, Notice)
    assert "2000-03-01" in output.text
    assert "{date}" not in output.text
    assert 1 in state.runtime.search.registry


def test_verdict_without_search_is_ignored(make_state):
    transport = RecordingTransport()
    state = make_state(FakeCatalog(FIVE_MONTHS), transport)

    [output] = handle_all(state, Verdict(conversation_id=1, verdict=True))

    assert output is None
    assert transport.sent == []
    assert state.runtime.search.events_handled == 0


def test_restart_begins_a_new_search(make_state):
    transport = RecordingTransport()
    catalog = FakeCatalog(FIVE_MONTHS)
    state = make_state(catalog, transport)

    outputs = handle_all(
        state,
        Start(conversation_id=1),
        Verdict(conversation_id=1, verdict=True),
        Start(conversation_id=1),
    )

    assert outputs[2].date == datetime.date(2000, 3, 1)
    assert state.runtime.search.registry.lookup(1).remaining == 5
    assert catalog.asset_calls == 2


def test_duplicate_dates_still_start(make_state):
    transport = RecordingTransport()
    state = make_state(
        FakeCatalog(["2000-01-01", "2000-01-01", "2000-02-01"]), transport
    )

    [output] = handle_all(state, Start(conversation_id=1))

    assert isinstance(output, ShowProbe)
    assert output.date == datetime.date(2000, 1, 1)


def test_image_content_type_reaches_transport(make_state):
    transport = RecordingTransport()
    catalog = FakeCatalog(FIVE_MONTHS, image_content=(b"GIF89a", "image/gif"))
    state = make_state(catalog=catalog, transport=transport)

    outputs = handle_all(state, Start(conversation_id=1))

    assert outputs[0].image == b"GIF89a"
    assert transport.content_types == ["image/gif"]
