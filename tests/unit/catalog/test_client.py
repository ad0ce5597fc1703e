"""Tests for the imagery catalog client against a mocked API."""

import asyncio
import datetime

import httpx
import pytest
import tenacity
from conftest import candidates

from firebisect.catalog.client import CatalogClient
from firebisect.catalog.models import ProbeImage, duplicate_dates
from firebisect.core.errors import (
    CatalogAuthError,
    CatalogError,
    CatalogResponseError,
    CatalogUnavailableError,
)

ASSETS = {
    "count": 3,
    "results": [
        {"date": "2014-02-04T03:30:01.210000", "id": "LC8_L1T_TOA/a"},
        {"date": "2014-02-20T03:30:00.000000", "id": "LC8_L1T_TOA/b"},
        {"date": "2014-03-08T03:29:54.970000"},
    ],
}

IMAGERY = {
    "date": "2014-02-04T03:30:01",
    "id": "LANDSAT/LC08/C01/T1_SR/LC08_127059_20140204",
    "resource": {"dataset": "LANDSAT/LC08/C01/T1_SR", "planet": "earth"},
    "service_version": "v5000",
    "url": "https://earthengine.googleapis.com/api/thumb?thumbid=abc",
    "cloud_score": 0.03,
}


def make_client(handler, max_retries=3, **kwargs):
    return CatalogClient(
        api_key="KEY",
        longitude=-120.70418,
        latitude=38.32974,
        transport=httpx.MockTransport(handler),
        max_retries=max_retries,
        retry_wait=tenacity.wait_none(),
        **kwargs,
    )


def run(client, call):
    async def _run():
        async with client:
            return await call(client)
    return asyncio.run(_run())


def test_assets_sends_location_and_begin():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=ASSETS)

    client = make_client(handler, begin=datetime.date(2000, 1, 1))
    run(client, lambda c: c.assets())

    request = seen[0]
    assert request.url.path == "/planetary/earth/assets"
    assert request.url.params["api_key"] == "KEY"
    assert request.url.params["lon"] == "-120.70418"
    assert request.url.params["lat"] == "38.32974"
    assert request.url.params["begin"] == "2000-01-01"


def test_assets_begin_argument_overrides_default():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"count": 0, "results": []})

    client = make_client(handler, begin=datetime.date(2000, 1, 1))
    result = run(client, lambda c: c.assets(datetime.date(2014, 1, 1)))

    assert result == []
    assert seen[0].url.params["begin"] == "2014-01-01"


def test_assets_truncates_timestamps_to_days():
    client = make_client(lambda request: httpx.Response(200, json=ASSETS))

    result = run(client, lambda c: c.assets())

    assert [c.date for c in result] == [
        datetime.date(2014, 2, 4),
        datetime.date(2014, 2, 20),
        datetime.date(2014, 3, 8),
    ]
    assert result[0].source_id == "LC8_L1T_TOA/a"
    assert result[2].source_id is None


def test_imagery_json_resolves_url():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=IMAGERY)

    client = make_client(handler)
    image = run(client, lambda c: c.imagery(datetime.date(2014, 2, 4)))

    assert seen[0].url.path == "/planetary/earth/imagery/"
    assert seen[0].url.params["date"] == "2014-02-04"
    assert seen[0].url.params["cloud_score"] == "true"
    assert image.date == datetime.date(2014, 2, 4)
    assert image.reference == IMAGERY["url"]
    assert image.cloud_score == 0.03


def test_imagery_binary_response_is_kept_as_content():
    png = b"\x89PNG\r\n\x1a\nfake"

    def handler(request):
        return httpx.Response(
            200, content=png, headers={"content-type": "image/png"}
        )

    client = make_client(handler, cloud_score=False)
    image = run(client, lambda c: c.imagery(datetime.date(2014, 2, 4)))

    assert image.url is None
    assert image.reference == png
    assert image.content_type == "image/png"


def test_auth_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, json={"error": {"code": "API_KEY_INVALID"}})

    client = make_client(handler)
    with pytest.raises(CatalogAuthError):
        run(client, lambda c: c.assets())

    assert len(calls) == 1


def test_transient_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(500)
        return httpx.Response(200, json=ASSETS)

    client = make_client(handler)
    result = run(client, lambda c: c.assets())

    assert len(calls) == 2
    assert len(result) == 3


def test_persistent_outage_becomes_unavailable():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    client = make_client(handler, max_retries=2)
    with pytest.raises(CatalogUnavailableError) as excinfo:
        run(client, lambda c: c.assets())

    assert len(calls) == 2
    # The API key travels in the query string and must not leak
    assert "KEY" not in str(excinfo.value)


def test_connection_error_becomes_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler, max_retries=1)
    with pytest.raises(CatalogUnavailableError):
        run(client, lambda c: c.assets())


def test_client_error_is_a_response_error():
    client = make_client(lambda request: httpx.Response(400, json={}))

    with pytest.raises(CatalogResponseError):
        run(client, lambda c: c.imagery(datetime.date(2014, 2, 4)))


def test_malformed_payload_is_a_response_error():
    client = make_client(
        lambda request: httpx.Response(200, content=b"<html>oops</html>")
    )

    with pytest.raises(CatalogResponseError):
        run(client, lambda c: c.assets())


def test_catalog_errors_share_a_base():
    assert issubclass(CatalogAuthError, CatalogError)
    assert issubclass(CatalogResponseError, CatalogError)
    assert issubclass(CatalogUnavailableError, CatalogError)


def test_probe_image_needs_exactly_one_reference():
    day = datetime.date(2014, 2, 4)

    with pytest.raises(ValueError):
        ProbeImage(date=day)
    with pytest.raises(ValueError):
        ProbeImage(date=day, url="https://x.test/a.png", content=b"png")


def test_duplicate_dates():
    items = candidates("2000-01-01", "2000-02-01", "2000-02-01",
                       "2000-03-01", "2000-01-01")

    assert duplicate_dates(items) == [
        datetime.date(2000, 1, 1), datetime.date(2000, 2, 1),
    ]
    assert duplicate_dates(candidates("2000-01-01")) == []
