"""Async client for the NASA Earth imagery API.

https://api.nasa.gov/ ("Earth" section): `assets` lists the dates on
which imagery of a point exists, `imagery/` resolves the image taken
closest to a given date.
"""

from __future__ import annotations

import datetime
from typing import Any

import httpx
import tenacity
from pydantic import ValidationError

from firebisect.catalog.models import AssetList, ImageInfo, ProbeImage
from firebisect.core.errors import (
    CatalogAuthError,
    CatalogResponseError,
    CatalogUnavailableError,
)
from firebisect.core.http import describe, is_transient, retrying
from firebisect.core.log import logger
from firebisect.search.models import CandidateImage

DEFAULT_ENDPOINT = "https://api.nasa.gov/planetary/earth/"

_AUTH_ERROR_STATUS_CODES = {401, 403}


class CatalogClient:
    """Imagery catalog for one fixed geographic point.

    Retries transient failures with exponential backoff. Fails at once
    on authentication errors.

    Usage::

        async with CatalogClient(api_key, lon, lat) as catalog:
            candidates = await catalog.assets()
            image = await catalog.imagery(candidates[0].date)
    """

    def __init__(
        self,
        api_key: str,
        longitude: float,
        latitude: float,
        endpoint: str = DEFAULT_ENDPOINT,
        begin: datetime.date | None = None,
        cloud_score: bool = True,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_wait: tenacity.wait.wait_base | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: api.nasa.gov key
            longitude: Longitude of the observed point
            latitude: Latitude of the observed point
            endpoint: API base URL; a trailing slash is added if missing
            begin: Default earliest date for assets()
            cloud_score: Request a cloud score with each image
            timeout: Request timeout in seconds
            max_retries: Attempts for transient failures
            transport: httpx transport override (tests)
            retry_wait: Backoff override (tests)
        """
        self._api_key = api_key
        self.longitude = longitude
        self.latitude = latitude
        self.begin = begin
        self.cloud_score = cloud_score
        self._max_retries = max_retries
        self._retry_wait = retry_wait
        self._client = httpx.AsyncClient(
            base_url=endpoint if endpoint.endswith("/") else endpoint + "/",
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, **kwargs) -> CatalogClient:
        """Build a client from a CatalogConfig section."""
        return cls(
            api_key=config.api_key,
            longitude=config.longitude,
            latitude=config.latitude,
            endpoint=config.endpoint,
            begin=config.begin,
            cloud_score=config.cloud_score,
            timeout=config.timeout,
            max_retries=config.max_retries,
            **kwargs,
        )

    def _params(self, **extra: Any) -> dict[str, Any]:
        # The API wants dots as decimal separators, which str() gives
        return {
            "api_key": self._api_key,
            "lon": str(self.longitude),
            "lat": str(self.latitude),
            **extra,
        }

    async def assets(
        self, begin: datetime.date | None = None
    ) -> list[CandidateImage]:
        """List the images available from begin to the present.

        Returns:
            Candidates in the order the catalog sent them

        Raises:
            CatalogError: On any catalog failure
        """
        begin = begin or self.begin
        params = self._params()
        if begin is not None:
            params["begin"] = begin.isoformat()

        response = await self._get("assets", params)
        try:
            listing = AssetList.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise CatalogResponseError(
                f"Malformed assets response: {e}"
            ) from e

        logger.debug(
            "Catalog assets fetched",
            count=len(listing.results),
            begin=begin.isoformat() if begin else None,
        )
        return [asset.to_candidate() for asset in listing.results]

    async def imagery(self, day: datetime.date) -> ProbeImage:
        """Resolve the image to display for a day.

        Lookup is by date, so the image returned may differ from the
        asset that produced the date when several share a day.

        Raises:
            CatalogError: On any catalog failure
        """
        # Trailing slash avoids an HTTPS to HTTP redirect
        response = await self._get(
            "imagery/",
            self._params(
                date=day.isoformat(),
                cloud_score=str(self.cloud_score).lower(),
            ),
        )

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("image/"):
            return ProbeImage(
                date=day,
                content=response.content,
                content_type=content_type.split(";")[0],
            )

        try:
            info = ImageInfo.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise CatalogResponseError(
                f"Malformed imagery response: {e}"
            ) from e

        return ProbeImage(
            date=info.date, url=info.url, cloud_score=info.cloud_score
        )

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        """GET with retry; maps failures onto CatalogError."""
        retryer = retrying("Catalog", self._max_retries, self._retry_wait)
        try:
            return await retryer(self._get_once, path, params)
        except httpx.HTTPStatusError as e:
            if is_transient(e):
                raise CatalogUnavailableError(
                    f"Catalog {path} failed: {describe(e)}"
                ) from e
            raise CatalogResponseError(
                f"Catalog {path} rejected the request: {describe(e)}"
            ) from e
        except httpx.TransportError as e:
            raise CatalogUnavailableError(
                f"Catalog {path} unreachable: {describe(e)}"
            ) from e

    async def _get_once(
        self, path: str, params: dict[str, Any]
    ) -> httpx.Response:
        logger.spew("Catalog request", path=path)
        response = await self._client.get(path, params=params)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise CatalogAuthError(
                f"Catalog rejected the API key: HTTP {response.status_code}"
            )

        response.raise_for_status()
        return response

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
