"""Payloads of the NASA Earth imagery API."""

from __future__ import annotations

import datetime
from collections import Counter

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from firebisect.search.models import CandidateImage


def _day(value):
    # Timestamps such as "2014-02-04T03:30:01.210000" keep only the day
    if isinstance(value, str):
        return value[:10]
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class Asset(BaseModel):
    """One entry of the assets endpoint."""

    model_config = ConfigDict(extra='ignore')

    date: datetime.date
    id: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _truncate_date(cls, value):
        return _day(value)

    def to_candidate(self) -> CandidateImage:
        return CandidateImage(date=self.date, source_id=self.id)


class AssetList(BaseModel):
    """Response of GET assets."""

    model_config = ConfigDict(extra='ignore')

    count: int = 0
    results: list[Asset] = Field(default_factory=list)


class ImageResource(BaseModel):
    model_config = ConfigDict(extra='ignore')

    dataset: str | None = None
    planet: str | None = None


class ImageInfo(BaseModel):
    """JSON response of GET imagery/."""

    model_config = ConfigDict(extra='ignore')

    date: datetime.date
    id: str | None = None
    url: str
    cloud_score: float | None = None
    resource: ImageResource | None = None
    service_version: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _truncate_date(cls, value):
        return _day(value)


class ProbeImage(BaseModel):
    """A displayable image resolved for one day.

    Exactly one of url and content is set.
    """

    date: datetime.date
    url: str | None = None
    content: bytes | None = None
    content_type: str | None = None
    cloud_score: float | None = None

    @model_validator(mode="after")
    def _one_reference(self) -> ProbeImage:
        if (self.url is None) == (self.content is None):
            raise ValueError("Exactly one of url and content must be set")
        return self

    @property
    def reference(self) -> str | bytes:
        """The URL, or the raw image when the catalog sent one."""
        return self.url if self.url is not None else self.content


def duplicate_dates(candidates: list[CandidateImage]) -> list[datetime.date]:
    """Dates carried by more than one candidate, in ascending order.

    Images are resolved by date, so only one image per such date can
    ever be shown.
    """
    counts = Counter(c.date for c in candidates)
    return sorted(day for day, count in counts.items() if count > 1)
