"""Values exchanged with the search core."""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class CandidateImage(BaseModel):
    """One dated catalog entry that can be shown to the user."""

    model_config = ConfigDict(frozen=True)

    date: datetime.date = Field(description="Acquisition day")
    source_id: str | None = Field(
        default=None,
        description="Catalog identifier; not reliable, may be missing",
    )


# ============================================================
# INBOUND EVENTS (already classified by the transport)
# ============================================================

class Start(BaseModel):
    """Begin a new search for a conversation."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int


class Verdict(BaseModel):
    """The user's answer for the image last shown."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    verdict: bool = Field(description="True if damage is visible")


InboundEvent = Start | Verdict


# ============================================================
# REGISTRY OUTCOMES
# ============================================================

class NeedProbe(BaseModel):
    """The search goes on; the caller must show `candidate` next."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    candidate: CandidateImage


class SearchComplete(BaseModel):
    """The search finished and its session has been removed.

    `culprit` is None when no answer was ever positive.
    """

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    culprit: datetime.date | None = None

    @property
    def found(self) -> bool:
        return self.culprit is not None


class EmptyCatalog(BaseModel):
    """A search was requested over zero candidates; nothing started."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int


# ============================================================
# OUTWARD EVENTS (delivered by the transport)
# ============================================================

class ShowProbe(BaseModel):
    """An image was shown and a yes/no answer is awaited."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    date: datetime.date
    image: str | bytes = Field(description="Image URL or content")


class ReportResult(BaseModel):
    """The outcome of a finished search was announced."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    culprit: datetime.date | None = Field(
        default=None, description="None means no damage found"
    )

    @property
    def found(self) -> bool:
        return self.culprit is not None


class Notice(BaseModel):
    """A plain text reply outside the search protocol."""

    model_config = ConfigDict(frozen=True)

    conversation_id: int
    text: str


OutwardEvent = ShowProbe | ReportResult | Notice
