"""Interactive bisection over dated imagery."""

from firebisect.search.bisector import Bisector
from firebisect.search.models import (
    CandidateImage,
    EmptyCatalog,
    NeedProbe,
    Notice,
    ReportResult,
    SearchComplete,
    ShowProbe,
    Start,
    Verdict,
)
from firebisect.search.registry import SessionRegistry

__all__ = [
    "Bisector",
    "CandidateImage",
    "EmptyCatalog",
    "NeedProbe",
    "Notice",
    "ReportResult",
    "SearchComplete",
    "SessionRegistry",
    "ShowProbe",
    "Start",
    "Verdict",
]
