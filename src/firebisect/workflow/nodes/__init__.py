"""Workflow nodes for the per-event graph."""

from firebisect.workflow.nodes.announce_result import AnnounceResult
from firebisect.workflow.nodes.apply_verdict import ApplyVerdict
from firebisect.workflow.nodes.begin_search import BeginSearch
from firebisect.workflow.nodes.present_probe import PresentProbe
from firebisect.workflow.nodes.send_notice import SendNotice

__all__ = [
    "BeginSearch",
    "ApplyVerdict",
    "PresentProbe",
    "AnnounceResult",
    "SendNotice",
]
