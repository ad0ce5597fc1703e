"""ApplyVerdict node - feed a yes/no answer to the search."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from firebisect.core.config import State
from firebisect.search.models import OutwardEvent, SearchComplete


@dataclass
class ApplyVerdict(BaseNode[State, None, OutwardEvent | None]):
    """Apply the user's answer for the image last shown."""

    conversation_id: int
    verdict: bool

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "PresentProbe | AnnounceResult | End[None]":
        """Narrow the search and route on the outcome.

        Returns:
            PresentProbe: The search goes on
            AnnounceResult: The search just finished
            End[None]: The conversation has no active search
        """
        outcome = ctx.state.runtime.search.registry.handle_verdict(
            self.conversation_id, self.verdict
        )
        if outcome is None:
            return End(None)

        if isinstance(outcome, SearchComplete):
            from firebisect.workflow.nodes.announce_result import (
                AnnounceResult,
            )
            return AnnounceResult(self.conversation_id, outcome.culprit)

        from firebisect.workflow.nodes.present_probe import PresentProbe
        return PresentProbe(self.conversation_id, outcome.candidate)
