"""AnnounceResult node - tell the user where the search landed."""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from firebisect.core.config import State
from firebisect.search.models import OutwardEvent, ReportResult


@dataclass
class AnnounceResult(BaseNode[State, None, OutwardEvent | None]):
    """Report the culprit date, or that damage was never seen."""

    conversation_id: int
    culprit: datetime.date | None

    async def run(self, ctx: GraphRunContext[State]) -> End[ReportResult]:
        messages = ctx.state.config.messages
        if self.culprit is None:
            text = messages.no_culprit
        else:
            text = messages.culprit.format(date=self.culprit.isoformat())

        await ctx.state.runtime.search.transport.send_text(
            self.conversation_id, text
        )
        return End(ReportResult(
            conversation_id=self.conversation_id, culprit=self.culprit
        ))
