"""SendNotice node - reply with a plain message."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from firebisect.core.config import State
from firebisect.search.models import Notice, OutwardEvent


@dataclass
class SendNotice(BaseNode[State, None, OutwardEvent | None]):
    """Send text that is not part of the search protocol."""

    conversation_id: int
    text: str

    async def run(self, ctx: GraphRunContext[State]) -> End[Notice]:
        await ctx.state.runtime.search.transport.send_text(
            self.conversation_id, self.text
        )
        return End(Notice(conversation_id=self.conversation_id, text=self.text))
