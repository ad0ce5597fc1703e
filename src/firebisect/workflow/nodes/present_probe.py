"""PresentProbe node - show the next image to judge."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from firebisect.core.config import State
from firebisect.core.errors import CatalogError
from firebisect.core.log import logger
from firebisect.search.models import CandidateImage, OutwardEvent, ShowProbe


@dataclass
class PresentProbe(BaseNode[State, None, OutwardEvent | None]):
    """Resolve the probe image by date and send it with the question."""

    conversation_id: int
    candidate: CandidateImage

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "End[ShowProbe] | SendNotice":
        search = ctx.state.runtime.search
        messages = ctx.state.config.messages
        day = self.candidate.date.isoformat()

        try:
            image = await search.catalog.imagery(self.candidate.date)
        except CatalogError as e:
            # The session stays active; START begins a new search
            logger.error(
                "Probe image unavailable",
                conversation=self.conversation_id,
                date=day,
                error=str(e),
            )
            from firebisect.workflow.nodes.send_notice import SendNotice
            return SendNotice(
                self.conversation_id,
                messages.image_unavailable.format(date=day),
            )

        if image.date != self.candidate.date:
            logger.debug(
                "Catalog resolved a different day",
                requested=day,
                resolved=image.date.isoformat(),
            )

        await search.transport.send_image(
            self.conversation_id,
            image.reference,
            messages.probe_caption.format(date=day),
            content_type=image.content_type,
        )
        logger.debug(
            "Probe shown", conversation=self.conversation_id, date=day
        )
        return End(ShowProbe(
            conversation_id=self.conversation_id,
            date=self.candidate.date,
            image=image.reference,
        ))
