"""BeginSearch node - fetch the catalog and start a bisection."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from firebisect.catalog.models import duplicate_dates
from firebisect.core.config import State
from firebisect.core.errors import CatalogError
from firebisect.core.log import logger
from firebisect.search.models import EmptyCatalog, OutwardEvent


@dataclass
class BeginSearch(BaseNode[State, None, OutwardEvent | None]):
    """Start (or restart) the search of one conversation."""

    conversation_id: int

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "PresentProbe | SendNotice":
        """Query the catalog and hand the candidates to the registry.

        Returns:
            PresentProbe: First image of the new search
            SendNotice: Catalog empty or unavailable
        """
        search = ctx.state.runtime.search
        messages = ctx.state.config.messages

        from firebisect.workflow.nodes.send_notice import SendNotice

        try:
            candidates = await search.catalog.assets()
        except CatalogError as e:
            logger.error(
                "Catalog query failed",
                conversation=self.conversation_id,
                error=str(e),
            )
            return SendNotice(self.conversation_id, messages.catalog_unavailable)

        duplicates = duplicate_dates(candidates)
        if duplicates:
            logger.warn(
                "Catalog lists several images for some dates",
                conversation=self.conversation_id,
                dates=[d.isoformat() for d in duplicates],
            )

        outcome = search.registry.handle_start(
            self.conversation_id, candidates
        )
        if isinstance(outcome, EmptyCatalog):
            return SendNotice(self.conversation_id, messages.empty_catalog)

        from firebisect.workflow.nodes.present_probe import PresentProbe
        return PresentProbe(self.conversation_id, outcome.candidate)
