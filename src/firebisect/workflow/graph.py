"""Graph workflow definition."""

from pydantic_graph import Graph

from firebisect.core.config import State
from firebisect.core.log import logger
from firebisect.search.models import InboundEvent, Start


def create_workflow():
    """Create the per-event workflow graph.

        BeginSearch  -> PresentProbe | SendNotice
        ApplyVerdict -> PresentProbe | AnnounceResult | End
        PresentProbe -> End | SendNotice

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    # Imported here so the graph resolves the nodes' string return
    # annotations from this namespace
    from firebisect.workflow.nodes.announce_result import AnnounceResult
    from firebisect.workflow.nodes.apply_verdict import ApplyVerdict
    from firebisect.workflow.nodes.begin_search import BeginSearch
    from firebisect.workflow.nodes.present_probe import PresentProbe
    from firebisect.workflow.nodes.send_notice import SendNotice

    return Graph(
        nodes=(
            BeginSearch,
            ApplyVerdict,
            PresentProbe,
            AnnounceResult,
            SendNotice,
        ),
        state_type=State,
    )


def start_node(event: InboundEvent):
    """Return the node that handles an inbound event."""
    from firebisect.workflow.nodes import ApplyVerdict, BeginSearch

    if isinstance(event, Start):
        return BeginSearch(event.conversation_id)
    return ApplyVerdict(event.conversation_id, event.verdict)
