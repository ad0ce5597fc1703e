"""Console command - run one search in the terminal."""

from pydantic import BaseModel, Field

from firebisect.core.log import logger


class ConsoleCommand(BaseModel):
    """Bisect the configured location interactively in the terminal.

    Answer yes or no for each image URL printed; type start to begin
    again. End input (Ctrl-D) to quit.
    """

    start: bool = Field(
        default=True,
        description="Begin a search immediately instead of waiting for 'start'",
    )

    async def run_workflow(self, state: "State") -> int:
        """Run the dispatcher on a console transport.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=success)
        """
        from firebisect.catalog.client import CatalogClient
        from firebisect.search.models import Start
        from firebisect.service.dispatcher import Dispatcher
        from firebisect.transport.console import (
            CONSOLE_CONVERSATION_ID,
            ConsoleTransport,
        )

        transport = ConsoleTransport()
        async with CatalogClient.from_config(state.config.catalog) as catalog:
            state.runtime.search.transport = transport
            state.runtime.search.catalog = catalog

            dispatcher = Dispatcher(state, concurrent=False)
            if self.start:
                await dispatcher.handle(
                    Start(conversation_id=CONSOLE_CONVERSATION_ID)
                )
            await dispatcher.run()

        logger.info(
            "Console session ended",
            events=state.runtime.search.events_handled,
        )
        return 0
