"""Serve command - run the Telegram bot."""

from pydantic import BaseModel

from firebisect.core.errors import TransportAuthError
from firebisect.core.log import logger


class ServeCommand(BaseModel):
    """Run the Telegram bot until interrupted.

    Users send START to begin a search, then answer YES or NO for each
    image until the bot reports the first date showing damage.
    Requires --config.telegram.token (or FIREBISECT_CONFIG__TELEGRAM__TOKEN).
    """

    async def run_workflow(self, state: "State") -> int:
        """Poll Telegram and dispatch events.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=stopped, 2=bad credentials)
        """
        from firebisect.catalog.client import CatalogClient
        from firebisect.service.dispatcher import Dispatcher
        from firebisect.transport.telegram import TelegramTransport

        try:
            transport = TelegramTransport.from_config(state.config.telegram)
        except TransportAuthError as e:
            logger.error(str(e))
            return 2

        catalog = CatalogClient.from_config(state.config.catalog)
        async with transport, catalog:
            state.runtime.search.transport = transport
            state.runtime.search.catalog = catalog

            logger.info(
                "Bot started",
                longitude=state.config.catalog.longitude,
                latitude=state.config.catalog.latitude,
                begin=state.config.catalog.begin.isoformat(),
            )
            try:
                await Dispatcher(state).run()
            except TransportAuthError as e:
                logger.error(str(e))
                return 2

        return 0
