#!/usr/bin/env python3
"""firebisect CLI - find when wildfire damage first shows on imagery."""

import asyncio

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from firebisect.command.catalog import CatalogCommand
from firebisect.command.console import ConsoleCommand
from firebisect.command.serve import ServeCommand
from firebisect.core.config import State
from firebisect.core.log import logger


class CliState(State):
    """Bisect dated satellite imagery of one location with a human in
    the loop, converging on the first date showing wildfire damage.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.catalog.api_key value)
    2. --include files, ./firebisect.yaml, user config, package defaults
    3. .env file for secrets
    4. Environment variables
       (FIREBISECT_CONFIG__TELEGRAM__TOKEN=value)
    """

    serve: CliSubCommand[ServeCommand]
    console: CliSubCommand[ConsoleCommand]
    catalog: CliSubCommand[CatalogCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            import sys
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes the log file on every exit path
        with logger:
            try:
                exit_code = asyncio.run(subcommand.run_workflow(self))
            except KeyboardInterrupt:
                logger.info("Interrupted")
                exit_code = 130
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
