"""CLI command modules for firebisect."""

from firebisect.command.catalog import CatalogCommand
from firebisect.command.console import ConsoleCommand
from firebisect.command.serve import ServeCommand

__all__ = ["CatalogCommand", "ConsoleCommand", "ServeCommand"]
