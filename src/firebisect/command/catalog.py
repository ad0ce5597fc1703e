"""Catalog command - list the candidate images of the location."""

import datetime
import sys

from pydantic import BaseModel, Field

from firebisect.core.errors import CatalogError
from firebisect.core.log import logger


class CatalogCommand(BaseModel):
    """List the dates a search would bisect, oldest first.

    Dates listed more than once are flagged: images are resolved by
    date, so only one of them can ever be shown.
    """

    begin: datetime.date | None = Field(
        default=None,
        description="Override config.catalog.begin",
    )

    async def run_workflow(self, state: "State") -> int:
        """Fetch and print the candidate list.

        Args:
            state: State instance with config loaded

        Returns:
            Exit code (0=success, 1=catalog failure)
        """
        from firebisect.catalog.client import CatalogClient
        from firebisect.catalog.models import duplicate_dates

        async with CatalogClient.from_config(state.config.catalog) as catalog:
            try:
                candidates = await catalog.assets(self.begin)
            except CatalogError as e:
                logger.error("Catalog query failed", error=str(e))
                return 1

        candidates = sorted(candidates, key=lambda c: c.date)
        duplicates = set(duplicate_dates(candidates))
        for candidate in candidates:
            flag = "  (duplicate date)" if candidate.date in duplicates else ""
            print(
                f"{candidate.date.isoformat()}  {candidate.source_id or '-'}"
                f"{flag}",
                file=sys.stdout,
            )

        logger.info(
            "Catalog listed",
            candidates=len(candidates),
            duplicate_dates=len(duplicates),
        )
        return 0
