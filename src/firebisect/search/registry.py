"""Per-conversation ownership of bisections."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterable

from firebisect.core.log import logger
from firebisect.search.bisector import Bisector
from firebisect.search.models import (
    CandidateImage,
    EmptyCatalog,
    NeedProbe,
    SearchComplete,
)


class SessionRegistry:
    """Maps conversation ids to at most one active Bisector each.

    Registry calls never block or perform I/O. Callers that interleave
    them with I/O must enter guard(conversation_id) for the whole
    event, so two events for one conversation never overlap. Events
    for different conversations may run concurrently.
    """

    def __init__(self):
        self._sessions: dict[int, Bisector] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._waiters: dict[int, int] = {}

    @contextlib.asynccontextmanager
    async def guard(self, conversation_id: int):
        """Hold the lock serializing events for a conversation.

        The lock is dropped once no event holds or awaits it.
        """
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        waiting = self._waiters.get(conversation_id, 0)
        self._waiters[conversation_id] = waiting + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[conversation_id] -= 1
            if not self._waiters[conversation_id]:
                del self._waiters[conversation_id]
                del self._locks[conversation_id]

    @property
    def lock_count(self) -> int:
        """Number of conversations with an event in progress."""
        return len(self._locks)

    def lookup(self, conversation_id: int) -> Bisector | None:
        """Return the active Bisector for a conversation, if any."""
        return self._sessions.get(conversation_id)

    def handle_start(
        self,
        conversation_id: int,
        candidates: Iterable[CandidateImage],
    ) -> NeedProbe | EmptyCatalog:
        """Start a search, replacing any search already running.

        Candidates are sorted by date; images sharing a date keep
        their catalog order.

        Returns:
            NeedProbe with the first image to show, or EmptyCatalog
            (and no session) when there are no candidates
        """
        ordered = sorted(candidates, key=lambda c: c.date)
        if not ordered:
            logger.warn(
                "Empty catalog, no search started",
                conversation=conversation_id,
            )
            return EmptyCatalog(conversation_id=conversation_id)

        if conversation_id in self._sessions:
            logger.warn(
                "Abandoning unfinished search",
                conversation=conversation_id,
                previous=repr(self._sessions[conversation_id]),
            )

        bisector = Bisector(ordered)
        self._sessions[conversation_id] = bisector
        logger.info(
            "Search started",
            conversation=conversation_id,
            candidates=len(ordered),
            first=ordered[0].date.isoformat(),
            last=ordered[-1].date.isoformat(),
        )
        return NeedProbe(
            conversation_id=conversation_id, candidate=bisector.probe()
        )

    def handle_verdict(
        self, conversation_id: int, verdict: bool
    ) -> NeedProbe | SearchComplete | None:
        """Apply a verdict to the conversation's search.

        Returns:
            None if the conversation has no active search, NeedProbe
            while the search goes on, SearchComplete once it has
            finished (the session is removed at that point)
        """
        bisector = self._sessions.get(conversation_id)
        if bisector is None:
            logger.debug(
                "Verdict ignored, no active search",
                conversation=conversation_id,
            )
            return None

        bisector.answer(verdict)

        if bisector.completed:
            del self._sessions[conversation_id]
            logger.info(
                "Search complete",
                conversation=conversation_id,
                culprit=(
                    bisector.culprit.isoformat() if bisector.culprit
                    else None
                ),
            )
            return SearchComplete(
                conversation_id=conversation_id, culprit=bisector.culprit
            )

        logger.debug(
            "Verdict applied",
            conversation=conversation_id,
            verdict=verdict,
            remaining=bisector.remaining,
        )
        return NeedProbe(
            conversation_id=conversation_id, candidate=bisector.probe()
        )

    def __contains__(self, conversation_id: int) -> bool:
        return conversation_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
