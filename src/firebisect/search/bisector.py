"""Binary search for the first image showing a condition."""

from __future__ import annotations

import datetime
from collections.abc import Sequence

from firebisect.core.errors import ContractViolation
from firebisect.search.models import CandidateImage


class Bisector:
    """Bisects a date-ordered range of candidate images.

    Each answer() halves the remaining range around the probed image,
    keeping the earlier half after a positive verdict and the later
    half after a negative one. The probed image itself is dropped
    either way. Once a single image is left, the next answer completes
    the search; so does an answer that would leave the range empty.

    Assumes the condition is monotonic: once visible on some date, it
    is visible on every later date.

    Attributes:
        culprit: Date of the last positively answered probe, which is
            the earliest positive seen along the search path
        completed: Whether the search has terminated
    """

    def __init__(self, candidates: Sequence[CandidateImage]):
        """Create a search over candidates.

        Args:
            candidates: Non-empty sequence sorted ascending by date.
                Equal dates are tolerated.

        Raises:
            ContractViolation: If candidates is empty or unsorted
        """
        if not candidates:
            raise ContractViolation("Cannot bisect an empty sequence")
        if any(a.date > b.date for a, b in zip(candidates, candidates[1:])):
            raise ContractViolation("Candidates must be sorted by date")

        self._candidates = list(candidates)
        self.culprit: datetime.date | None = None
        self.completed = False

    @property
    def candidates(self) -> tuple[CandidateImage, ...]:
        """Images still in range."""
        return tuple(self._candidates)

    @property
    def remaining(self) -> int:
        return len(self._candidates)

    def _middle(self) -> int:
        # Lower-biased for even lengths
        return len(self._candidates) // 2

    def _ensure_active(self, operation: str):
        if self.completed:
            raise ContractViolation(
                f"Cannot {operation} a completed bisection"
            )

    def probe(self) -> CandidateImage:
        """Return the image to show next. Does not change state.

        Raises:
            ContractViolation: If the search is completed
        """
        self._ensure_active("probe")
        return self._candidates[self._middle()]

    def answer(self, verdict: bool) -> None:
        """Apply the user's verdict for the current probe.

        Args:
            verdict: True if the condition is visible on the probe

        Raises:
            ContractViolation: If the search is completed
        """
        self._ensure_active("answer")
        index = self._middle()

        if verdict:
            self.culprit = self._candidates[index].date

        if len(self._candidates) <= 1:
            self.completed = True
            return

        if verdict:
            remaining = self._candidates[:index]
        else:
            remaining = self._candidates[index + 1:]

        # A negative verdict on the last of two images leaves nothing
        # to probe
        if remaining:
            self._candidates = remaining
        else:
            self.completed = True

    def __repr__(self) -> str:
        state = "completed" if self.completed else f"{self.remaining} left"
        return f"<Bisector {state} culprit={self.culprit}>"
