"""Exception hierarchy for firebisect.

All firebisect exceptions inherit from FirebisectError. Contract
violations are programming errors and are never caught by the search
core; collaborator errors are caught by the workflow and reported to
the user.
"""

from __future__ import annotations


class FirebisectError(Exception):
    """Base exception for all firebisect errors."""


class ContractViolation(FirebisectError, RuntimeError):
    """A search object was used outside its contract.

    Raised when probing or answering a completed Bisector, or when
    constructing one from an empty or unsorted candidate sequence.
    """


# ============================================================
# IMAGERY CATALOG
# ============================================================

class CatalogError(FirebisectError):
    """Base for all imagery catalog errors."""


class CatalogAuthError(CatalogError):
    """The catalog rejected the API key (401/403)."""


class CatalogResponseError(CatalogError):
    """The catalog answered with an unexpected payload."""


class CatalogUnavailableError(CatalogError):
    """The catalog could not be reached after all retries."""


# ============================================================
# CONVERSATIONAL TRANSPORT
# ============================================================

class TransportError(FirebisectError):
    """Base for all conversational transport errors."""


class TransportAuthError(TransportError):
    """The transport rejected the bot credentials."""


class TransportResponseError(TransportError):
    """The transport reported a failed request.

    Attributes:
        description: Error description returned by the remote API,
            if any.
    """

    def __init__(self, message: str, description: str | None = None) -> None:
        self.description = description
        if description:
            message = f"{message}: {description}"
        super().__init__(message)


__all__ = [
    "FirebisectError",
    "ContractViolation",
    "CatalogError",
    "CatalogAuthError",
    "CatalogResponseError",
    "CatalogUnavailableError",
    "TransportError",
    "TransportAuthError",
    "TransportResponseError",
]
