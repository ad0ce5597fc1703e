"""Imagery catalog collaborator."""

from firebisect.catalog.client import CatalogClient
from firebisect.catalog.models import ProbeImage

__all__ = ["CatalogClient", "ProbeImage"]
