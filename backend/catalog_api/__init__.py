"""ReelIndex catalog service: canonical content store and category index."""

from .app import create_app
from .settings import CatalogSettings

__all__ = ["CatalogSettings", "create_app"]
