"""Catalog store for vconvert.

Usage:
    from vconvert.db import Catalog
"""

from vconvert.db.catalog import Catalog
from vconvert.db.connection import get_default_db_path
from vconvert.db.types import CatalogStats, ExtensionStats

__all__ = [
    "Catalog",
    "CatalogStats",
    "ExtensionStats",
    "get_default_db_path",
]
