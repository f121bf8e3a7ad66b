"""Catalog initialization: schema creation and migrations."""

import sqlite3

from vconvert.exceptions import CatalogError

from .definition import SCHEMA_VERSION, create_schema
from .migrations import migrate_v1_to_v2
from .version import get_schema_version


def initialize_database(conn: sqlite3.Connection) -> None:
    """Initialize the catalog, creating or migrating the schema as needed.

    Args:
        conn: An open database connection.

    Raises:
        CatalogError: If the catalog was written by a newer schema version.
    """
    current_version = get_schema_version(conn)

    if current_version is None:
        create_schema(conn)
        return

    if current_version > SCHEMA_VERSION:
        raise CatalogError(
            f"Catalog schema version {current_version} is newer than supported "
            f"version {SCHEMA_VERSION}. Upgrade vconvert to open it."
        )

    if current_version == 1:
        migrate_v1_to_v2(conn)
        current_version = 2
