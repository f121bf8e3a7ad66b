"""Catalog schema management.

Module organization:
- definition.py: Schema DDL and creation (SCHEMA_VERSION, SCHEMA_SQL, create_schema)
- version.py: Version query helper (get_schema_version)
- migrations.py: Additive schema migrations
- initialize.py: Initialization orchestration (initialize_database)
"""

from .definition import SCHEMA_SQL, SCHEMA_VERSION, create_schema
from .initialize import initialize_database
from .migrations import migrate_v1_to_v2
from .version import get_schema_version

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "create_schema",
    "get_schema_version",
    "initialize_database",
    "migrate_v1_to_v2",
]
