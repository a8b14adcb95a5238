"""
Infrastructure package for querylab.

Centralizes I/O concerns: reading the JSON fixture into an entity store,
generating synthetic datasets, and the SQLite connection factory used by the
raw SQL scenarios. Keep this layer focused on I/O and resource management,
decoupled from the query engine.
"""

from querylab.infrastructure.fixtures import build_store, load, read_dataset, resolve_fixture_path
from querylab.infrastructure.generator import generate_dataset, write_dataset
from querylab.infrastructure.sqlite_factory import ensure_seeded, get_sync_connection, sqlite_connection

__all__ = [
    "build_store",
    "load",
    "read_dataset",
    "resolve_fixture_path",
    "generate_dataset",
    "write_dataset",
    "ensure_seeded",
    "get_sync_connection",
    "sqlite_connection",
]
