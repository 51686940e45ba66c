from .connection import get_connection, get_db_path, init_database, set_db_path
from .schema import create_tables
from .base import LearningProgressSource, RelationshipStore, TermOracle
from .relationship_store import SQLiteRelationshipStore
from .term_store import SQLiteTermStore
from .memory_store import InMemoryRelationshipStore, InMemoryTermStore

__all__ = [
    "get_connection",
    "get_db_path",
    "init_database",
    "set_db_path",
    "create_tables",
    "LearningProgressSource",
    "RelationshipStore",
    "TermOracle",
    "SQLiteRelationshipStore",
    "SQLiteTermStore",
    "InMemoryRelationshipStore",
    "InMemoryTermStore",
]
