"""SQL Tables - statement execution core of a minimal relational engine."""

from sql_tables.engine import (
    Engine,
    EngineEvent,
    RecordInserted,
    RecordsDeleted,
    RecordsSelected,
    RecordsUpdated,
    TableCreated,
)
from sql_tables.errors import (
    EngineError,
    TableAlreadyExists,
    TableDoesNotExist,
    UnimplementedBranch,
)
from sql_tables.predicates import Between, Equal, In, MatchAll, Negate, Predicate
from sql_tables.storage import FileStorage, InMemoryStorage, Storage
from sql_tables.types import ColumnDefinition, Int, UnsupportedType, Value, from_literal

__all__ = [
    # Main API
    "Engine",
    # Events
    "EngineEvent",
    "TableCreated",
    "RecordInserted",
    "RecordsSelected",
    "RecordsUpdated",
    "RecordsDeleted",
    # Errors
    "EngineError",
    "TableAlreadyExists",
    "TableDoesNotExist",
    "UnimplementedBranch",
    "UnsupportedType",
    # Storage
    "Storage",
    "InMemoryStorage",
    "FileStorage",
    # Values and predicates
    "Value",
    "Int",
    "ColumnDefinition",
    "from_literal",
    "Predicate",
    "MatchAll",
    "Equal",
    "Between",
    "In",
    "Negate",
]

__version__ = "0.1.0"
