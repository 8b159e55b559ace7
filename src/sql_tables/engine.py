"""Statement engine: maps parsed SQL statements onto storage operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from sql_tables.clauses import build_predicate, literal_value
from sql_tables.errors import TableAlreadyExists, TableDoesNotExist, UnimplementedBranch
from sql_tables.storage import DuplicateTable, EmptyTable, InMemoryStorage, Storage, UnknownTable
from sql_tables.types import ColumnDefinition, Value

log = logging.getLogger(__name__)

# SELECT arguments that would change the row set or its order
_UNSUPPORTED_SELECT_CLAUSES = ("with", "with_", "distinct", "group", "having", "order", "limit", "offset")


@dataclass
class EngineEvent:
    """Outcome of a successfully executed statement."""


@dataclass
class TableCreated(EngineEvent):
    """Result of CREATE TABLE."""

    table_name: str


@dataclass
class RecordInserted(EngineEvent):
    """Result of INSERT."""


@dataclass
class RecordsSelected(EngineEvent):
    """Result of SELECT: one list of values per row, in key order."""

    rows: list[list[Value]] = field(default_factory=list)


@dataclass
class RecordsUpdated(EngineEvent):
    """Result of UPDATE."""

    count: int = 0


@dataclass
class RecordsDeleted(EngineEvent):
    """Result of DELETE."""

    count: int = 0


def _table_name(node: exp.Expression | None) -> str:
    """Return the qualified name of a table reference."""
    if isinstance(node, exp.Schema):
        node = node.this
    if not isinstance(node, exp.Table):
        description = node.sql() if node is not None else "missing table"
        raise UnimplementedBranch(f"Table reference {description} is not supported")
    return ".".join(part for part in (node.catalog, node.db, node.name) if part)


def _from_clause(select: exp.Select) -> exp.From | None:
    # newer sqlglot releases store the FROM clause under "from_"
    return select.args.get("from") or select.args.get("from_")


class Engine:
    """Executes parsed SQL statements against a storage backend.

    One statement per call; each call either returns an EngineEvent or raises
    an EngineError. Calls must be serialized by the caller.
    """

    def __init__(self, storage: Storage | None = None, dialect: str | None = None) -> None:
        """Initialize the engine.

        Args:
            storage: Backend to execute against. Defaults to a fresh
                InMemoryStorage.
            dialect: sqlglot dialect used by execute_sql. None selects the
                generic dialect.
        """
        self.storage = storage if storage is not None else InMemoryStorage()
        self.dialect = dialect
        # Mirrors the backend's bookkeeping; seeded for reopened databases
        self.tables: set[str] = set(self.storage.table_names())

    def execute_sql(self, sql: str) -> EngineEvent:
        """Parse SQL text and execute its last statement."""
        try:
            statements = [s for s in sqlglot.parse(sql, read=self.dialect) if s is not None]
        except SqlglotError as e:
            raise UnimplementedBranch(str(e)) from e
        if not statements:
            raise UnimplementedBranch(f"No statement found in {sql!r}")
        return self.execute(statements[-1])

    def execute(self, statement: exp.Expression) -> EngineEvent:
        """Execute a single parsed statement."""
        log.debug("Executing %s", statement.sql())
        if isinstance(statement, exp.Create):
            return self._execute_create(statement)
        elif isinstance(statement, exp.Insert):
            return self._execute_insert(statement)
        elif isinstance(statement, exp.Update):
            return self._execute_update(statement)
        elif isinstance(statement, exp.Delete):
            return self._execute_delete(statement)
        elif isinstance(statement, exp.Select):
            return self._execute_select(statement)
        else:
            raise UnimplementedBranch(f"Statement {statement.sql()} is not supported")

    def _execute_create(self, statement: exp.Create) -> TableCreated:
        kind = (statement.args.get("kind") or "").upper()
        if kind != "TABLE":
            raise UnimplementedBranch(f"CREATE {kind or statement.sql()} is not supported")
        if statement.expression is not None:
            raise UnimplementedBranch(f"CREATE TABLE ... AS {statement.expression.sql()} is not supported")

        table_name = _table_name(statement.this)
        columns = []
        if isinstance(statement.this, exp.Schema):
            for column in statement.this.expressions:
                if isinstance(column, exp.ColumnDef):
                    kind_node = column.args.get("kind")
                    columns.append(ColumnDefinition(
                        name=column.name,
                        type_name=kind_node.sql() if kind_node is not None else "",
                    ))

        try:
            self.storage.create_table(table_name, columns)
        except DuplicateTable as e:
            if statement.args.get("exists"):
                # IF NOT EXISTS leaves the existing table untouched
                return TableCreated(table_name)
            raise TableAlreadyExists(table_name) from e
        except ValueError as e:
            raise UnimplementedBranch(str(e)) from e

        self.tables.add(table_name)
        log.info("Created table %s", table_name)
        return TableCreated(table_name)

    def _execute_insert(self, statement: exp.Insert) -> RecordInserted:
        table_name = _table_name(statement.this)
        source = statement.expression
        if not isinstance(source, exp.Values):
            description = source.sql() if source is not None else "missing source"
            raise UnimplementedBranch(f"INSERT source {description} is not supported, only VALUES (v) is")

        rows = source.expressions
        if len(rows) != 1:
            raise UnimplementedBranch(f"Multi-row {source.sql()} is not supported in INSERT")
        row = rows[0]
        values = row.expressions if isinstance(row, exp.Tuple) else [row]
        if len(values) != 1:
            raise UnimplementedBranch(f"Multi-column {row.sql()} is not supported in INSERT")

        value = literal_value(values[0], "INSERT INTO <table> VALUES (v)")
        try:
            self.storage.insert_into(table_name, [value])
        except UnknownTable as e:
            raise TableDoesNotExist(table_name) from e
        return RecordInserted()

    def _execute_update(self, statement: exp.Update) -> RecordsUpdated:
        table_name = _table_name(statement.this)
        if table_name not in self.tables:
            raise TableDoesNotExist(table_name)

        predicate = build_predicate(statement.args.get("where"))
        assignments = statement.expressions
        if not assignments:
            raise UnimplementedBranch(f"UPDATE without assignments {statement.sql()} is not supported")
        assignment = assignments[0]
        if not isinstance(assignment, exp.EQ):
            raise UnimplementedBranch(f"Assignment {assignment.sql()} is not supported")
        value = literal_value(assignment.expression, "UPDATE <table> SET <column> = v")

        try:
            count = self.storage.update_where(table_name, predicate, value)
        except UnknownTable as e:
            raise TableDoesNotExist(table_name) from e
        return RecordsUpdated(count)

    def _execute_delete(self, statement: exp.Delete) -> RecordsDeleted:
        table_name = _table_name(statement.this)
        if table_name not in self.tables:
            raise TableDoesNotExist(table_name)

        predicate = build_predicate(statement.args.get("where"))
        try:
            count = self.storage.delete_where(table_name, predicate)
        except UnknownTable as e:
            raise TableDoesNotExist(table_name) from e
        return RecordsDeleted(count)

    def _execute_select(self, statement: exp.Select) -> RecordsSelected:
        if statement.args.get("joins"):
            raise UnimplementedBranch(f"Selection from multiple tables {statement.sql()} is not supported")
        from_clause = _from_clause(statement)
        if from_clause is None:
            raise UnimplementedBranch(f"SELECT without FROM {statement.sql()} is not supported")
        for clause in _UNSUPPORTED_SELECT_CLAUSES:
            if statement.args.get(clause):
                raise UnimplementedBranch(
                    f"{clause.rstrip('_').upper()} clause in {statement.sql()} is not supported"
                )
        for projection in statement.expressions:
            if not isinstance(projection, (exp.Column, exp.Star)):
                raise UnimplementedBranch(
                    f"Projection {projection.sql()} in {statement.sql()} is not supported"
                )

        table_name = _table_name(from_clause.this)
        predicate = build_predicate(statement.args.get("where"))
        try:
            rows = self.storage.select(table_name, predicate)
        except UnknownTable as e:
            raise TableDoesNotExist(table_name) from e
        except EmptyTable:
            rows = []
        return RecordsSelected(rows)
