"""Storage backends for sql_tables."""

from __future__ import annotations

import json
import logging
import struct
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Sequence

from BTrees.OOBTree import OOBTree

from sql_tables.predicates import MatchAll, Predicate, matches
from sql_tables.types import ColumnDefinition, Value, decode_value, encode_value

log = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for storage failures."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(table_name)


class DuplicateTable(StorageError):
    """A table with this name is already registered."""


class UnknownTable(StorageError):
    """No table with this name is registered."""


class EmptyTable(StorageError):
    """The table exists but has never received a value."""


class Storage(ABC):
    """Contract for table lifecycle and row access.

    Every operation works on a single table and runs to completion
    synchronously. Rows are sequences of values; only the first value of a
    row is stored, and it doubles as the row's key.
    """

    @abstractmethod
    def create_table(self, name: str, columns: Sequence[ColumnDefinition]) -> None:
        """Register an empty table.

        Raises:
            DuplicateTable: If the name is already registered.
            ValueError: If the backend cannot store a table under this name.
        """

    @abstractmethod
    def insert_into(self, name: str, row: Sequence[Value]) -> None:
        """Store one row, replacing any row with an equal value.

        Raises:
            UnknownTable: If the table is not registered.
        """

    @abstractmethod
    def select(self, name: str, predicate: Predicate) -> list[list[Value]]:
        """Return the rows matching the predicate in ascending key order.

        Raises:
            UnknownTable: If the table is not registered.
            EmptyTable: If the table has never received a value.
        """

    @abstractmethod
    def update_where(self, name: str, predicate: Predicate, value: Value) -> int:
        """Overwrite the value of every matching row and return the count."""

    @abstractmethod
    def delete_where(self, name: str, predicate: Predicate) -> int:
        """Remove every matching row and return the count."""

    @abstractmethod
    def table_names(self) -> list[str]:
        """Return the names of all registered tables."""

    def close(self) -> None:
        """Release any resources held by the backend."""

    def __enter__(self) -> Storage:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class InMemoryStorage(Storage):
    """Reference backend keeping one ordered map per table.

    Each map is keyed by the row's value and holds the encoded payload.
    """

    def __init__(self) -> None:
        self._tables: dict[str, OOBTree] = {}
        self._columns: dict[str, list[ColumnDefinition]] = {}
        self._populated: set[str] = set()

    def _table(self, name: str) -> OOBTree:
        table = self._tables.get(name)
        if table is None:
            raise UnknownTable(name)
        return table

    def _matching_keys(self, table: OOBTree, predicate: Predicate) -> list[Value]:
        """Collect the keys whose stored value satisfies the predicate."""
        return [
            key for key, payload in table.items()
            if matches(predicate, decode_value(payload))
        ]

    def columns(self, name: str) -> list[ColumnDefinition]:
        """Return the column definitions a table was created with."""
        self._table(name)
        return list(self._columns[name])

    def create_table(self, name: str, columns: Sequence[ColumnDefinition]) -> None:
        if name in self._tables:
            raise DuplicateTable(name)
        self._tables[name] = OOBTree()
        self._columns[name] = list(columns)
        log.debug("Created table %s with columns %s", name, [c.name for c in columns])

    def insert_into(self, name: str, row: Sequence[Value]) -> None:
        table = self._table(name)
        if not row:
            raise ValueError(f"Cannot insert an empty row into {name}")
        value = row[0]
        table[value] = encode_value(value)
        self._populated.add(name)

    def select(self, name: str, predicate: Predicate) -> list[list[Value]]:
        table = self._table(name)
        if name not in self._populated:
            raise EmptyTable(name)
        rows = []
        for payload in table.values():
            value = decode_value(payload)
            if matches(predicate, value):
                rows.append([value])
        return rows

    def update_where(self, name: str, predicate: Predicate, value: Value) -> int:
        table = self._table(name)
        keys = self._matching_keys(table, predicate)
        payload = encode_value(value)
        for key in keys:
            table[key] = payload
        log.debug("Updated %d row(s) in %s", len(keys), name)
        return len(keys)

    def delete_where(self, name: str, predicate: Predicate) -> int:
        table = self._table(name)
        if isinstance(predicate, MatchAll):
            count = len(table)
            table.clear()
        else:
            keys = self._matching_keys(table, predicate)
            for key in keys:
                del table[key]
            count = len(keys)
        log.debug("Deleted %d row(s) from %s", count, name)
        return count

    def table_names(self) -> list[str]:
        return list(self._tables)


class FileStorage(InMemoryStorage):
    """Backend that mirrors the in-memory tables into a data directory.

    Layout:
        _metadata.json   table names, column definitions, populated flags
        <table>.bin      uint64 record count, then per record a uint32
                         length-prefixed key and a uint32 length-prefixed
                         payload

    Inserts append to the table file; updates and deletes rewrite it.
    """

    METADATA_FILE = "_metadata.json"
    HEADER_SIZE = 8

    def __init__(self, data_dir: Path) -> None:
        """Open or create a database directory.

        Args:
            data_dir: Directory holding the metadata and table files.
        """
        super().__init__()
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load()

    def _table_path(self, name: str) -> Path:
        # Table files must stay directly inside data_dir
        if not name or name in (".", "..") or any(sep in name for sep in ("/", "\\", "\0")):
            raise ValueError(f"Invalid table name for file storage: {name!r}")
        return self.data_dir / f"{name}.bin"

    def _load(self) -> None:
        """Load metadata and every table file into memory."""
        metadata_path = self.data_dir / self.METADATA_FILE
        if not metadata_path.exists():
            self._save_metadata()
            return

        with open(metadata_path) as f:
            metadata = json.load(f)

        for name, entry in metadata.get("tables", {}).items():
            self._tables[name] = OOBTree()
            self._columns[name] = [
                ColumnDefinition(name=c["name"], type_name=c["type"])
                for c in entry.get("columns", [])
            ]
            if entry.get("populated"):
                self._populated.add(name)
            for key, payload in self._read_records(name):
                self._tables[name][key] = payload
        log.info("Opened %s with %d table(s)", self.data_dir, len(self._tables))

    def _save_metadata(self) -> None:
        """Save table metadata to disk."""
        metadata = {
            "tables": {
                name: {
                    "columns": [{"name": c.name, "type": c.type_name} for c in self._columns[name]],
                    "populated": name in self._populated,
                }
                for name in self._tables
            },
        }
        with open(self.data_dir / self.METADATA_FILE, "w") as f:
            json.dump(metadata, f, indent=2)

    @staticmethod
    def _pack_record(key: Value, payload: bytes) -> bytes:
        key_data = encode_value(key)
        return (
            struct.pack("<I", len(key_data)) + key_data
            + struct.pack("<I", len(payload)) + payload
        )

    def _read_records(self, name: str) -> list[tuple[Value, bytes]]:
        """Read every (key, payload) record of a table file."""
        path = self._table_path(name)
        if not path.exists():
            return []
        data = path.read_bytes()
        if len(data) < self.HEADER_SIZE:
            raise ValueError(f"Corrupt table file: {path}")

        count = struct.unpack("<Q", data[:self.HEADER_SIZE])[0]
        offset = self.HEADER_SIZE
        records = []

        def take(size: int) -> bytes:
            nonlocal offset
            if offset + size > len(data):
                raise ValueError(f"Corrupt table file: {path} is truncated at byte {offset}")
            chunk = data[offset:offset + size]
            offset += size
            return chunk

        for _ in range(count):
            key_len = struct.unpack("<I", take(4))[0]
            key = decode_value(take(key_len))
            payload_len = struct.unpack("<I", take(4))[0]
            records.append((key, take(payload_len)))
        return records

    def _write_table(self, name: str) -> None:
        """Rewrite a table file from its in-memory map."""
        table = self._tables[name]
        parts = [struct.pack("<Q", len(table))]
        parts.extend(self._pack_record(key, payload) for key, payload in table.items())
        self._table_path(name).write_bytes(b"".join(parts))

    def _append_record(self, name: str, key: Value, payload: bytes) -> None:
        """Append one record and bump the count in the header."""
        path = self._table_path(name)
        with open(path, "r+b") as f:
            count = struct.unpack("<Q", f.read(self.HEADER_SIZE))[0]
            f.seek(0, 2)
            f.write(self._pack_record(key, payload))
            f.seek(0)
            f.write(struct.pack("<Q", count + 1))

    def create_table(self, name: str, columns: Sequence[ColumnDefinition]) -> None:
        # rejects names that would leave data_dir
        self._table_path(name)
        super().create_table(name, columns)
        self._write_table(name)
        self._save_metadata()
        log.info("Created table file %s", self._table_path(name))

    def insert_into(self, name: str, row: Sequence[Value]) -> None:
        table = self._table(name)
        replacing = bool(row) and row[0] in table
        first_insert = name not in self._populated
        super().insert_into(name, row)
        if replacing:
            self._write_table(name)
        else:
            self._append_record(name, row[0], table[row[0]])
        if first_insert:
            self._save_metadata()

    def update_where(self, name: str, predicate: Predicate, value: Value) -> int:
        count = super().update_where(name, predicate, value)
        if count:
            self._write_table(name)
        return count

    def delete_where(self, name: str, predicate: Predicate) -> int:
        count = super().delete_where(name, predicate)
        if count:
            self._write_table(name)
        return count
