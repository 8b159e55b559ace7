"""Interactive shell and script runner for sql_tables."""

from __future__ import annotations

import argparse
import logging
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

from sql_tables.engine import (
    Engine,
    EngineEvent,
    RecordInserted,
    RecordsDeleted,
    RecordsSelected,
    RecordsUpdated,
    TableCreated,
)
from sql_tables.errors import EngineError
from sql_tables.storage import FileStorage, InMemoryStorage, Storage

log = logging.getLogger(__name__)

DEFAULT_COLUMN = "int_column"


def _split_statements(content: str) -> list[str]:
    """Split content into statements on semicolons outside string literals.

    SQL strings are single-quoted, with '' as an escaped quote.
    """
    statements = []
    current = []
    in_string = False

    for ch in content:
        if ch == "'":
            # '' inside a string toggles twice, leaving the state unchanged
            in_string = not in_string
            current.append(ch)
        elif ch == ";" and not in_string:
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
        else:
            current.append(ch)

    stmt = "".join(current).strip()
    if stmt:
        statements.append(stmt)

    return statements


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a stored value for display."""
    if value is None:
        return "NULL"
    s = str(value)
    if len(s) > max_width:
        return s[:max_width - 3] + "..."
    return s


def print_result(event: EngineEvent, column: str = DEFAULT_COLUMN) -> None:
    """Print the outcome of a statement."""
    if isinstance(event, TableCreated):
        print(f"Created table {event.table_name}")
        return
    if isinstance(event, RecordInserted):
        print("Inserted 1 record")
        return
    if isinstance(event, RecordsUpdated):
        print(f"Updated {event.count} record(s)")
        return
    if isinstance(event, RecordsDeleted):
        print(f"Deleted {event.count} record(s)")
        return
    if not isinstance(event, RecordsSelected):
        print(event)
        return

    if not event.rows:
        print("(no results)")
        return

    formatted = [[format_value(v) for v in row] for row in event.rows]
    width = max([len(column)] + [len(v) for row in formatted for v in row])
    print(column.ljust(width))
    print("-" * width)
    for row in formatted:
        print(" | ".join(v.ljust(width) for v in row))

    print(f"\n({len(event.rows)} row{'s' if len(event.rows) != 1 else ''})")


def open_storage(data_dir: Path | None) -> Storage:
    """Open file storage for a data directory, or in-memory storage without one."""
    if data_dir is None:
        return InMemoryStorage()
    return FileStorage(data_dir)


def print_help() -> None:
    """Print help information."""
    print("""
Supported statements:
  CREATE TABLE <name> (<column> INT);
  CREATE TABLE IF NOT EXISTS <name> (<column> INT);
  INSERT INTO <name> VALUES (<integer>);
  SELECT <column> FROM <name> [WHERE <condition>];
  UPDATE <name> SET <column> = <integer> [WHERE <condition>];
  DELETE FROM <name> [WHERE <condition>];

Conditions:
  <column> = <integer>
  <column> [NOT] BETWEEN <integer> AND <integer>
  <column> [NOT] IN (<integer>, ...)

OTHER:
  help                     Show this help
  exit, quit               Exit the shell

Statements can span multiple lines and end with a semicolon.
""")


def run_repl(engine: Engine) -> int:
    """Run the interactive shell."""
    print("sql-tables shell")
    print("Type 'help' for commands, 'exit' to quit.\n")

    history_file = Path.home() / ".sql_tables_history"
    try:
        readline.read_history_file(history_file)
    except FileNotFoundError:
        pass

    buffer: list[str] = []
    try:
        while True:
            try:
                line = input("sql> " if not buffer else "...> ")
            except EOFError:
                print()
                break

            stripped = line.strip()
            if not buffer:
                if not stripped:
                    continue
                if stripped.lower() in ("exit", "quit"):
                    break
                if stripped.lower() == "help":
                    print_help()
                    continue

            buffer.append(line)
            if not stripped.endswith(";"):
                continue

            text = "\n".join(buffer)
            buffer = []
            for statement in _split_statements(text):
                try:
                    print_result(engine.execute_sql(statement))
                except EngineError as e:
                    print(f"Error: {e}")
            print()
    except KeyboardInterrupt:
        print()
    finally:
        try:
            readline.write_history_file(history_file)
        except OSError as e:
            log.debug("Could not write history file: %s", e)

    return 0


def run_statements(statements: list[str], engine: Engine, verbose: bool = False) -> int:
    """Execute statements in order, stopping at the first error.

    Returns:
        0 on success, 1 on error
    """
    for statement in statements:
        if verbose:
            for i, line in enumerate(statement.split("\n")):
                prefix = ">>> " if i == 0 else "... "
                print(f"{prefix}{line}")
        try:
            print_result(engine.execute_sql(statement))
        except EngineError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    return 0


def run_file(file_path: Path, engine: Engine, verbose: bool = False) -> int:
    """Execute statements from a file.

    Args:
        file_path: Path to the file containing statements
        engine: Engine to execute against
        verbose: If True, print each statement before executing

    Returns:
        0 on success, 1 on error
    """
    try:
        content = file_path.read_text()
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1

    # Strip comments (lines starting with --)
    lines = [line for line in content.split("\n") if not line.strip().startswith("--")]
    statements = _split_statements("\n".join(lines))

    if not statements:
        print("No statements found in file", file=sys.stderr)
        return 1

    return run_statements(statements, engine, verbose)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Interactive shell for the sql_tables engine"
    )
    arg_parser.add_argument(
        "data_dir",
        type=Path,
        nargs="?",
        default=None,
        help="Directory to store tables in (optional, in-memory if omitted)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute semicolon-separated statements and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute statements from a file and exit",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print each statement before executing (for -c and -f)",
    )
    arg_parser.add_argument(
        "--dialect",
        type=str,
        default=None,
        help="sqlglot dialect used to parse statements (default: generic)",
    )
    arg_parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    args = arg_parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.file and not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    try:
        storage = open_storage(args.data_dir)
    except (OSError, ValueError) as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    with storage:
        engine = Engine(storage, dialect=args.dialect)

        if args.file:
            return run_file(args.file, engine, args.verbose)

        if args.command:
            statements = _split_statements(args.command)
            if not statements:
                print("No statements found in command", file=sys.stderr)
                return 1
            return run_statements(statements, engine, args.verbose)

        return run_repl(engine)


if __name__ == "__main__":
    sys.exit(main())
