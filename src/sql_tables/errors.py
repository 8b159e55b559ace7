"""Errors raised by the statement engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all errors surfaced by Engine.execute."""


class TableAlreadyExists(EngineError):
    """CREATE TABLE on a name that is already registered."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(table_name)


class TableDoesNotExist(EngineError):
    """A statement referenced a table that was never created."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        super().__init__(table_name)


class UnimplementedBranch(EngineError):
    """A statement, clause, literal or operator the engine has no case for.

    `description` names the unsupported construct.
    """

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(description)
