"""Errors raised by the reftable engine.

Every failure of a query is reported synchronously as one
of the exceptions in this module, all of them subclasses
of :class:`ReftableError` so that callers can catch
engine failures as a whole.

Each error also derives from the builtin exception that
better describes it (``KeyError`` for a missing column,
``ValueError`` for wrong lengths, ...) so that code written
against plain Python containers keeps working.

Note that an empty selection is **not** an error,
it produces a valid zero rows result.
"""


class ReftableError(Exception):
    """Base class for all errors raised by the engine."""


class UnknownColumn(ReftableError, KeyError):
    """A referenced column does not exist in the store."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available
        message = f"Unknown column: {name!r}"
        if available is not None:
            message += f", available columns are {available}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would repr() the message otherwise.
        return self.args[0]


class DimensionMismatch(ReftableError, ValueError):
    """A column assigned to a store has the wrong length."""


class ShapeMismatch(ReftableError, ValueError):
    """An expression result length is not compatible with its group."""


class TypeMismatch(ReftableError, TypeError):
    """Comparison, arithmetic or assignment across incompatible types."""


class ConcurrentQueryError(ReftableError, RuntimeError):
    """A store was written by a query while another one was writing it."""
