"""
Exception hierarchy for flexcols.

Everything raised by the library derives from `FlexColumnsError`, and each
error also subclasses the builtin a caller would naturally catch
(`AttributeError` for missing accessors, `ValueError` for bad data).
"""

from __future__ import annotations


class FlexColumnsError(Exception):
    """Base class for all flexcols errors."""


# declaration time
class FlexColumnDefinitionError(FlexColumnsError):
    """A flex column could not be declared on a record class."""


class DuplicateFieldError(FlexColumnDefinitionError):
    def __init__(self, column: str, field: str):
        self.column = column
        self.field = field
        super().__init__(f"field {field!r} declared more than once on flex column {column!r}")


class NoSuchColumnError(FlexColumnDefinitionError):
    def __init__(self, record: str, column: str):
        self.record = record
        self.column = column
        super().__init__(
            f"{record} has no field {column!r} to back a flex column; "
            f"declare `{column}: str | None = None` on the record"
        )


class AccessorNameCollision(FlexColumnDefinitionError):
    def __init__(self, record: str, name: str, reason: str):
        self.record = record
        self.name = name
        super().__init__(f"cannot generate accessor {record}.{name}: {reason}")


# data
class MalformedColumnData(FlexColumnsError, ValueError):
    def __init__(self, column: str, raw: str, reason: str):
        self.column = column
        self.raw = raw
        super().__init__(f"flex column {column!r} holds malformed data ({reason}): {raw[:80]!r}")


class InvalidFieldValue(FlexColumnsError, ValueError):
    """A value assigned to a declared field failed its type."""


# call time
class MethodNotFound(FlexColumnsError, AttributeError):
    def __init__(self, owner: str, name: str):
        self.owner = owner
        self.attr = name
        super().__init__(f"{owner!r} object has no attribute {name!r}")


class MethodNotAccessible(MethodNotFound):
    def __init__(self, owner: str, name: str):
        super().__init__(owner, name)
        self.args = (
            f"{name!r} is a private delegated accessor of {owner!r}; "
            f"use flex_get/flex_set",
        )


class UndeclaredField(FlexColumnsError, AttributeError):
    def __init__(self, column: str, name: str):
        self.column = column
        self.field = name
        super().__init__(f"flex column {column!r} declares no field {name!r}")


# persistence
class MissingStoreError(FlexColumnsError, RuntimeError):
    """Raised when a record is saved or loaded before init_flexcols()."""


class RecordNotFound(FlexColumnsError, KeyError):
    """No committed row for the requested record id / version."""
