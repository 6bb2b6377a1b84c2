"""
Public surface for flexcols.

Importing this module does **not** touch the database; call
`flexcols.init_flexcols(engine)` during application start-up.
"""

from .bootstrap import init_flexcols
from .core.contents import FlexContents
from .core.definition import (
    DelegateMode,
    FlexColumnDefinition,
    GeneratedAccessor,
    Visibility,
    flex_column,
)
from .core.delegation import resolve_accessors
from .core.record import Record
from .errors import (
    AccessorNameCollision,
    DuplicateFieldError,
    FlexColumnDefinitionError,
    FlexColumnsError,
    InvalidFieldValue,
    MalformedColumnData,
    MethodNotAccessible,
    MethodNotFound,
    MissingStoreError,
    NoSuchColumnError,
    RecordNotFound,
    UndeclaredField,
)
from .settings import FlexColsSettings, load_settings

__all__ = [
    "AccessorNameCollision",
    "DelegateMode",
    "DuplicateFieldError",
    "FlexColsSettings",
    "FlexColumnDefinition",
    "FlexColumnDefinitionError",
    "FlexColumnsError",
    "FlexContents",
    "GeneratedAccessor",
    "InvalidFieldValue",
    "MalformedColumnData",
    "MethodNotAccessible",
    "MethodNotFound",
    "MissingStoreError",
    "NoSuchColumnError",
    "Record",
    "RecordNotFound",
    "UndeclaredField",
    "Visibility",
    "flex_column",
    "init_flexcols",
    "load_settings",
    "resolve_accessors",
]
