"""
Schema-level description of a flex column.

A `FlexColumnDefinition` is built once per record class and column, is
immutable, and is shared read-only by every instance of the record.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Iterable, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, create_model, field_validator, model_validator

from ..errors import DuplicateFieldError, FlexColumnDefinitionError
from .contents import FlexContents


class DelegateMode(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    OFF = "off"


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


def _camel(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_"))


def _check_names(column: str, names: Iterable[str]) -> Tuple[str, ...]:
    seen: list[str] = []
    for name in names:
        if name in seen:
            raise DuplicateFieldError(column, name)
        if hasattr(FlexContents, name):
            raise FlexColumnDefinitionError(
                f"field {name!r} of flex column {column!r} would hide FlexContents.{name}"
            )
        seen.append(name)
    return tuple(seen)


def build_contents_class(column: str, names: Iterable[str]) -> Type[FlexContents]:
    """Contents class with one optional string field per name."""
    names = _check_names(column, names)
    return create_model(  # type: ignore[call-overload]
        f"{_camel(column)}Contents",
        __base__=FlexContents,
        **{name: (Optional[str], None) for name in names},
    )


class GeneratedAccessor(BaseModel):
    """One accessor generated on the owning record for one field."""

    model_config = ConfigDict(frozen=True)

    column_name: str
    field_name: str
    name: str
    visibility: Visibility


class FlexColumnDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    column_name: str
    contents_class: Type[FlexContents]
    fields: Tuple[str, ...]
    delegate: DelegateMode = DelegateMode.PUBLIC
    prefix: Optional[str] = None
    unknown_fields: Literal["preserve", "delete"] = "preserve"

    @field_validator("delegate", mode="before")
    @classmethod
    def _coerce_delegate(cls, value: Any) -> Any:
        if value is True:
            return DelegateMode.PUBLIC
        if value is False or value is None:
            return DelegateMode.OFF
        if isinstance(value, str):
            return value.lower()
        return value

    @field_validator("prefix")
    @classmethod
    def _check_prefix(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not value.isidentifier():
            raise ValueError(f"prefix {value!r} is not a valid identifier")
        return value

    @model_validator(mode="after")
    def _check_fields(self) -> "FlexColumnDefinition":
        _check_names(self.column_name, self.fields)
        return self

    @classmethod
    def build(
        cls,
        column_name: str,
        contents_class: Optional[Type[FlexContents]] = None,
        *,
        fields: Optional[Iterable[str]] = None,
        **options: Any,
    ) -> "FlexColumnDefinition":
        """Definition from a contents class, or from bare field names."""
        if contents_class is None:
            contents_class = build_contents_class(column_name, fields or ())
        elif fields is not None:
            raise TypeError("pass either a contents class or field names, not both")
        return cls(
            column_name=column_name,
            contents_class=contents_class,
            fields=contents_class.field_names(),
            **options,
        )

    @property
    def keep_unknown(self) -> bool:
        return self.unknown_fields == "preserve"

    def load(self, raw: Optional[str]) -> FlexContents:
        return self.contents_class.from_raw(
            raw, column=self.column_name, keep_unknown=self.keep_unknown
        )


def flex_column(
    column_name: str,
    *,
    delegate: Any = True,
    prefix: Optional[str] = None,
    unknown_fields: str = "preserve",
) -> Callable[[Type[FlexContents]], Type[FlexContents]]:
    """Mark a nested `FlexContents` subclass as the contents of a column.

    The record's metaclass picks marked classes up at class creation::

        class User(Record):
            user_attributes: str | None = None

            @flex_column("user_attributes", prefix="bar")
            class UserAttributes(FlexContents):
                wants_email: str | None = None
    """

    def decorator(contents_class: Type[FlexContents]) -> Type[FlexContents]:
        if not (isinstance(contents_class, type) and issubclass(contents_class, FlexContents)):
            raise TypeError("@flex_column decorates FlexContents subclasses")
        contents_class.__flex_options__ = {
            "column_name": column_name,
            "delegate": delegate,
            "prefix": prefix,
            "unknown_fields": unknown_fields,
        }
        return contents_class

    return decorator
