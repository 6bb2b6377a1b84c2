"""
Field container for one flex column of one record instance.

* Declared fields are ordinary pydantic fields, validated on assignment.
* Stored keys that are not declared are kept opaquely in `_unknown` and
  written back untouched, unless the column drops them.
* `serialize` / `deserialize` convert to and from the stored JSON text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from ..errors import InvalidFieldValue, MalformedColumnData, UndeclaredField

logger = logging.getLogger(__name__)


def _parse(raw: Optional[str], column: str) -> Dict[str, Any]:
    if raw is None or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise MalformedColumnData(column, raw, "not valid JSON") from exc
    if not isinstance(data, dict):
        raise MalformedColumnData(column, raw, f"expected an object, got {type(data).__name__}")
    return data


class FlexContents(BaseModel):
    """Base class for the contents of a flex column.

    Subclass it and annotate one attribute per field; plain methods and
    properties on the subclass become derived values on the container::

        class UserAttributes(FlexContents):
            foo: str | None = None
            bar: str | None = None

            def baz(self) -> str:
                return self.foo + "!!"
    """

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    # set by flex_column(); read by Record when declaring the column
    __flex_options__: ClassVar[Optional[Dict[str, Any]]] = None

    _column: str = PrivateAttr(default="")
    _keep_unknown: bool = PrivateAttr(default=True)
    _unknown: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _key_order: List[str] = PrivateAttr(default_factory=list)
    _loaded: bool = PrivateAttr(default=False)
    _dirty: bool = PrivateAttr(default=False)

    # ------------------------------------------------------------------ #
    # schema helpers
    # ------------------------------------------------------------------ #
    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(cls.model_fields)

    @classmethod
    def storage_key(cls, name: str) -> str:
        """JSON key a field is stored under (its alias, if any)."""
        return cls.model_fields[name].alias or name

    # ------------------------------------------------------------------ #
    # loading
    # ------------------------------------------------------------------ #
    @classmethod
    def from_raw(
        cls, raw: Optional[str], *, column: str = "", keep_unknown: bool = True
    ) -> "FlexContents":
        """Build a loaded container from the stored column value."""
        data = _parse(raw, column)
        keys = {cls.storage_key(name) for name in cls.model_fields}
        declared = {k: v for k, v in data.items() if k in keys}
        try:
            contents = cls.model_validate(declared)
        except ValidationError as exc:
            raise MalformedColumnData(
                column, raw or "", f"{exc.error_count()} invalid field value(s)"
            ) from exc

        contents._column = column
        contents._keep_unknown = keep_unknown
        contents._unknown = {k: v for k, v in data.items() if k not in keys}
        contents._key_order = list(data)
        contents._loaded = True
        logger.debug("loaded flex column %r: %d key(s)", column, len(data))
        return contents

    def deserialize(self, raw: Optional[str]) -> None:
        """Replace the current values with those parsed from `raw`."""
        fresh = type(self).from_raw(raw, column=self._column, keep_unknown=self._keep_unknown)
        for name in type(self).model_fields:
            self.__dict__[name] = fresh.__dict__[name]
        self._unknown = fresh._unknown
        self._key_order = fresh._key_order
        self._loaded = True
        self._dirty = False

    # ------------------------------------------------------------------ #
    # access
    # ------------------------------------------------------------------ #
    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_") or isinstance(getattr(type(self), name, None), property):
            return super().__setattr__(name, value)
        if name not in type(self).model_fields:
            raise UndeclaredField(self._column, name)
        try:
            super().__setattr__(name, value)
        except ValidationError as exc:
            raise InvalidFieldValue(
                f"invalid value for {self._column}.{name}: {exc.errors()[0]['msg']}"
            ) from exc

        key = type(self).storage_key(name)
        if key not in self._key_order:
            self._key_order.append(key)
        self._dirty = True

    def get(self, name: str) -> Any:
        if name not in type(self).model_fields:
            raise UndeclaredField(self._column, name)
        return getattr(self, name)

    def set(self, name: str, value: Any) -> Any:
        """Assign a declared field and return the stored value."""
        setattr(self, name, value)
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        """Declared fields that currently hold a value."""
        return {name: value for name, value in self if value is not None}

    # ------------------------------------------------------------------ #
    # state
    # ------------------------------------------------------------------ #
    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def mark_clean(self) -> None:
        self._dirty = False

    # ------------------------------------------------------------------ #
    # storage
    # ------------------------------------------------------------------ #
    def serialize(self) -> Optional[str]:
        """JSON text for the column, or None when there is nothing to store."""
        merged: Dict[str, Any] = dict(self._unknown) if self._keep_unknown else {}
        merged.update(self.model_dump(mode="json", by_alias=True, exclude_none=True))
        if not merged:
            return None

        ordered = {k: merged[k] for k in self._key_order if k in merged}
        ordered.update((k, v) for k, v in merged.items() if k not in ordered)
        return json.dumps(ordered, ensure_ascii=False, separators=(",", ":"))
