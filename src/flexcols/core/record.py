"""
Record kernel – a pydantic model that owns flex columns.

* Nested classes decorated with `@flex_column` are declared at
  class-creation time by `RecordMeta`: the raw column attribute now yields
  the contents, and delegated accessors are generated on the class.
* `save()` writes dirty contents back into their raw string columns and
  appends a new version row through the injected `RecordStore`.
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from ..errors import (
    FlexColumnDefinitionError,
    MethodNotAccessible,
    MethodNotFound,
    MissingStoreError,
    NoSuchColumnError,
    RecordNotFound,
)
from .contents import FlexContents
from .definition import FlexColumnDefinition, GeneratedAccessor, Visibility
from .delegation import DelegatedField, FlexColumnAttribute, WithdrawnAccessor, install_accessors

if TYPE_CHECKING:
    from ..persistence.store import RecordStore

T_Record = TypeVar("T_Record", bound="Record")
ModelMeta = BaseModel.__class__


# helpers
def _snake(name: str) -> str:
    """CamelCase ➜ snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


# metaclass that declares nested flex columns
class RecordMeta(ModelMeta):
    """Assign `table_name` and declare `@flex_column` classes at class-creation time."""

    def __new__(mcls, name: str, bases, ns, **kw):
        cls = super().__new__(mcls, name, bases, ns, **kw)  # create class first
        if name == "Record" and ns.get("__module__") == __name__:  # skip abstract base
            return cls

        if "table_name" not in ns:
            cls.table_name = _snake(name)
        cls.__flex_columns__ = dict(cls.__flex_columns__)
        cls.__flex_accessors__ = dict(cls.__flex_accessors__)

        for value in ns.values():
            if (
                isinstance(value, type)
                and issubclass(value, FlexContents)
                and "__flex_options__" in vars(value)
            ):
                options = dict(value.__flex_options__)
                cls.declare_flex_column(options.pop("column_name"), value, **options)

        return cls


# Record base
class Record(BaseModel, metaclass=RecordMeta):
    """Base class – a persisted row whose string columns may be flex columns."""

    id: Optional[uuid.UUID] = None
    version_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    version: int = 0

    table_name: ClassVar[str] = "record"
    __flex_columns__: ClassVar[Dict[str, FlexColumnDefinition]] = {}
    __flex_accessors__: ClassVar[Dict[str, GeneratedAccessor]] = {}
    _store: ClassVar[Optional["RecordStore"]] = None  # injected by init_flexcols()

    _flex_contents: Dict[str, FlexContents] = PrivateAttr(default_factory=dict)
    _persisted: bool = PrivateAttr(default=False)

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    def __init__(self, **data: Any) -> None:
        cls = type(self)
        flex_fields = {name for d in cls.__flex_columns__.values() for name in d.fields}
        deferred = {}
        for key in list(data):
            acc = cls.__flex_accessors__.get(key)
            if acc is not None:
                if acc.visibility is not Visibility.PUBLIC:
                    raise MethodNotAccessible(cls.__name__, key)
                deferred[key] = data.pop(key)
            elif key in cls.__flex_columns__ and isinstance(data[key], Mapping):
                deferred[key] = data.pop(key)
            elif key in flex_fields and key not in cls.model_fields:
                # not delegated (off or prefixed); only the contents reach it
                raise MethodNotFound(cls.__name__, key)
        super().__init__(**data)
        for key, value in deferred.items():
            setattr(self, key, value)

    def model_post_init(self, _ctx: Any) -> None:
        if self.id is None:
            object.__setattr__(self, "id", uuid.uuid4())

    # ------------------------------------------------------------------ #
    # declaration
    # ------------------------------------------------------------------ #
    @classmethod
    def declare_flex_column(
        cls,
        column_name: str,
        contents_class: Optional[Type[FlexContents]] = None,
        **options: Any,
    ) -> FlexColumnDefinition:
        """Declare (or re-declare) a flex column backed by `column_name`.

        Either pass a `FlexContents` subclass or `fields=[...]` names.
        Remaining options: `delegate`, `prefix`, `unknown_fields`.
        """
        if cls is Record:
            raise FlexColumnDefinitionError("declare flex columns on a Record subclass")
        if column_name not in cls.model_fields:
            raise NoSuchColumnError(cls.__name__, column_name)
        try:
            definition = FlexColumnDefinition.build(column_name, contents_class, **options)
        except ValidationError as exc:
            raise FlexColumnDefinitionError(
                f"invalid options for {cls.__name__}.{column_name}: {exc}"
            ) from exc

        install_accessors(
            cls,
            definition,
            own_names=cls._own_names(),
            reserved_names=set(dir(Record)) | set(Record.model_fields),
        )
        cls.__flex_columns__[column_name] = definition
        setattr(cls, column_name, FlexColumnAttribute(definition))
        return definition

    @classmethod
    def flex_column_definition(cls, column_name: str) -> FlexColumnDefinition:
        try:
            return cls.__flex_columns__[column_name]
        except KeyError:
            raise MethodNotFound(cls.__name__, column_name) from None

    @classmethod
    def _own_names(cls) -> Set[str]:
        """Fields and attributes defined by the user's record classes."""
        names = set(cls.model_fields) - set(Record.model_fields)
        for klass in cls.__mro__:
            if klass is Record:
                break
            for name, value in vars(klass).items():
                if name.startswith("__") or isinstance(
                    value, (DelegatedField, FlexColumnAttribute, WithdrawnAccessor)
                ):
                    continue
                names.add(name)
        return names

    # ------------------------------------------------------------------ #
    # attribute protocol
    # ------------------------------------------------------------------ #
    def __getattr__(self, name: str) -> Any:
        try:
            return super().__getattr__(name)
        except AttributeError:
            if name in type(self).__flex_accessors__:  # public ones live on the class
                raise MethodNotAccessible(type(self).__name__, name) from None
            raise MethodNotFound(type(self).__name__, name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            return super().__setattr__(name, value)

        cls = type(self)
        attr = getattr(cls, name, None)
        if isinstance(attr, (FlexColumnAttribute, DelegatedField)):
            attr.__set__(self, value)
        elif name in cls.__flex_accessors__:
            raise MethodNotAccessible(cls.__name__, name)
        elif (
            name in cls.model_fields
            or name in (self.__pydantic_extra__ or {})
            or isinstance(attr, property)
        ):
            super().__setattr__(name, value)
        else:
            raise MethodNotFound(cls.__name__, name)

    # ------------------------------------------------------------------ #
    # flex columns
    # ------------------------------------------------------------------ #
    def raw_column(self, column_name: str) -> Optional[str]:
        """Stored string for a column, bypassing any flex contents."""
        if column_name in self.__dict__:
            return self.__dict__[column_name]
        return (self.__pydantic_extra__ or {}).get(column_name)

    def flex_contents(self, column_name: str) -> FlexContents:
        """Contents of a flex column, loaded from the raw value on first use."""
        contents = self._flex_contents.get(column_name)
        if contents is None:
            definition = type(self).flex_column_definition(column_name)
            contents = definition.load(self.raw_column(column_name))
            self._flex_contents[column_name] = contents
        return contents

    def replace_flex_column(self, column_name: str, value: Any) -> None:
        """Assign a flex column: raw string / None, mapping, or contents."""
        definition = type(self).flex_column_definition(column_name)
        if isinstance(value, FlexContents):
            value = value.serialize()
        if value is None or isinstance(value, str):
            self.__dict__[column_name] = value
            self._flex_contents.pop(column_name, None)
            return

        contents = definition.load(None)
        for key, item in dict(value).items():
            contents.set(key, item)
        self._flex_contents[column_name] = contents

    def flex_get(self, name: str) -> Any:
        """Read a delegated accessor of any visibility."""
        acc = self._flex_accessor(name)
        return self.flex_contents(acc.column_name).get(acc.field_name)

    def flex_set(self, name: str, value: Any) -> Any:
        """Write a delegated accessor of any visibility; returns the value."""
        acc = self._flex_accessor(name)
        return self.flex_contents(acc.column_name).set(acc.field_name, value)

    def _flex_accessor(self, name: str) -> GeneratedAccessor:
        acc = type(self).__flex_accessors__.get(name)
        if acc is None:
            raise MethodNotFound(type(self).__name__, name)
        return acc

    def sync_flex_columns(self) -> None:
        """Write every modified flex column back into its raw attribute."""
        for column_name, contents in self._flex_contents.items():
            if contents.is_dirty:
                self.__dict__[column_name] = contents.serialize()
                contents.mark_clean()

    # ------------------------------------------------------------------ #
    # persistence
    # ------------------------------------------------------------------ #
    def save(self: T_Record) -> T_Record:
        """Append the current state as a new version row."""
        cls = type(self)
        cls._ensure_store()
        self.sync_flex_columns()
        if self._persisted:
            object.__setattr__(self, "version", self.version + 1)
            object.__setattr__(self, "version_id", uuid.uuid4())
        cls._store.append(self)  # type: ignore[union-attr]
        self._persisted = True
        return self

    @classmethod
    def hydrate(
        cls: Type[T_Record], rec_id: uuid.UUID, version: Optional[int] = None
    ) -> T_Record:
        cls._ensure_store()
        store = cls._store
        if version is None:
            state = store.latest(rec_id, cls.table_name)  # type: ignore[union-attr]
            if not state:
                raise RecordNotFound(
                    f"{cls.__name__} {rec_id} not found (no committed rows yet)"
                )
            obj = cls.model_validate(state)
        else:
            obj = None
            for row in store.stream(rec_id, cls.table_name):  # type: ignore[union-attr]
                if row.version > version:
                    break
                obj = cls.model_validate(row.data)
            if obj is None:
                raise RecordNotFound(f"{cls.__name__} {rec_id} ≤ v{version} not found")
        obj._persisted = True
        return obj

    @classmethod
    def find(cls: Type[T_Record], rec_id: uuid.UUID) -> T_Record:
        return cls.hydrate(rec_id)

    # internal util
    @classmethod
    def _ensure_store(cls) -> None:
        if cls._store is None:
            raise MissingStoreError("Call init_flexcols(engine) before using Record")
