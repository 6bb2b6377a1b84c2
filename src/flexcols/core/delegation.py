"""
Delegation resolver: which accessors a flex column generates on its record.

* `resolve_accessors` is the pure naming / visibility policy.
* `install_accessors` applies it to a record class, checking collisions at
  declaration time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Collection, Dict, Optional, Tuple, Type

from ..errors import AccessorNameCollision
from .definition import DelegateMode, FlexColumnDefinition, GeneratedAccessor, Visibility

if TYPE_CHECKING:
    from .record import Record

logger = logging.getLogger(__name__)


def accessor_name(definition: FlexColumnDefinition, field_name: str) -> str:
    if definition.prefix:
        return f"{definition.prefix}_{field_name}"
    return field_name


def resolve_accessors(definition: FlexColumnDefinition) -> Tuple[GeneratedAccessor, ...]:
    """Accessors for every declared field, in declaration order.

    | delegate | prefix | result                               |
    |----------|--------|--------------------------------------|
    | OFF      | any    | nothing                              |
    | PUBLIC   | none   | `field`, public                      |
    | PUBLIC   | "bar"  | `bar_field`, public                  |
    | PRIVATE  | any    | same names, private (flex_get/set)   |
    """
    if definition.delegate is DelegateMode.OFF:
        return ()
    visibility = (
        Visibility.PRIVATE if definition.delegate is DelegateMode.PRIVATE else Visibility.PUBLIC
    )
    return tuple(
        GeneratedAccessor(
            column_name=definition.column_name,
            field_name=name,
            name=accessor_name(definition, name),
            visibility=visibility,
        )
        for name in definition.fields
    )


# descriptors placed on the record class
class FlexColumnAttribute:
    """`record.<column>` yields the contents instead of the raw string."""

    def __init__(self, definition: FlexColumnDefinition):
        self.definition = definition

    def __get__(self, record: Optional["Record"], owner: Any = None) -> Any:
        if record is None:
            return self
        return record.flex_contents(self.definition.column_name)

    def __set__(self, record: "Record", value: Any) -> None:
        record.replace_flex_column(self.definition.column_name, value)


class DelegatedField:
    """Public accessor proxying one field of a flex column."""

    def __init__(self, accessor: GeneratedAccessor):
        self.accessor = accessor

    def __get__(self, record: Optional["Record"], owner: Any = None) -> Any:
        if record is None:
            return self
        return record.flex_contents(self.accessor.column_name).get(self.accessor.field_name)

    def __set__(self, record: "Record", value: Any) -> None:
        record.flex_contents(self.accessor.column_name).set(self.accessor.field_name, value)

    def __repr__(self) -> str:
        return f"<DelegatedField {self.accessor.column_name}.{self.accessor.field_name}>"


class WithdrawnAccessor:
    """Hides a public accessor inherited from a base record.

    Left on a subclass whose re-declared column no longer generates the
    name as a public attribute.
    """

    def __init__(self, column_name: str, name: str):
        self.column_name = column_name
        self.name = name

    def __get__(self, record: Optional["Record"], owner: Any = None) -> Any:
        raise AttributeError(self.name)

    def __set__(self, record: "Record", value: Any) -> None:
        raise AttributeError(self.name)


def install_accessors(
    record_cls: Type["Record"],
    definition: FlexColumnDefinition,
    *,
    own_names: Collection[str],
    reserved_names: Collection[str] = (),
) -> Tuple[GeneratedAccessor, ...]:
    """Generate the column's accessors on `record_cls`.

    Names in `own_names` (fields and attributes the record class defines
    itself) win over delegation and are skipped. Names in `reserved_names`
    or otherwise present on the class are an `AccessorNameCollision`.
    """
    registry: Dict[str, GeneratedAccessor] = dict(record_cls.__flex_accessors__)

    # re-declaring a column replaces all of its accessors, including ones
    # inherited from a base record
    stale = set()
    for name, acc in list(registry.items()):
        if acc.column_name == definition.column_name:
            del registry[name]
            stale.add(name)
            if isinstance(vars(record_cls).get(name), (DelegatedField, WithdrawnAccessor)):
                delattr(record_cls, name)

    installed = []
    for acc in resolve_accessors(definition):
        if acc.name in registry:
            raise AccessorNameCollision(
                record_cls.__name__,
                acc.name,
                f"already generated for flex column {registry[acc.name].column_name!r}",
            )
        if acc.name in own_names:
            logger.debug(
                "%s.%s is defined on the record; not delegating %s.%s",
                record_cls.__name__,
                acc.name,
                acc.column_name,
                acc.field_name,
            )
            continue
        if acc.name in reserved_names or (acc.name not in stale and hasattr(record_cls, acc.name)):
            raise AccessorNameCollision(
                record_cls.__name__, acc.name, "name is part of the record API"
            )

        if acc.visibility is Visibility.PUBLIC:
            setattr(record_cls, acc.name, DelegatedField(acc))
        registry[acc.name] = acc
        installed.append(acc)

    for name in stale:
        if isinstance(getattr(record_cls, name, None), DelegatedField) and not isinstance(
            vars(record_cls).get(name), DelegatedField
        ):
            setattr(record_cls, name, WithdrawnAccessor(definition.column_name, name))

    record_cls.__flex_accessors__ = registry
    return tuple(installed)
