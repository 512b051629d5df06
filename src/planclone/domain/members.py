"""Member descriptors — what gets copied from each registered class.

Discovery reads the class the way dataclasses and type checkers do:

- Annotated attributes of the class and its bases, base classes first, in
  declaration order. ``ClassVar`` and ``InitVar`` annotations are skipped.
- Properties that define a setter. Read-only properties are derived values
  and are never copied.

Categorization against the registered planning classes:

- **deep** if the annotation carries ``DeepClone`` or the declared type is a
  container that can hold a solution or entity;
- **shallow** otherwise. A shallow member whose declared type overlaps a
  registered entity class is *entity-redirected*: its value is cloned when it
  is an entity and shared when it is not.
"""

from __future__ import annotations

import dataclasses
import inspect
import operator
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, get_origin

from planclone.domain.errors import MissingWriteAccessorError
from planclone.domain.typehints import container_mentions, is_deep_marked, overlapping
from planclone.domain.types import MemberCategory

Reader = Callable[[Any], Any]
Writer = Callable[[Any, Any], None]


@dataclass(frozen=True)
class MemberDescriptor:
    """One copyable member of a registered class."""

    name: str
    declaring_class: type
    declared_type: object
    category: MemberCategory
    reader: Reader = dataclasses.field(repr=False, compare=False)
    writer: Writer | None = dataclasses.field(default=None, repr=False, compare=False)
    entity_redirect: bool = False
    via_property: bool = False

    @property
    def writable(self) -> bool:
        return self.writer is not None

    def read(self, instance: Any) -> Any:
        return self.reader(instance)

    def write(self, instance: Any, value: Any) -> None:
        if self.writer is None:
            raise MissingWriteAccessorError(self.name, self.declaring_class)
        self.writer(instance, value)


def _attribute_writer(name: str) -> Writer:
    def write(instance: Any, value: Any) -> None:
        setattr(instance, name, value)

    return write


def _is_frozen_dataclass(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def _is_skipped_annotation(hint: object) -> bool:
    return get_origin(hint) is ClassVar or hint is ClassVar or isinstance(hint, dataclasses.InitVar)


def _declared_names(cls: type) -> list[tuple[str, type]]:
    """Annotated names with the class that first declares them, bases first."""
    seen: dict[str, type] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name in inspect.get_annotations(klass):
            seen.setdefault(name, klass)
    return list(seen.items())


def _setter_properties(cls: type, exclude: set[str]) -> list[tuple[str, type, property]]:
    found: dict[str, tuple[type, property]] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if name in exclude or not isinstance(attr, property):
                continue
            found[name] = (klass, attr)
    # A subclass may redefine the property without a setter.
    return [
        (name, klass, prop)
        for name, (klass, prop) in found.items()
        if prop.fset is not None and isinstance(inspect.getattr_static(cls, name), property)
    ]


def _categorize(
    declared: object,
    entity_classes: Sequence[type],
    planning_classes: Sequence[type],
) -> tuple[MemberCategory, bool]:
    if is_deep_marked(declared) or container_mentions(declared, planning_classes):
        return MemberCategory.DEEP, False
    return MemberCategory.SHALLOW, bool(overlapping(declared, entity_classes))


def discover_members(
    cls: type,
    *,
    entity_classes: Sequence[type],
    solution_classes: Sequence[type],
) -> tuple[MemberDescriptor, ...]:
    """Build the ordered member descriptors of *cls*.

    Forward references are resolved against the defining module, so every
    annotated name must be importable when the registry is built.
    """
    hints = typing.get_type_hints(cls, include_extras=True)
    planning_classes = (*solution_classes, *entity_classes)
    frozen = _is_frozen_dataclass(cls)
    members: list[MemberDescriptor] = []

    for name, declaring in _declared_names(cls):
        hint = hints.get(name, Any)
        if _is_skipped_annotation(hint):
            continue
        static = inspect.getattr_static(cls, name, None)
        writer: Writer | None
        if isinstance(static, property):
            writer = static.fset
        elif frozen:
            writer = None
        else:
            writer = _attribute_writer(name)
        category, redirect = _categorize(hint, entity_classes, planning_classes)
        members.append(
            MemberDescriptor(
                name=name,
                declaring_class=declaring,
                declared_type=hint,
                category=category,
                reader=operator.attrgetter(name),
                writer=writer,
                entity_redirect=redirect,
                via_property=isinstance(static, property),
            )
        )

    annotated = {m.name for m in members}
    for name, declaring, prop in _setter_properties(cls, annotated):
        hint = typing.get_type_hints(prop.fget, include_extras=True).get("return", Any)
        category, redirect = _categorize(hint, entity_classes, planning_classes)
        members.append(
            MemberDescriptor(
                name=name,
                declaring_class=declaring,
                declared_type=hint,
                category=category,
                reader=operator.attrgetter(name),
                writer=prop.fset,
                entity_redirect=redirect,
                via_property=True,
            )
        )
    return tuple(members)


def required_constructor_parameters(cls: type) -> list[str]:
    """Names of constructor parameters without defaults (empty if introspection fails)."""
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return []
    return [
        p.name
        for p in signature.parameters.values()
        if p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
