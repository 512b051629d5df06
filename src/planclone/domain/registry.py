"""DomainRegistry — the closed set of clonable classes and their dispatch table.

Built once per domain model and immutable afterwards:

- Solution and entity classes are ordered most-specific-first (longer MRO
  first), ties broken by qualified name. This order is used everywhere a
  registered set is listed or searched, so dispatch and error messages are
  deterministic.
- Every registered class gets a :class:`ClassDescriptor` with its shallow and
  deep members. The descriptor map doubles as the exact-class dispatch table.
- Entity overlap per declared type is precomputed for every type reachable
  from a member declaration; other declared types are added on first lookup.
  The answer for a type never changes, so the table only grows.

INVARIANT: configuration defects (missing write accessors, unresolvable
container element types, classes without default construction) are raised
from the constructor, never mid-clone.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, get_args

from planclone.domain.errors import (
    DomainConfigurationError,
    MissingDefaultConstructorError,
    MissingWriteAccessorError,
    UnknownEntitySubclassError,
    UnknownRootSubclassError,
    qualified_name,
)
from planclone.domain.members import (
    MemberDescriptor,
    discover_members,
    required_constructor_parameters,
)
from planclone.domain.typehints import check_resolvable, overlapping, union_arms
from planclone.domain.types import DomainRole, MemberCategory

logger = logging.getLogger(__name__)


def specificity_order(classes: Iterable[type]) -> tuple[type, ...]:
    """Sort classes most-specific-first, then by qualified name."""
    return tuple(sorted(set(classes), key=lambda c: (-len(c.__mro__), qualified_name(c))))


@dataclass(frozen=True)
class ClassDescriptor:
    """Clone plan for one registered concrete class."""

    cls: type
    role: DomainRole
    shallow_members: tuple[MemberDescriptor, ...]
    deep_members: tuple[MemberDescriptor, ...]

    @functools.cached_property
    def member_names(self) -> frozenset[str]:
        return frozenset(m.name for m in (*self.shallow_members, *self.deep_members))

    @functools.cached_property
    def has_property_members(self) -> bool:
        """True when some member is copied through a property setter."""
        return any(m.via_property for m in (*self.shallow_members, *self.deep_members))


def _reachable_types(declared: object) -> Iterator[object]:
    yield declared
    for arm in union_arms(declared):
        yield arm
        for arg in get_args(arm):
            if arg is Ellipsis or isinstance(arg, (list, tuple)):
                continue
            yield from _reachable_types(arg)


class DomainRegistry:
    """Registered solution and entity classes with their member descriptors.

    Usage::

        registry = DomainRegistry(
            solution_classes=[Schedule],
            entity_classes=[Shift, NightShift],
        )
        registry.deep_members(Schedule)
        registry.known_subclasses(Shift)  # (NightShift, Shift)
    """

    def __init__(
        self,
        solution_classes: Iterable[type],
        entity_classes: Iterable[type] = (),
    ) -> None:
        self._solution_classes = specificity_order(solution_classes)
        self._entity_classes = specificity_order(entity_classes)

        if not self._solution_classes:
            msg = "At least one solution class must be registered"
            raise DomainConfigurationError(msg)
        both = set(self._solution_classes) & set(self._entity_classes)
        if both:
            names = sorted(qualified_name(c) for c in both)
            msg = f"Classes cannot be registered as both solution and entity: {names}"
            raise DomainConfigurationError(msg)

        self._descriptors: dict[type, ClassDescriptor] = {}
        for cls in self._solution_classes:
            self._descriptors[cls] = self._describe(cls, DomainRole.SOLUTION)
        for cls in self._entity_classes:
            self._descriptors[cls] = self._describe(cls, DomainRole.ENTITY)

        self._subclass_table: dict[object, tuple[type, ...]] = {}
        for descriptor in self._descriptors.values():
            for member in (*descriptor.shallow_members, *descriptor.deep_members):
                for declared in _reachable_types(member.declared_type):
                    try:
                        if declared not in self._subclass_table:
                            self._subclass_table[declared] = overlapping(
                                declared, self._entity_classes
                            )
                    except TypeError:
                        # Unhashable metadata; resolved on demand instead.
                        continue
        self._subclass_table[Any] = self._entity_classes

        logger.debug(
            "Built domain registry: %d solution classes, %d entity classes",
            len(self._solution_classes),
            len(self._entity_classes),
        )

    def _describe(self, cls: type, role: DomainRole) -> ClassDescriptor:
        missing = required_constructor_parameters(cls)
        if missing:
            raise MissingDefaultConstructorError(cls, missing)

        members = discover_members(
            cls,
            entity_classes=self._entity_classes,
            solution_classes=self._solution_classes,
        )
        for member in members:
            if not member.writable:
                raise MissingWriteAccessorError(member.name, member.declaring_class)
            if member.category is MemberCategory.DEEP:
                check_resolvable(member.declared_type)

        return ClassDescriptor(
            cls=cls,
            role=role,
            shallow_members=tuple(m for m in members if m.category is MemberCategory.SHALLOW),
            deep_members=tuple(m for m in members if m.category is MemberCategory.DEEP),
        )

    # --- Registered sets ---

    @property
    def solution_classes(self) -> tuple[type, ...]:
        return self._solution_classes

    @property
    def entity_classes(self) -> tuple[type, ...]:
        return self._entity_classes

    def known_solution_subclasses(self) -> tuple[type, ...]:
        """Registered solution classes, most-specific-first."""
        return self._solution_classes

    def known_subclasses(self, declared_type: object) -> tuple[type, ...]:
        """Registered entity classes assignable to *declared_type*, most-specific-first."""
        try:
            return self._subclass_table[declared_type]
        except KeyError:
            found = overlapping(declared_type, self._entity_classes)
            self._subclass_table[declared_type] = found
            return found
        except TypeError:
            # Unhashable type expression.
            return overlapping(declared_type, self._entity_classes)

    def overlaps_entity(self, declared_type: object) -> bool:
        return bool(self.known_subclasses(declared_type))

    # --- Members ---

    def descriptor_for(self, cls: type) -> ClassDescriptor:
        try:
            return self._descriptors[cls]
        except KeyError:
            msg = f"Class {qualified_name(cls)} is not registered"
            raise KeyError(msg) from None

    def shallow_members(self, cls: type) -> tuple[MemberDescriptor, ...]:
        return self.descriptor_for(cls).shallow_members

    def deep_members(self, cls: type) -> tuple[MemberDescriptor, ...]:
        return self.descriptor_for(cls).deep_members

    # --- Runtime resolution ---

    def is_registered(self, cls: type) -> bool:
        return cls in self._descriptors

    def is_solution_instance(self, value: object) -> bool:
        return isinstance(value, self._solution_classes)

    def resolve_solution(self, value: object) -> ClassDescriptor:
        """Descriptor for the exact runtime class of a solution value."""
        descriptor = self._descriptors.get(type(value))
        if descriptor is None or descriptor.role is not DomainRole.SOLUTION:
            raise UnknownRootSubclassError(type(value), self._solution_classes)
        return descriptor

    def resolve_entity(self, value: object) -> ClassDescriptor:
        """Descriptor for the exact runtime class of an entity value."""
        descriptor = self._descriptors.get(type(value))
        if descriptor is None or descriptor.role is not DomainRole.ENTITY:
            raise UnknownEntitySubclassError(type(value), self._entity_classes)
        return descriptor

    def __repr__(self) -> str:
        solutions = [c.__qualname__ for c in self._solution_classes]
        entities = [c.__qualname__ for c in self._entity_classes]
        return f"DomainRegistry(solutions={solutions}, entities={entities})"


@functools.lru_cache(maxsize=None)
def _cached_registry(
    solution_classes: tuple[type, ...],
    entity_classes: tuple[type, ...],
) -> DomainRegistry:
    return DomainRegistry(solution_classes, entity_classes)


def get_registry(
    solution_classes: Iterable[type],
    entity_classes: Iterable[type] = (),
) -> DomainRegistry:
    """Process-wide registry for a domain model, built on first request."""
    return _cached_registry(
        specificity_order(solution_classes),
        specificity_order(entity_classes),
    )
