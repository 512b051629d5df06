"""GraphCloner — per-value dispatch over the solution graph.

Dispatch order for ``clone_value(value, declared_type, session)``:

1. ``None`` stays ``None``.
2. A memo hit returns the existing clone (shared references and cycles).
3. Instances of a registered solution class take the solution path.
4. Arrays (tuples, ``array.array``, ``bytearray``).
5. Collections.
6. Mappings.
7. Instances of a registered entity class assignable to the declared type
   take the entity path.
8. Everything else is a leaf and is shared.

Solution and entity paths resolve the *exact* runtime class. An instance of
an unregistered subclass is a fatal input error, never coerced to its
registered parent.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from typing import Any

from planclone.domain.errors import UndeclaredAttributeError
from planclone.domain.registry import ClassDescriptor, DomainRegistry
from planclone.services.containers import ContainerCloner, is_array, is_collection
from planclone.services.session import CloneSession


class GraphCloner:
    """Clones values of one domain model; stateless between sessions."""

    def __init__(self, registry: DomainRegistry, *, strict_attributes: bool = True) -> None:
        self._registry = registry
        self._strict_attributes = strict_attributes
        self._containers = ContainerCloner(registry, self.clone_value)

    @property
    def registry(self) -> DomainRegistry:
        return self._registry

    def clone_value(self, value: Any, declared_type: object, session: CloneSession) -> Any:
        """Return the clone of *value*, scheduling any member population on *session*."""
        if value is None:
            return None
        existing = session.lookup(value)
        if existing is not None:
            return existing

        registry = self._registry
        if registry.is_solution_instance(value):
            return self._clone_planning_object(value, registry.resolve_solution(value), session)

        # Registered classes never take a container path, even if they quack like one.
        if not registry.is_registered(type(value)):
            if is_array(value):
                return self._containers.clone_array(value, declared_type, session)
            if is_collection(value):
                return self._containers.clone_collection(value, declared_type, session)
            if isinstance(value, Mapping):
                return self._containers.clone_map(value, declared_type, session)

        candidates = registry.known_subclasses(declared_type)
        if candidates and isinstance(value, candidates):
            return self._clone_planning_object(value, registry.resolve_entity(value), session)
        return value

    def clone_entity_or_share(
        self, value: Any, declared_type: object, session: CloneSession
    ) -> Any:
        """Entity-only path used by shallow members that overlap an entity type.

        Entities are cloned (once per session); any other value, containers
        included, is shared by reference.
        """
        if value is None:
            return None
        candidates = self._registry.known_subclasses(declared_type)
        if not isinstance(value, candidates):
            return value
        existing = session.lookup(value)
        if existing is not None:
            return existing
        return self._clone_planning_object(value, self._registry.resolve_entity(value), session)

    def _clone_planning_object(
        self, original: Any, descriptor: ClassDescriptor, session: CloneSession
    ) -> Any:
        clone = descriptor.cls()
        session.register(original, clone)
        session.schedule(self._populate, original, clone, descriptor, session)
        return clone

    def _populate(
        self,
        original: Any,
        clone: Any,
        descriptor: ClassDescriptor,
        session: CloneSession,
    ) -> None:
        if self._strict_attributes:
            _check_declared(original, descriptor)

        for member in descriptor.shallow_members:
            value = member.read(original)
            if member.entity_redirect:
                value = self.clone_entity_or_share(value, member.declared_type, session)
            member.write(clone, value)

        for member in descriptor.deep_members:
            value = self.clone_value(member.read(original), member.declared_type, session)
            member.write(clone, value)


@functools.cache
def _cached_property_names(cls: type) -> frozenset[str]:
    return frozenset(
        name
        for klass in cls.__mro__
        for name, attr in vars(klass).items()
        if isinstance(attr, functools.cached_property)
    )


def _check_declared(original: Any, descriptor: ClassDescriptor) -> None:
    """Reject instances carrying attributes no member descriptor will copy.

    Underscore-prefixed attributes of a class with setter-property members
    are taken as property storage: the setter fills them in the clone.
    """
    attributes = getattr(original, "__dict__", None)
    if not attributes:
        return
    known = descriptor.member_names | _cached_property_names(descriptor.cls)
    storage_exempt = descriptor.has_property_members
    undeclared = [
        name
        for name in attributes
        if name not in known and not (storage_exempt and name.startswith("_"))
    ]
    if undeclared:
        raise UndeclaredAttributeError(descriptor.cls, undeclared)
