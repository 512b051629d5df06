"""Structural cloning of collections, mappings and arrays.

Containers keep their category, not necessarily their concrete class:

===============================  ===========================================
Original                         Clone
===============================  ===========================================
``SortedSet`` / ``SortedList``   same class, sharing the original ``key``
``deque``                        ``deque`` with the same ``maxlen``
other sequences / collections    ``list``
``set`` and other sets           ``OrderedSet`` in source iteration order
``frozenset``                    ``frozenset``
``defaultdict``                  ``defaultdict`` sharing ``default_factory``
other mutable mappings           same class if default-constructible, else ``dict``
read-only mappings               ``dict``
``tuple`` / named tuple          same class
``array.array`` / ``bytearray``  copy with the same typecode
===============================  ===========================================

Elements are cloned in source order. Insertions that hash an element (sets,
sorted containers, cloned mapping keys) are deferred until every shell in
the session is populated.
"""

from __future__ import annotations

import array
from collections import defaultdict, deque
from collections.abc import Callable, Collection, Mapping, MutableMapping, Set
from typing import Any

from ordered_set import OrderedSet
from sortedcontainers import SortedList, SortedSet

from planclone.domain.registry import DomainRegistry
from planclone.domain.typehints import component_types, element_type, mapping_types
from planclone.domain.types import ContainerKind
from planclone.services.session import CloneSession

CloneFn = Callable[[Any, object, CloneSession], Any]

ARRAY_TYPES: tuple[type, ...] = (tuple, array.array, bytearray)
_LEAF_SEQUENCES: tuple[type, ...] = (str, bytes, memoryview)
_HASHED_KINDS = frozenset({ContainerKind.SORTED, ContainerKind.SET})


def is_array(value: object) -> bool:
    return isinstance(value, ARRAY_TYPES)


def is_collection(value: object) -> bool:
    """Non-text, non-mapping collections (arrays are tested first)."""
    return isinstance(value, Collection) and not isinstance(value, (*_LEAF_SEQUENCES, Mapping))


def collection_kind(value: Collection[Any]) -> ContainerKind:
    if isinstance(value, (SortedList, SortedSet)):
        return ContainerKind.SORTED
    if isinstance(value, deque):
        return ContainerKind.DEQUE
    if isinstance(value, frozenset):
        return ContainerKind.FROZEN_SET
    if isinstance(value, Set):
        return ContainerKind.SET
    return ContainerKind.LIST


def _allocate_collection(value: Any, kind: ContainerKind) -> Any:
    if kind is ContainerKind.SORTED:
        return type(value)(key=value.key)
    if kind is ContainerKind.DEQUE:
        return deque(maxlen=value.maxlen)
    if kind is ContainerKind.SET:
        # Element clones hash by identity, so a plain set would reorder them.
        return OrderedSet()
    return []


def _allocate_mapping(value: Mapping[Any, Any]) -> MutableMapping[Any, Any]:
    if isinstance(value, defaultdict):
        return defaultdict(value.default_factory)
    if isinstance(value, MutableMapping):
        try:
            return type(value)()
        except TypeError:
            # Needs constructor arguments; keep insertion order at least.
            return {}
    return {}


def _is_named_tuple(value: tuple[Any, ...]) -> bool:
    return hasattr(type(value), "_fields")


class ContainerCloner:
    """Clones containers by delegating every element back to the graph cloner."""

    def __init__(self, registry: DomainRegistry, clone_value: CloneFn) -> None:
        self._registry = registry
        self._clone_value = clone_value

    # --- Arrays ---

    def clone_array(self, value: Any, declared_type: object, session: CloneSession) -> Any:
        """Same length, same order, same component type."""
        clone: Any
        if isinstance(value, array.array):
            clone = array.array(value.typecode, value)
        elif isinstance(value, bytearray):
            clone = bytearray(value)
        else:
            positions = component_types(declared_type, type(value), len(value))
            items = [
                self._clone_value(item, item_type, session)
                for item, item_type in zip(value, positions, strict=True)
            ]
            if type(value) is tuple:
                clone = tuple(items)
            elif _is_named_tuple(value):
                clone = type(value)._make(items)
            else:
                clone = type(value)(items)
        session.register(value, clone)
        return clone

    # --- Collections ---

    def clone_collection(
        self, value: Collection[Any], declared_type: object, session: CloneSession
    ) -> Any:
        kind = collection_kind(value)
        item_type = element_type(declared_type, type(value))
        if kind is ContainerKind.FROZEN_SET:
            clone: Any = frozenset(self._clone_value(item, item_type, session) for item in value)
            session.register(value, clone)
            return clone

        clone = _allocate_collection(value, kind)
        session.register(value, clone)
        session.schedule(self._fill_collection, value, clone, kind, item_type, session)
        return clone

    def _fill_collection(
        self,
        original: Collection[Any],
        clone: Any,
        kind: ContainerKind,
        item_type: object,
        session: CloneSession,
    ) -> None:
        items = [self._clone_value(item, item_type, session) for item in original]
        if kind in _HASHED_KINDS:
            session.defer(clone.update, items)
        else:
            clone.extend(items)

    # --- Mappings ---

    def clone_map(self, value: Mapping[Any, Any], declared_type: object, session: CloneSession) -> Any:
        key_type, value_type = mapping_types(declared_type, type(value))
        clone = _allocate_mapping(value)
        session.register(value, clone)
        session.schedule(self._fill_mapping, value, clone, key_type, value_type, session)
        return clone

    def _fill_mapping(
        self,
        original: Mapping[Any, Any],
        clone: MutableMapping[Any, Any],
        key_type: object,
        value_type: object,
        session: CloneSession,
    ) -> None:
        # Keys are usually immutable identifiers; only entity keys are cloned.
        clone_keys = self._registry.overlaps_entity(key_type)
        pairs: list[tuple[Any, Any]] = []
        for key, item in original.items():
            if clone_keys:
                key = self._clone_value(key, key_type, session)
            pairs.append((key, self._clone_value(item, value_type, session)))
        if clone_keys:
            session.defer(_insert_pairs, clone, pairs)
        else:
            _insert_pairs(clone, pairs)


def _insert_pairs(clone: MutableMapping[Any, Any], pairs: list[tuple[Any, Any]]) -> None:
    for key, item in pairs:
        clone[key] = item
