"""Structural reading of declared member types.

Declared types come from ``typing.get_type_hints(include_extras=True)`` and
may be any of:

- plain classes (``Shift``), ``Any``/``object``/type variables ("open"),
- ``Annotated[T, ...]`` carrying markers such as ``DeepClone``,
- unions and ``Optional`` (``None`` arms are ignored),
- parameterized containers (``list[Shift]``, ``dict[str, Shift]``,
  ``tuple[Shift, ...]``, ``Mapping[Shift, int]``) and named tuples.

INVARIANT: an unparameterized container is never guessed at. Asking for its
element type raises :class:`UnresolvableElementTypeError`.
"""

from __future__ import annotations

import array
import types
import typing
from collections.abc import Collection, Iterator, Mapping, Sequence
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

from planclone.domain.errors import UnresolvableElementTypeError
from planclone.domain.types import DeepClone

_NONE_TYPE = type(None)

# Collections holding only primitives; their declarations never carry type arguments.
_PRIMITIVE_ARRAYS: tuple[type, ...] = (array.array, bytearray, memoryview)
_TEXT_TYPES: tuple[type, ...] = (str, bytes)


def strip_annotated(tp: object) -> tuple[object, tuple[object, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``."""
    if get_origin(tp) is Annotated:
        base, *meta = get_args(tp)
        return base, tuple(meta)
    return tp, ()


def union_arms(tp: object) -> tuple[object, ...]:
    """Non-``None`` arms of a union, each with ``Annotated`` stripped."""
    base, _ = strip_annotated(tp)
    origin = get_origin(base)
    if origin is Union or origin is types.UnionType:
        return tuple(
            strip_annotated(arm)[0] for arm in get_args(base) if arm is not _NONE_TYPE
        )
    return (base,)


def is_deep_marked(tp: object) -> bool:
    """Whether *tp* (or one of its union arms) carries the ``DeepClone`` marker."""
    _, meta = strip_annotated(tp)
    if any(m is DeepClone for m in meta):
        return True
    base, _ = strip_annotated(tp)
    origin = get_origin(base)
    if origin is Union or origin is types.UnionType:
        return any(is_deep_marked(arm) for arm in get_args(base))
    return False


def is_open(tp: object) -> bool:
    """``Any``, ``object`` and unbound type variables accept every class."""
    return tp is Any or tp is object or isinstance(tp, TypeVar)


def raw_class(tp: object) -> type | None:
    """Runtime class behind a type expression, or None if there is none."""
    base, _ = strip_annotated(tp)
    supertype = getattr(base, "__supertype__", None)
    if supertype is not None:
        return raw_class(supertype)
    origin = get_origin(base)
    if isinstance(origin, type):
        return origin
    if isinstance(base, type):
        return base
    return None


def overlapping(declared: object, candidates: Sequence[type]) -> tuple[type, ...]:
    """Candidates assignable to *declared*, in candidate order."""
    found: list[type] = []
    for arm in union_arms(declared):
        if is_open(arm):
            return tuple(candidates)
        cls = raw_class(arm)
        if cls is None:
            continue
        for candidate in candidates:
            if candidate in found:
                continue
            try:
                assignable = issubclass(candidate, cls)
            except TypeError:
                # Non runtime-checkable protocols cannot be tested structurally.
                assignable = False
            if assignable:
                found.append(candidate)
    return tuple(c for c in candidates if c in found)


def _is_named_tuple(cls: type) -> bool:
    return issubclass(cls, tuple) and hasattr(cls, "_fields")


def is_container_class(cls: type) -> bool:
    """Containers whose elements the cloner walks (text and primitive arrays excluded)."""
    if issubclass(cls, _TEXT_TYPES) or issubclass(cls, _PRIMITIVE_ARRAYS):
        return False
    return issubclass(cls, Collection) or issubclass(cls, Mapping)


def _nested_arguments(arm: object) -> Iterator[object]:
    """Type arguments of a container arm, named tuple field types included."""
    cls = raw_class(arm)
    if cls is not None and _is_named_tuple(cls) and not get_args(arm):
        yield from typing.get_type_hints(cls, include_extras=True).values()
        return
    for arg in get_args(arm):
        if arg is Ellipsis:
            continue
        if isinstance(arg, (list, tuple)):
            # Callable[[A, B], R] style argument lists.
            yield from arg
        else:
            yield arg


def container_mentions(declared: object, candidates: Sequence[type]) -> bool:
    """Whether a container arm of *declared* can hold one of *candidates*.

    Walks type arguments recursively, so ``dict[str, list[Shift]]`` mentions
    ``Shift``. A non-container declaration never mentions anything.
    """
    for arm in union_arms(declared):
        cls = raw_class(arm)
        if cls is None or not is_container_class(cls):
            continue
        for arg in _nested_arguments(arm):
            if overlapping(arg, candidates) or container_mentions(arg, candidates):
                return True
    return False


def check_resolvable(declared: object) -> None:
    """Raise if any container inside *declared* is unparameterized."""
    for arm in union_arms(declared):
        if is_open(arm):
            continue
        cls = raw_class(arm)
        if cls is None or not is_container_class(cls):
            continue
        if (_is_named_tuple(cls) and not get_args(arm)) or arm == tuple[()]:
            continue
        if not get_args(arm):
            raise UnresolvableElementTypeError(
                declared, "Parameterize it, e.g. list[Shift] or dict[str, Shift]."
            )
        for arg in _nested_arguments(arm):
            check_resolvable(arg)


def _matching_arm(
    declared: object,
    runtime_cls: type,
    family: type,
    exclude: tuple[type, ...] = (),
) -> object | None:
    """Pick the declared arm that describes a runtime container.

    Returns ``Any`` for an open declaration, None when no arm is a container
    of *family*.
    """
    fallback: object | None = None
    for arm in union_arms(declared):
        if is_open(arm):
            if fallback is None:
                fallback = Any
            continue
        cls = raw_class(arm)
        if cls is None or not issubclass(cls, family) or issubclass(cls, exclude):
            continue
        if issubclass(runtime_cls, cls):
            return arm
        if fallback is None or fallback is Any:
            fallback = arm
    return fallback


def element_type(declared: object, runtime_cls: type) -> object:
    """Declared element type for a runtime collection of *runtime_cls*."""
    arm = _matching_arm(declared, runtime_cls, Collection, exclude=(Mapping, *_TEXT_TYPES))
    if arm is None:
        raise UnresolvableElementTypeError(declared, "The declared type is not a collection.")
    if arm is Any:
        return Any
    args = get_args(arm)
    if not args:
        raise UnresolvableElementTypeError(declared)
    return args[0]


def mapping_types(declared: object, runtime_cls: type) -> tuple[object, object]:
    """Declared ``(key, value)`` types for a runtime mapping."""
    arm = _matching_arm(declared, runtime_cls, Mapping)
    if arm is None:
        raise UnresolvableElementTypeError(declared, "The declared type is not a mapping.")
    if arm is Any:
        return Any, Any
    args = get_args(arm)
    if len(args) == 2:
        return args[0], args[1]
    if len(args) == 1:
        # Counter[K]
        return args[0], int
    raise UnresolvableElementTypeError(declared)


def component_types(declared: object, runtime_cls: type, length: int) -> list[object]:
    """Declared type of each position of a runtime tuple of *length* items."""
    arm = _matching_arm(declared, runtime_cls, Collection, exclude=(Mapping, *_TEXT_TYPES))
    if arm is None:
        if _is_named_tuple(runtime_cls):
            arm = runtime_cls
        else:
            raise UnresolvableElementTypeError(declared, "The declared type is not a sequence.")
    if arm is Any:
        return [Any] * length
    cls = raw_class(arm)
    args = get_args(arm)
    if cls is not None and _is_named_tuple(cls) and not args:
        hints = typing.get_type_hints(cls, include_extras=True)
        return [hints.get(name, Any) for name in cls._fields]
    if cls is not None and issubclass(cls, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return [args[0]] * length
        if arm == tuple[()]:
            return []
        if not args:
            raise UnresolvableElementTypeError(declared)
        if len(args) != length:
            raise UnresolvableElementTypeError(
                declared, f"Declared {len(args)} positions but the value has {length}."
            )
        return list(args)
    if not args:
        raise UnresolvableElementTypeError(declared)
    return [args[0]] * length
