"""Classification enums for members and containers."""

from __future__ import annotations

from enum import StrEnum


class MemberCategory(StrEnum):
    """How a member's value travels into the clone."""

    SHALLOW = "shallow"
    DEEP = "deep"


class DomainRole(StrEnum):
    """Role of a registered class in the planning domain."""

    SOLUTION = "solution"
    ENTITY = "entity"


class ContainerKind(StrEnum):
    """Structural category of a container value."""

    LIST = "list"
    DEQUE = "deque"
    SORTED = "sorted"
    SET = "set"
    FROZEN_SET = "frozen_set"


class DeepCloneMarker:
    """Marker placed in ``Annotated`` metadata to force deep cloning.

    Usage::

        @dataclass
        class Schedule:
            shifts: Annotated[list[Shift], DeepClone] = field(default_factory=list)
    """

    _instance: DeepCloneMarker | None = None

    def __new__(cls) -> DeepCloneMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DeepClone"


DeepClone = DeepCloneMarker()
