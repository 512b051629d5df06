"""Exception hierarchy for solution cloning.

Two families:
- Input errors (``UnknownSubclassError``): a runtime class at a solution or
  entity position is outside the registered closed set. Raised mid-clone.
- Configuration defects (``DomainConfigurationError``): the domain model
  cannot be cloned as declared. Raised while building the registry, as early
  as possible.

INVARIANT: every failure aborts the whole clone. No partial result is ever
returned to the caller.
"""

from __future__ import annotations

from collections.abc import Sequence


def qualified_name(cls: type) -> str:
    """``module.QualName`` for *cls*, used in messages and ordering."""
    return f"{cls.__module__}.{cls.__qualname__}"


class CloningError(Exception):
    """Base class for every error raised by planclone."""


class UnknownSubclassError(CloningError, TypeError):
    """A solution/entity value whose exact class was never registered."""

    family = "planning"

    def __init__(self, encountered: type, known: Sequence[type]) -> None:
        self.encountered = encountered
        self.known = tuple(known)
        listed = ", ".join(qualified_name(k) for k in self.known)
        msg = (
            f"Failed to create clone: encountered ({qualified_name(encountered)}) "
            f"which is not a known {self.family} subclass. "
            f"The known subclasses are [{listed}]. "
            f"Register the class or use one of the registered classes instead."
        )
        super().__init__(msg)


class UnknownRootSubclassError(UnknownSubclassError):
    """Raised when a solution's runtime class is not a registered solution class."""

    family = "solution"


class UnknownEntitySubclassError(UnknownSubclassError):
    """Raised when an entity's runtime class is not a registered entity class."""

    family = "entity"


class DomainConfigurationError(CloningError):
    """The registered domain model cannot be cloned as declared."""


class MissingWriteAccessorError(DomainConfigurationError):
    """A member that must be written into the clone has no write accessor."""

    def __init__(self, member_name: str, declaring_class: type) -> None:
        self.member_name = member_name
        self.declaring_class = declaring_class
        msg = (
            f"The member ({member_name}) of class ({qualified_name(declaring_class)}) "
            f"does not have a write accessor. Add a setter or make the class mutable."
        )
        super().__init__(msg)


class UnresolvableElementTypeError(DomainConfigurationError):
    """A container's element, key or value type cannot be read from its declaration."""

    def __init__(self, declared_type: object, detail: str = "") -> None:
        self.declared_type = declared_type
        msg = f"Cannot infer element type for container type ({declared_type!r})."
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg)


class MissingDefaultConstructorError(DomainConfigurationError):
    """A registered class cannot be instantiated without arguments."""

    def __init__(self, cls: type, missing: Sequence[str]) -> None:
        self.cls = cls
        self.missing = tuple(missing)
        msg = (
            f"Class ({qualified_name(cls)}) cannot be cloned: its constructor requires "
            f"arguments {list(self.missing)}. Give every parameter a default."
        )
        super().__init__(msg)


class UndeclaredAttributeError(DomainConfigurationError):
    """An instance carries attributes that no member descriptor covers."""

    def __init__(self, cls: type, attributes: Sequence[str]) -> None:
        self.cls = cls
        self.attributes = tuple(attributes)
        msg = (
            f"Instance of ({qualified_name(cls)}) has undeclared attributes "
            f"{sorted(self.attributes)} which would not be cloned. "
            f"Annotate them on the class or disable strict_attributes."
        )
        super().__init__(msg)
