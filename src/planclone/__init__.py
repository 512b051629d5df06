"""planclone — identity-preserving deep cloning of planning solutions.

A metaheuristic optimizer mutates planning entities in place and tracks them
by identity. ``planclone`` produces an independent working copy of a
solution (or a snapshot of the best one found so far) in which:

- every object reachable from the solution is cloned at most once, so shared
  references and cycles survive exactly;
- entities, containers and members marked ``DeepClone`` are cloned;
- problem facts and other leaves are shared by reference;
- any class outside the registered closed set fails fast.

Quick start::

    from dataclasses import dataclass, field

    from planclone import DomainRegistry, SolutionCloner

    @dataclass
    class Shift:
        employee: str | None = None

    @dataclass
    class Schedule:
        shifts: list[Shift] = field(default_factory=list)

    cloner = SolutionCloner(DomainRegistry([Schedule], [Shift]))
    working = cloner.clone(best_schedule)
"""

__version__ = "0.1.0"

from planclone.config.logging import configure_logging
from planclone.config.settings import ClonerSettings
from planclone.domain.errors import (
    CloningError,
    DomainConfigurationError,
    MissingDefaultConstructorError,
    MissingWriteAccessorError,
    UndeclaredAttributeError,
    UnknownEntitySubclassError,
    UnknownRootSubclassError,
    UnknownSubclassError,
    UnresolvableElementTypeError,
)
from planclone.domain.members import MemberDescriptor
from planclone.domain.registry import DomainRegistry, get_registry
from planclone.domain.types import DeepClone, MemberCategory
from planclone.services.cloner import SolutionCloner, clone_solution

__all__ = [
    "__version__",
    # Cloning
    "SolutionCloner",
    "clone_solution",
    # Domain model
    "DomainRegistry",
    "get_registry",
    "MemberDescriptor",
    "MemberCategory",
    "DeepClone",
    # Errors
    "CloningError",
    "UnknownSubclassError",
    "UnknownRootSubclassError",
    "UnknownEntitySubclassError",
    "DomainConfigurationError",
    "MissingWriteAccessorError",
    "UnresolvableElementTypeError",
    "MissingDefaultConstructorError",
    "UndeclaredAttributeError",
    # Configuration
    "ClonerSettings",
    "configure_logging",
]
