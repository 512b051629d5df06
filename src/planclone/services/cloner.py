"""SolutionCloner — the public entry point.

``clone(solution)`` opens a fresh :class:`CloneSession`, clones the solution
through the :class:`GraphCloner`, drains the session's work stack, then runs
the deferred hashed insertions. Sessions are never shared, so concurrent
``clone`` calls on one cloner need no locking.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from typing import TypeVar

from planclone.config.settings import ClonerSettings
from planclone.domain.registry import DomainRegistry, get_registry
from planclone.services.graph import GraphCloner
from planclone.services.session import CloneSession
from planclone.services.telemetry import (
    get_current_span,
    telemetry_enabled,
    telemetry_scope,
    trace_span,
    traced,
)

logger = logging.getLogger(__name__)

SolutionT = TypeVar("SolutionT")


def _configured_telemetry(
    method: Callable[[SolutionCloner, SolutionT], SolutionT],
) -> Callable[[SolutionCloner, SolutionT], SolutionT]:
    """Scope telemetry to one call when the cloner's settings turn it on."""

    @functools.wraps(method)
    def wrapper(self: SolutionCloner, solution: SolutionT) -> SolutionT:
        if not self._settings.telemetry.enabled or telemetry_enabled():
            return method(self, solution)
        with telemetry_scope():
            return method(self, solution)

    return wrapper


class SolutionCloner:
    """Deep-clones solutions of one registered domain model.

    Usage::

        cloner = SolutionCloner(DomainRegistry([Schedule], [Shift]))
        working = cloner.clone(best)
    """

    def __init__(self, registry: DomainRegistry, settings: ClonerSettings | None = None) -> None:
        self._registry = registry
        self._settings = settings if settings is not None else ClonerSettings.load()
        self._graph = GraphCloner(
            registry,
            strict_attributes=self._settings.cloner.strict_attributes,
        )

    @classmethod
    def for_domain(
        cls,
        solution_classes: Iterable[type],
        entity_classes: Iterable[type] = (),
        settings: ClonerSettings | None = None,
    ) -> SolutionCloner:
        """Cloner backed by the process-wide registry of this domain model."""
        return cls(get_registry(solution_classes, entity_classes), settings)

    @property
    def registry(self) -> DomainRegistry:
        return self._registry

    @property
    def settings(self) -> ClonerSettings:
        return self._settings

    @_configured_telemetry
    @traced
    def clone(self, solution: SolutionT) -> SolutionT:
        """Return a fully independent deep clone of *solution*.

        With ``telemetry.enabled`` set, every call is traced in whichever
        thread or task runs it.

        Raises:
            UnknownRootSubclassError: *solution* is not an instance of a
                registered solution class.
            UnknownEntitySubclassError: an entity of an unregistered class
                was reached.
            UndeclaredAttributeError: an instance carries attributes that
                would not be copied (``strict_attributes`` only).
        """
        if solution is None:
            return solution
        descriptor = self._registry.resolve_solution(solution)
        session = CloneSession()

        with trace_span("populate"):
            clone = self._graph.clone_value(solution, descriptor.cls, session)
            session.drain_stack()
        with trace_span("deferred"):
            session.drain_deferred()

        span = get_current_span()
        if span is not None:
            span.annotate("solution", descriptor.cls.__qualname__)
            span.annotate("cloned", session.cloned_count)
        logger.debug(
            "Cloned %s: %d objects", descriptor.cls.__qualname__, session.cloned_count
        )
        return clone


def clone_solution(
    solution: SolutionT,
    registry: DomainRegistry,
    settings: ClonerSettings | None = None,
) -> SolutionT:
    """One-off clone; prefer a long-lived :class:`SolutionCloner` in search loops."""
    return SolutionCloner(registry, settings).clone(solution)
