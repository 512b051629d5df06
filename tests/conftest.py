"""Shared pytest fixtures and the test domain model for planclone tests.

The domain mirrors a small scheduling problem:

- ``Schedule`` is the solution: a name, a deep-cloned value list and the
  planning entities.
- ``Shift`` / ``NightShift`` are registered entities; ``extra`` points at
  another shift through a shallow, entity-redirected member.
- ``Worker`` is a problem fact and is always shared.
- ``ExtendedSchedule`` / ``OvertimeShift`` are unregistered subclasses.

Domain classes live at module level so their annotations resolve.
"""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Annotated

import pytest

from planclone.config.settings import ClonerSettings
from planclone.domain.registry import DomainRegistry
from planclone.domain.types import DeepClone
from planclone.services.cloner import SolutionCloner
from planclone.services.telemetry import _current_span, _last_span, disable_telemetry

# ---------------------------------------------------------------------------
# Test domain model
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Worker:
    """Problem fact."""

    code: str = ""


@dataclass(eq=False)
class Shift:
    code: str = ""
    worker: Worker | None = None
    extra: Shift | None = None


@dataclass(eq=False)
class NightShift(Shift):
    premium: int = 0


@dataclass(eq=False)
class OvertimeShift(Shift):
    """Never registered."""

    hours: int = 0


@dataclass(eq=False)
class Schedule:
    name: str = ""
    values: Annotated[list[Worker], DeepClone] = field(default_factory=list)
    shifts: list[Shift] = field(default_factory=list)
    score: int | None = None


@dataclass(eq=False)
class ExtendedSchedule(Schedule):
    """Never registered."""

    extra_object: str = ""


@dataclass(eq=False)
class Link:
    index: int = 0
    successor: Link | None = None


@dataclass(eq=False)
class Chain:
    head: Link | None = None


SCHEDULE_ENTITIES: tuple[type, ...] = (Shift, NightShift)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Telemetry context leaks across tests in one thread; reset it."""
    yield
    disable_telemetry()
    _current_span.set(None)
    _last_span.set(None)


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> ClonerSettings:
    """Code-default settings, isolated from the environment."""
    monkeypatch.delenv("PLANCLONE_CONFIG", raising=False)
    return ClonerSettings()


@pytest.fixture
def registry() -> DomainRegistry:
    return DomainRegistry([Schedule], SCHEDULE_ENTITIES)


@pytest.fixture
def cloner(registry: DomainRegistry, settings: ClonerSettings) -> SolutionCloner:
    return SolutionCloner(registry, settings)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def make_schedule() -> Schedule:
    """Two shifts over three workers; ``b.extra`` points at ``a``."""
    w1, w2, w3 = Worker("w1"), Worker("w2"), Worker("w3")
    a = Shift("a", w1)
    b = NightShift("b", w1, extra=a, premium=5)
    return Schedule(name="week-1", values=[w1, w2, w3], shifts=[a, b], score=-3)


def make_chain(length: int) -> Chain:
    """Singly linked chain built iteratively (no recursion)."""
    head: Link | None = None
    for index in reversed(range(length)):
        head = Link(index, head)
    return Chain(head)


def chain_links(chain: Chain) -> list[Link]:
    links: list[Link] = []
    node = chain.head
    while node is not None:
        links.append(node)
        node = node.successor
    return links
