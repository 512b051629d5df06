"""Clone telemetry — phase spans for ``SolutionCloner.clone``.

Off by default and near-free while off: every entry point checks one
ContextVar. When enabled, each traced call becomes a root :class:`Span`
whose children are the clone phases (``populate``, ``deferred``). The
finished root is emitted as a structlog event (``clone.complete`` or
``clone.failed``) and remembered as the context's last span.

INVARIANT: state lives in ContextVars only, so concurrent clones in
different threads or tasks never see each other's spans.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

log = structlog.get_logger("planclone.telemetry")

_enabled: ContextVar[bool] = ContextVar("planclone_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("planclone_current_span", default=None)
_last_span: ContextVar[Span | None] = ContextVar("planclone_last_span", default=None)


@dataclass
class Span:
    """Timed phase of a clone, with free-form annotations."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    @property
    def ok(self) -> bool:
        return self.error is None

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def phases(self) -> dict[str, float]:
        """Child name -> duration in ms, rounded for logging."""
        return {c.name: round(c.duration_ms, 2) for c in self.children}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.error is not None:
            result["error"] = self.error
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


@contextmanager
def trace_span(name: str) -> Iterator[Span | None]:
    """Open a phase span under the active root.

    Yields None when telemetry is off or no traced call is running, so
    callers can write ``with trace_span("x"):`` unconditionally.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    span = parent.child(name)
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


def _emit(span: Span) -> None:
    log.debug(
        "clone.complete" if span.ok else "clone.failed",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=span.ok,
        phases=span.phases(),
        **({"error": span.error} if span.error else {}),
        **span.annotations,
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run *func* as a root span when telemetry is on; plain call otherwise."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _current_span.set(span)
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            span.error = type(exc).__name__
            raise
        finally:
            span.end()
            _current_span.reset(token)
            _last_span.set(span)
            _emit(span)

    return wrapper


def enable_telemetry() -> None:
    """Turn telemetry on for the current context."""
    _enabled.set(True)


@contextmanager
def telemetry_scope() -> Iterator[None]:
    """Telemetry on inside the block; the previous state is restored on exit."""
    token = _enabled.set(True)
    try:
        yield
    finally:
        _enabled.reset(token)


def disable_telemetry() -> None:
    _enabled.set(False)


def telemetry_enabled() -> bool:
    return _enabled.get()


def get_current_span() -> Span | None:
    """Innermost open span, for annotation from inside a traced call."""
    if not _enabled.get():
        return None
    return _current_span.get()


def get_last_span() -> Span | None:
    """Root span of the most recent traced call in this context."""
    return _last_span.get()
