"""CloneSession — per-invocation identity memo and work stack.

One session per top-level clone. It owns:

- the memo ``id(original) -> (original, clone)``. The original is held so
  its id cannot be recycled while the session is alive;
- the LIFO work stack of member-population tasks. Traversal never recurses
  natively per graph level, so chain-shaped models of any depth clone;
- the deferred queue of hashed insertions (set elements, cloned mapping keys,
  sorted containers) that run once every shell is populated.

INVARIANT: ``register`` is called exactly once per original, before any of
its members are cloned. A session is never driven from two threads.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from typing import Any

Task = Callable[..., None]


class CloneSession:
    """Mutable state of one clone call tree."""

    def __init__(self) -> None:
        self._memo: dict[int, tuple[Any, Any]] = {}
        self._stack: list[tuple[Task, tuple[Any, ...]]] = []
        self._deferred: deque[tuple[Task, tuple[Any, ...]]] = deque()
        self._owner = threading.get_ident()

    def _check_thread(self) -> None:
        if threading.get_ident() != self._owner:
            msg = "CloneSession is bound to the thread that created it"
            raise RuntimeError(msg)

    # --- Memo ---

    def lookup(self, original: Any) -> Any | None:
        """Clone already made for *original* in this session, if any."""
        hit = self._memo.get(id(original))
        if hit is None:
            return None
        return hit[1]

    def register(self, original: Any, clone: Any) -> None:
        """Record *clone* as the one clone of *original*."""
        self._check_thread()
        key = id(original)
        if key in self._memo:
            msg = f"{type(original).__qualname__} at {key:#x} was already registered"
            raise RuntimeError(msg)
        self._memo[key] = (original, clone)

    @property
    def cloned_count(self) -> int:
        return len(self._memo)

    # --- Work ---

    def schedule(self, task: Task, *args: Any) -> None:
        """Push a population task onto the work stack."""
        self._stack.append((task, args))

    def defer(self, task: Task, *args: Any) -> None:
        """Queue a hashed insertion for after the work stack is empty."""
        self._deferred.append((task, args))

    @property
    def pending(self) -> int:
        return len(self._stack) + len(self._deferred)

    def drain_stack(self) -> None:
        """Run population tasks until the stack is empty."""
        self._check_thread()
        stack = self._stack
        while stack:
            task, args = stack.pop()
            task(*args)

    def drain_deferred(self) -> None:
        """Run deferred insertions in the order they were queued."""
        self._check_thread()
        deferred = self._deferred
        while deferred:
            task, args = deferred.popleft()
            task(*args)

    def drain(self) -> None:
        self.drain_stack()
        self.drain_deferred()
