"""Observable scalar cells used by the kinematic state.

A `Signal` holds one value. An `Effect` records every signal it reads while
running and re-runs when one of them changes. Writes made inside `batch()`
are committed together: each dependent effect runs once when the outermost
batch exits, so observers never see a half-applied update.

Reads inside `untracked()` (or through `untrack`) are one-shot queries and do
not subscribe the running effect.

The scheduler is module-global and single-threaded, matching the one-writer
simulation loop.

An effect that writes a signal it reads is not re-run by that write; the
change is kept but the effect only runs again on the next outside change.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

# Effect collecting dependencies; None marks an untracked scope
_observers: List[Optional["Effect"]] = []
_batch_depth = 0
_pending: Dict["Effect", None] = {}


class Signal:
    """A single observable value."""

    __slots__ = ("_value", "_effects")

    def __init__(self, value: Any) -> None:
        self._value = value
        self._effects: Dict[Effect, None] = {}

    def get(self) -> Any:
        observer = _observers[-1] if _observers else None
        if observer is not None:
            observer._track(self)
        return self._value

    def peek(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        if value == self._value:
            return
        self._value = value
        for effect in list(self._effects):
            _schedule(effect)

    def __repr__(self) -> str:
        return f"Signal({self._value!r})"


class Effect:
    """Runs `fn` now and again whenever a signal it read changes."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn
        self._sources: Dict[Signal, None] = {}
        self._running = False
        self.disposed = False
        self.run()

    def _track(self, signal: Signal) -> None:
        if signal not in self._sources:
            self._sources[signal] = None
            signal._effects[self] = None

    def _clear(self) -> None:
        for signal in self._sources:
            signal._effects.pop(self, None)
        self._sources.clear()

    def run(self) -> None:
        if self.disposed or self._running:
            return
        # Dependencies are re-collected on every run
        self._clear()
        self._running = True
        _observers.append(self)
        try:
            self._fn()
        finally:
            _observers.pop()
            self._running = False

    def dispose(self) -> None:
        self._clear()
        _pending.pop(self, None)
        self.disposed = True


def _schedule(effect: Effect) -> None:
    if _batch_depth:
        _pending[effect] = None
        return
    _pending.pop(effect, None)
    effect.run()


def _flush() -> None:
    while _pending:
        effect = next(iter(_pending))
        del _pending[effect]
        effect.run()


@contextmanager
def batch() -> Iterator[None]:
    """Group writes so dependent effects run once, after the outermost batch."""
    global _batch_depth
    _batch_depth += 1
    try:
        yield
    finally:
        _batch_depth -= 1
        if not _batch_depth:
            _flush()


@contextmanager
def untracked() -> Iterator[None]:
    """Reads inside this block do not subscribe the running effect."""
    _observers.append(None)
    try:
        yield
    finally:
        _observers.pop()


def untrack(fn: Callable[..., Any], *args: Any) -> Any:
    with untracked():
        return fn(*args)


def watch(
    sources: Callable[[], Any],
    callback: Callable[[Any], Any],
    defer: bool = False,
) -> Effect:
    """Track only `sources()` and hand its value to `callback` on change.

    With `defer=True` the callback is skipped for the initial run.
    """
    skip = defer

    def run() -> None:
        nonlocal skip
        values = sources()
        if skip:
            skip = False
            return
        untrack(callback, values)

    return Effect(run)
