"""Scoped acquisition of exclusive resources.

- SingleFlightGuard: non-blocking mutex; a second caller is turned away.
- ExitPreventionHost: asks the host to block unload while a token is held.
- open_store(): prepare a store and close it on every exit path.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator, Callable, Iterator
from dataclasses import dataclass, field

from dictsync.core.events import EXIT_PREVENTION_CHANGED, EventBus, get_event_bus
from dictsync.core.interfaces import IDictionaryStore
from dictsync.core.logging import get_logger

_logger = get_logger(__name__)


@dataclass
class SingleFlightGuard:
    """At most one holder at a time; no queueing."""

    _held: bool = False

    @property
    def busy(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False


@dataclass
class ExitPreventionToken:
    _host: ExitPreventionHost
    _released: bool = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._host._on_release()


@dataclass
class ExitPreventionHost:
    """Tracks outstanding exit-prevention tokens.

    `exit_prevention.changed` is published when the first token is acquired
    and when the last one is released.
    """

    bus: EventBus | None = None
    _active: int = field(default=0, init=False)

    @property
    def prevented(self) -> bool:
        return self._active > 0

    def acquire(self) -> ExitPreventionToken:
        self._active += 1
        if self._active == 1:
            self._publish()
        return ExitPreventionToken(self)

    def _on_release(self) -> None:
        self._active -= 1
        if self._active == 0:
            self._publish()

    def _publish(self) -> None:
        bus = self.bus if self.bus is not None else get_event_bus()
        bus.publish(EXIT_PREVENTION_CHANGED, {"prevented": self.prevented})


@contextlib.contextmanager
def prevent_exit(host: ExitPreventionHost) -> Iterator[ExitPreventionToken]:
    token = host.acquire()
    try:
        yield token
    finally:
        token.release()


def close_quietly(store: IDictionaryStore) -> None:
    """Close a store; failures are logged, never raised."""
    try:
        store.close()
    except Exception as e:
        _logger.warning(f"store close failed: {type(e).__name__}: {e}")


@contextlib.asynccontextmanager
async def open_store(factory: Callable[[], IDictionaryStore]) -> AsyncIterator[IDictionaryStore]:
    """Create and prepare a store, closing it when the block exits.

    A failing prepare() propagates and no handle is yielded.
    """
    store = factory()
    await store.prepare()
    try:
        yield store
    finally:
        close_quietly(store)
