"""Event bus for decoupled notifications.

The import core publishes store updates, panel state changes and diagnostics
here; UI layers and sinks subscribe without the core knowing about them.
"""

from __future__ import annotations

import traceback
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from dictsync.core.logging import get_logger

_logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], None]
AnyEventHandler = Callable[[str, dict[str, Any]], None]

# Event names published by the core.
DATABASE_UPDATED = "database_updated"
PANEL_CHANGED = "import_panel.changed"
EXIT_PREVENTION_CHANGED = "exit_prevention.changed"


class EventBus:
    """Simple event bus.

    Example:
        bus = EventBus()

        def on_updated(data):
            print(data["kind"], data["reason"])

        bus.subscribe(DATABASE_UPDATED, on_updated)
        bus.publish(DATABASE_UPDATED, {"kind": "dictionary", "reason": "import"})
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._all_subscribers: list[AnyEventHandler] = []

    def subscribe(self, event: str, callback: EventHandler) -> None:
        """Subscribe to an event.

        Args:
            event: Event name
            callback: Callback function (receives event data dict)
        """
        self._subscribers[event].append(callback)

    def subscribe_all(self, callback: AnyEventHandler) -> None:
        """Subscribe to every published event.

        Args:
            callback: Callback function (receives event name and event data dict)
        """
        self._all_subscribers.append(callback)

    def publish(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Publish an event. Handler failures are logged, not raised.

        Args:
            event: Event name
            data: Event data (optional)
        """
        data = data or {}

        for cb_event in list(self._subscribers.get(event, [])):
            try:
                cb_event(data)
            except Exception as e:
                _logger.error(
                    f"Error in event handler for '{event}' (callback={cb_event}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )

        for cb_all in list(self._all_subscribers):
            try:
                cb_all(event, data)
            except Exception as e:
                _logger.error(
                    f"Error in all-event handler (event='{event}', callback={cb_all}): "
                    f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
                )


_global_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get global event bus instance."""
    global _global_bus
    if _global_bus is None:
        _global_bus = EventBus()
    return _global_bus


class EventBusNotifier:
    """Update notifier that announces store changes on an event bus."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus

    def trigger_database_updated(self, kind: str, reason: str) -> None:
        bus = self._bus if self._bus is not None else get_event_bus()
        bus.publish(DATABASE_UPDATED, {"kind": kind, "reason": reason})
