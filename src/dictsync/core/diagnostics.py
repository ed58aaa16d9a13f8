"""Runtime diagnostics envelope + JSONL sink.

The sink is registered once per event bus and self-filters when
`diagnostics.enabled` is false.
"""

from __future__ import annotations

import json
import weakref
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from dictsync.core.config import ConfigError, ConfigResolver
from dictsync.core.events import EventBus, get_event_bus
from dictsync.core.logging import get_logger

_logger = get_logger(__name__)

_ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def emit_diagnostic(
    event: str,
    *,
    component: str,
    operation: str,
    data: dict[str, Any],
    bus: EventBus | None = None,
) -> None:
    """Publish a diagnostics envelope. Must never crash the caller."""
    try:
        envelope = build_envelope(event=event, component=component, operation=operation, data=data)
        (bus if bus is not None else get_event_bus()).publish(event, envelope)
    except Exception as e:
        _logger.warning(f"diagnostic emission failed: {type(e).__name__}: {e}")


def _is_envelope(obj: Any) -> bool:
    if not isinstance(obj, dict) or set(obj.keys()) != _ENVELOPE_KEYS:
        return False
    return isinstance(obj.get("data"), dict)


_SINK_BUSES: weakref.WeakSet[EventBus] = weakref.WeakSet()


def install_jsonl_sink(*, resolver: ConfigResolver, bus: EventBus | None = None) -> None:
    """Install the JSONL diagnostics sink subscriber (once per bus).

    Sink path:
        <diagnostics_dir>/diagnostics.jsonl
    """
    target = bus if bus is not None else get_event_bus()
    if target in _SINK_BUSES:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        try:
            if not resolver.resolve_bool("diagnostics.enabled"):
                return
            out_dir, _src = resolver.resolve("diagnostics_dir")
        except ConfigError as e:
            _logger.warning(f"Diagnostics sink disabled: {e}")
            return

        if _is_envelope(data):
            payload = data
        else:
            payload = build_envelope(
                event=event, component="unknown", operation="unknown", data=data
            )

        out_path = Path(str(out_dir)) / "diagnostics.jsonl"
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(
                payload,
                ensure_ascii=True,
                separators=(",", ":"),
                sort_keys=True,
                default=str,
            )
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except Exception as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    target.subscribe_all(_on_any_event)
    _SINK_BUSES.add(target)
