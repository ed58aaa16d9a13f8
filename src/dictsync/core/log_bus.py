"""LogBus for mirroring log records to in-process listeners.

Every line the core logger emits is also published here so that a UI layer
can show the diagnostic log without touching stdout.
Subscriber exceptions never reach the publisher.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable, Iterator
from dataclasses import dataclass

LogCallback = Callable[["LogRecord"], None]


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


class LogBus:
    def __init__(self) -> None:
        self._by_level: dict[str, list[LogCallback]] = {}
        self._any_level: list[LogCallback] = []

    def subscribe(self, level_name: str, cb: LogCallback) -> None:
        self._by_level.setdefault(level_name, []).append(cb)

    def unsubscribe(self, level_name: str, cb: LogCallback) -> None:
        subs = self._by_level.get(level_name, [])
        if cb in subs:
            subs.remove(cb)
        if not subs:
            self._by_level.pop(level_name, None)

    def subscribe_all(self, cb: LogCallback) -> None:
        self._any_level.append(cb)

    def unsubscribe_all(self, cb: LogCallback) -> None:
        if cb in self._any_level:
            self._any_level.remove(cb)

    def publish(self, record: LogRecord) -> None:
        targets = [*self._any_level, *self._by_level.get(record.level_name, [])]
        for cb in targets:
            try:
                cb(record)
            except Exception:
                # Writing through the core logger here would recurse.
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    @contextlib.contextmanager
    def capture(self, level_name: str | None = None) -> Iterator[list[LogRecord]]:
        """Collect records published while the block runs.

        Args:
            level_name: Only collect this level (all levels when None)
        """
        records: list[LogRecord] = []
        if level_name is None:
            self.subscribe_all(records.append)
        else:
            self.subscribe(level_name, records.append)
        try:
            yield records
        finally:
            if level_name is None:
                self.unsubscribe_all(records.append)
            else:
                self.unsubscribe(level_name, records.append)


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
