"""Import/purge orchestration.

The orchestrator is the only writer of the busy flag. Purge and import are
single-flight: while one of them runs, a second request of either kind is
ignored (not queued, not an error).

Every operation follows the same shape:
- acquire the single-flight guard (or return immediately)
- hold an exit-prevention token, clear old errors, show the spinner
- run the body; any exception becomes a one-item error list for the panel
- always: release the token, hide indicators, refresh stats, clear busy

This module is UI-agnostic: panel state is published on the event bus.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from dictsync.core.config import ConfigResolver
from dictsync.core.diagnostics import emit_diagnostic, install_jsonl_sink
from dictsync.core.error_display import ErrorNormalizer
from dictsync.core.errors import DictionaryImportError
from dictsync.core.events import PANEL_CHANGED, EventBus, EventBusNotifier, get_event_bus
from dictsync.core.interfaces import (
    IDictionaryImporter,
    IDictionaryStore,
    IFileReader,
    IPurgeTransport,
    ISettingsTransport,
    IStatsRefresher,
    IUpdateNotifier,
)
from dictsync.core.lifecycle import ExitPreventionHost, SingleFlightGuard
from dictsync.core.logging import configure_logging, get_logger
from dictsync.core.models import ImportPanelState, ProgressReport
from dictsync.core.pipeline import FileImportPipeline
from dictsync.core.settings_store import YamlSettingsStore
from dictsync.core.settings_sync import SettingsSynchronizer

_LOGGER = get_logger(__name__)

COMPONENT = "orchestration"
OP_PURGE = "purge"
OP_IMPORT = "import"


def _duration_ms(start: float, end: float) -> int:
    return int((end - start) * 1000)


class DictionaryImportOrchestrator:
    """Single-flight controller for dictionary purge and import."""

    def __init__(
        self,
        *,
        settings_transport: ISettingsTransport,
        purge_transport: IPurgeTransport,
        store_factory: Callable[[], IDictionaryStore],
        importer: IDictionaryImporter,
        stats: IStatsRefresher | None = None,
        notifier: IUpdateNotifier | None = None,
        exit_host: ExitPreventionHost | None = None,
        file_reader: IFileReader | None = None,
        normalizer: ErrorNormalizer | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._bus = bus if bus is not None else get_event_bus()
        self._purge_transport = purge_transport
        self._stats = stats
        self._exit_host = exit_host if exit_host is not None else ExitPreventionHost(self._bus)
        self._normalizer = normalizer if normalizer is not None else ErrorNormalizer()
        self._guard = SingleFlightGuard()
        self._panel = ImportPanelState()

        self._settings = SettingsSynchronizer(settings_transport)
        self._pipeline = FileImportPipeline(
            store_factory=store_factory,
            importer=importer,
            settings=self._settings,
            notifier=notifier if notifier is not None else EventBusNotifier(self._bus),
            file_reader=file_reader,
        )

    @property
    def busy(self) -> bool:
        return self._guard.busy

    @property
    def panel(self) -> ImportPanelState:
        return self._panel

    @property
    def exit_host(self) -> ExitPreventionHost:
        return self._exit_host

    async def purge(self) -> None:
        """Delete all dictionaries, then clear dictionary settings on every profile.

        The store purge is not rolled back if the settings cleanup partly fails.
        """

        async def body() -> None:
            await self._purge_transport.purge_database()
            errors = await self._settings.clear_dictionary_settings()
            if errors:
                self._show_errors(errors)

        await self._run_exclusive(
            OP_PURGE,
            body,
            show={"purge_notification_visible": True},
            hide={"purge_notification_visible": False},
            data={},
        )

    async def import_files(self, files: Sequence[Any]) -> None:
        """Import files strictly in order, one store handle per file.

        A file the importer rejects is reported and the batch continues. Any
        other failure ends the batch.
        """
        files = list(files)

        async def body() -> None:
            details = await self._settings.get_import_details()
            count = len(files)
            for i, file in enumerate(files):
                self._update_panel(progress_percent=0.0)
                if count > 1:
                    self._update_panel(
                        import_info_visible=True,
                        import_info_text=f"({i + 1} of {count})",
                    )
                _LOGGER.verbose(f"importing file {i + 1} of {count}")
                try:
                    await self._pipeline.import_one(
                        file, details, self._on_progress, self._show_errors
                    )
                except DictionaryImportError as e:
                    self._show_errors([e])

        await self._run_exclusive(
            OP_IMPORT,
            body,
            show={"progress_visible": True},
            hide={
                "progress_visible": False,
                "import_info_text": "",
                "import_info_visible": False,
            },
            data={"file_count": len(files)},
        )

    async def _run_exclusive(
        self,
        operation: str,
        body: Callable[[], Awaitable[None]],
        *,
        show: dict[str, Any],
        hide: dict[str, Any],
        data: dict[str, Any],
    ) -> bool:
        """Run `body` under the single-flight guard.

        Returns:
            False when another operation was already running
        """
        if not self._guard.try_acquire():
            _LOGGER.debug(f"{operation} ignored: another operation is running")
            return False

        token = self._exit_host.acquire()
        start = time.monotonic()
        status = "succeeded"
        emit_diagnostic(
            "diag.operation.start",
            component=COMPONENT,
            operation=operation,
            data={**data, "status": "running"},
            bus=self._bus,
        )
        try:
            self._update_panel(modifying=True)
            self._hide_errors()
            self._update_panel(spinner_visible=True, **show)
            await body()
        except Exception as e:
            status = "failed"
            _LOGGER.warning(f"{operation} failed: {type(e).__name__}: {e}")
            self._show_errors([e])
        finally:
            token.release()
            self._update_panel(spinner_visible=False, **hide)
            self._refresh_stats()
            self._guard.release()
            self._update_panel(modifying=False)
            emit_diagnostic(
                "diag.operation.end",
                component=COMPONENT,
                operation=operation,
                data={
                    **data,
                    "status": status,
                    "duration_ms": _duration_ms(start, time.monotonic()),
                },
                bus=self._bus,
            )
        return True

    def _on_progress(self, total: int, current: int) -> None:
        self._update_panel(progress_percent=ProgressReport(total, current).percent)
        self._refresh_stats()

    def _refresh_stats(self) -> None:
        if self._stats is None:
            return
        try:
            self._stats.update_stats()
        except Exception as e:
            _LOGGER.warning(f"stats refresh failed: {type(e).__name__}: {e}")

    def _show_errors(self, errors: Sequence[BaseException]) -> None:
        lines = self._normalizer.render(errors)
        self._update_panel(
            error_lines=[*self._panel.error_lines, *lines],
            errors_visible=True,
        )

    def _hide_errors(self) -> None:
        self._update_panel(error_lines=[], errors_visible=False)

    def _update_panel(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._panel, name, value)
        self._bus.publish(PANEL_CHANGED, self._panel.snapshot())


def create_orchestrator(
    resolver: ConfigResolver,
    *,
    purge_transport: IPurgeTransport,
    store_factory: Callable[[], IDictionaryStore],
    importer: IDictionaryImporter,
    stats: IStatsRefresher | None = None,
    bus: EventBus | None = None,
) -> DictionaryImportOrchestrator:
    """Build an orchestrator wired from configuration.

    Settings live in the YAML file named by `settings_path`; error overrides
    from `errors.overrides` extend the built-in table. Logging policy and the
    diagnostics sink are applied from the same resolver.
    """
    configure_logging(resolver)
    install_jsonl_sink(resolver=resolver, bus=bus)
    return DictionaryImportOrchestrator(
        settings_transport=YamlSettingsStore(resolver.resolve_settings_path()),
        purge_transport=purge_transport,
        store_factory=store_factory,
        importer=importer,
        stats=stats,
        normalizer=ErrorNormalizer.from_resolver(resolver),
        bus=bus,
    )
