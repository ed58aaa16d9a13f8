"""Single-file dictionary import.

For one input file:
1. open a fresh store (closed again on every exit path)
2. read the file and hand it to the importer
3. announce the store update
4. enable the new dictionary in every profile
5. surface importer and settings errors together, plus a summary line
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

from dictsync.core.errors import DictionaryImportError
from dictsync.core.interfaces import (
    IDictionaryImporter,
    IDictionaryStore,
    IFileReader,
    IUpdateNotifier,
    ProgressCallback,
)
from dictsync.core.lifecycle import open_store
from dictsync.core.logging import get_logger
from dictsync.core.models import ImportDetails, ImportResult
from dictsync.core.settings_sync import SettingsSynchronizer

_logger = get_logger(__name__)

ErrorSink = Callable[[Sequence[BaseException]], None]


def summary_error(count: int) -> DictionaryImportError:
    """Synthetic error appended after per-entry import errors."""
    noun = "error" if count == 1 else "errors"
    return DictionaryImportError(
        f"Dictionary may not have been imported properly: {count} {noun} reported."
    )


class PathFileReader:
    """Read a file's raw bytes.

    Accepts a path (str or Path) or any object with an async `read()`.
    """

    async def read(self, file: Any) -> bytes:
        if isinstance(file, (str, Path)):
            return await asyncio.to_thread(Path(file).read_bytes)
        reader = getattr(file, "read", None)
        if reader is None:
            raise TypeError(f"Cannot read file of type {type(file).__name__}")
        return await reader()


class FileImportPipeline:
    """Import one file at a time. Callers guarantee there is no overlap."""

    def __init__(
        self,
        *,
        store_factory: Callable[[], IDictionaryStore],
        importer: IDictionaryImporter,
        settings: SettingsSynchronizer,
        notifier: IUpdateNotifier,
        file_reader: IFileReader | None = None,
    ) -> None:
        self._store_factory = store_factory
        self._importer = importer
        self._settings = settings
        self._notifier = notifier
        self._file_reader = file_reader if file_reader is not None else PathFileReader()

    async def import_one(
        self,
        file: Any,
        details: ImportDetails,
        on_progress: ProgressCallback,
        on_errors: ErrorSink,
    ) -> ImportResult:
        """Import one archive into the store and record it in settings.

        Args:
            file: Input file (see PathFileReader)
            details: Options shared by the whole batch
            on_progress: Receives (total, current) from the importer
            on_errors: Receives the combined error list when the importer or
                the settings update reported errors

        Returns:
            The importer's result

        Raises:
            StoreUnavailableError: If the store cannot be opened
            DictionaryImportError: If the importer rejects the archive
            TransportError: If settings cannot be reached
        """
        async with open_store(self._store_factory) as store:
            content = await self._file_reader.read(file)
            result = await self._importer.import_dictionary(store, content, details, on_progress)
            self._notify_updated()

            settings_errors = await self._settings.add_dictionary_settings(
                result.sequenced, result.title
            )
            _logger.info(f"imported dictionary: {result.title}")

            if result.errors:
                all_errors: list[BaseException] = [*result.errors, *settings_errors]
                all_errors.append(summary_error(len(all_errors)))
                on_errors(all_errors)
            elif settings_errors:
                on_errors(settings_errors)

            return result

    def _notify_updated(self) -> None:
        try:
            self._notifier.trigger_database_updated("dictionary", "import")
        except Exception as e:
            _logger.warning(f"update notification failed: {type(e).__name__}: {e}")
