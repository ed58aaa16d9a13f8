"""Collaborator interfaces for the import core.

The store engine, archive importer and settings transport live outside this
package. Anything that structurally matches these protocols can be plugged
into the orchestrator.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from dictsync.core.models import ImportDetails, ImportResult

ProgressCallback = Callable[[int, int], None]


class IDictionaryStore(Protocol):
    """Persistent dictionary storage.

    A fresh instance is created for every file import, prepared, used and
    closed again.
    """

    async def prepare(self) -> None:
        """Open the store.

        Raises:
            StoreUnavailableError: If the store cannot be opened
        """
        ...

    def close(self) -> None:
        """Release the store. Best effort."""
        ...


class IDictionaryImporter(Protocol):
    """Parse an archive and write its entries into a store."""

    async def import_dictionary(
        self,
        store: IDictionaryStore,
        content: bytes,
        details: ImportDetails,
        on_progress: ProgressCallback,
    ) -> ImportResult:
        """Import one archive.

        `on_progress(total, current)` may be called any number of times.

        Raises:
            DictionaryImportError: If the archive is malformed or unsupported
        """
        ...


class ISettingsTransport(Protocol):
    """Read and batch-modify the multi-profile settings tree."""

    async def get_options_full(self) -> dict[str, Any]:
        """Return a snapshot with a `profiles` list and a `global` section.

        Raises:
            TransportError: If settings cannot be reached
        """
        ...

    async def modify_global_settings(
        self, targets: Sequence[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Apply write targets in order; return one result dict per target.

        A failed target yields `{"error": <serialized error>}`; the call itself
        only raises on transport failure.
        """
        ...


class IPurgeTransport(Protocol):
    async def purge_database(self) -> None:
        """Delete every dictionary from the store.

        Raises:
            TransportError: If the store cannot be reached
        """
        ...


class IUpdateNotifier(Protocol):
    def trigger_database_updated(self, kind: str, reason: str) -> None: ...


class IStatsRefresher(Protocol):
    def update_stats(self) -> None: ...


class IFileReader(Protocol):
    async def read(self, file: Any) -> bytes: ...
