"""dictsync core.

Sequences dictionary purge and import over external collaborators (store,
importer, settings transport) and keeps per-profile settings consistent.
"""

from dictsync.core.config import ConfigResolver, ErrorOverrideRule
from dictsync.core.error_display import DEFAULT_ERROR_OVERRIDES, ErrorNormalizer
from dictsync.core.errors import (
    ConfigError,
    DictionaryImportError,
    DictSyncError,
    HostEnvironmentError,
    PartialSettingsError,
    PropertyPathError,
    RemoteError,
    StoreUnavailableError,
    TransportError,
    error_to_json,
    json_to_error,
)
from dictsync.core.events import EventBus, EventBusNotifier, get_event_bus
from dictsync.core.interfaces import (
    IDictionaryImporter,
    IDictionaryStore,
    IFileReader,
    IPurgeTransport,
    ISettingsTransport,
    IStatsRefresher,
    IUpdateNotifier,
)
from dictsync.core.lifecycle import (
    ExitPreventionHost,
    ExitPreventionToken,
    SingleFlightGuard,
    open_store,
    prevent_exit,
)
from dictsync.core.logging import (
    VerbosityLevel,
    configure_logging,
    get_logger,
    log_error,
    set_verbosity,
)
from dictsync.core.models import (
    DisplayLine,
    ImportDetails,
    ImportPanelState,
    ImportResult,
    ProgressReport,
    SettingsWriteResult,
    WriteTarget,
)
from dictsync.core.orchestration import DictionaryImportOrchestrator, create_orchestrator
from dictsync.core.pipeline import FileImportPipeline, PathFileReader
from dictsync.core.property_path import PropertyAccessor, get_path_array, get_path_string
from dictsync.core.settings_store import InMemorySettingsStore, YamlSettingsStore
from dictsync.core.settings_sync import SettingsSynchronizer

__all__ = [
    # Orchestration
    "DictionaryImportOrchestrator",
    "create_orchestrator",
    "FileImportPipeline",
    "PathFileReader",
    "SettingsSynchronizer",
    # Settings
    "InMemorySettingsStore",
    "YamlSettingsStore",
    "PropertyAccessor",
    "get_path_array",
    "get_path_string",
    # Models
    "DisplayLine",
    "ImportDetails",
    "ImportPanelState",
    "ImportResult",
    "ProgressReport",
    "SettingsWriteResult",
    "WriteTarget",
    # Interfaces
    "IDictionaryImporter",
    "IDictionaryStore",
    "IFileReader",
    "IPurgeTransport",
    "ISettingsTransport",
    "IStatsRefresher",
    "IUpdateNotifier",
    # Lifecycle
    "ExitPreventionHost",
    "ExitPreventionToken",
    "SingleFlightGuard",
    "open_store",
    "prevent_exit",
    # Errors
    "DictSyncError",
    "ConfigError",
    "DictionaryImportError",
    "HostEnvironmentError",
    "PartialSettingsError",
    "PropertyPathError",
    "RemoteError",
    "StoreUnavailableError",
    "TransportError",
    "error_to_json",
    "json_to_error",
    "DEFAULT_ERROR_OVERRIDES",
    "ErrorNormalizer",
    # Config / events / logging
    "ConfigResolver",
    "ErrorOverrideRule",
    "EventBus",
    "EventBusNotifier",
    "get_event_bus",
    "VerbosityLevel",
    "configure_logging",
    "get_logger",
    "log_error",
    "set_verbosity",
]
