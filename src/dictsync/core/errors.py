"""Error handling with friendly messages.

Errors raised by a settings transport cross a process boundary as plain dicts.
`error_to_json` and `json_to_error` convert between the two forms.
"""

from __future__ import annotations

import traceback
from typing import Any


class DictSyncError(Exception):
    """Base exception for all dictsync errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(DictSyncError):
    """Configuration error."""

    pass


class TransportError(DictSyncError):
    """Settings or store plumbing is unreachable."""

    pass


class StoreUnavailableError(DictSyncError):
    """The dictionary store could not be opened."""

    def __init__(self, message: str = "Dictionary store is unavailable") -> None:
        super().__init__(message, "Check that the store is not locked by another process")


class DictionaryImportError(DictSyncError):
    """Archive is malformed or unsupported."""

    pass


class PartialSettingsError(DictSyncError):
    """A single settings write target failed."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class HostEnvironmentError(DictSyncError):
    """Host storage is restricted or corrupt."""

    pass


class PropertyPathError(DictSyncError):
    """Malformed or unresolvable property path."""

    pass


class RemoteError(DictSyncError):
    """Deserialized error whose original class is not known locally."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(message)


_ERROR_CLASSES: dict[str, type[BaseException]] = {
    cls.__name__: cls
    for cls in (
        DictSyncError,
        ConfigError,
        TransportError,
        StoreUnavailableError,
        DictionaryImportError,
        PartialSettingsError,
        HostEnvironmentError,
        PropertyPathError,
        Exception,
        KeyError,
        IndexError,
        TypeError,
        ValueError,
        RuntimeError,
        OSError,
    )
}


def error_to_json(error: BaseException) -> dict[str, Any]:
    """Serialize an exception to a JSON-safe dict.

    Args:
        error: Exception to serialize

    Returns:
        Dict with name, message, stack and (optionally) data keys
    """
    if isinstance(error, RemoteError):
        name = error.name
    else:
        name = type(error).__name__

    if isinstance(error, DictSyncError):
        message = error.message
    elif isinstance(error, KeyError) and error.args:
        message = str(error.args[0])
    else:
        message = str(error)

    payload: dict[str, Any] = {
        "name": name,
        "message": message,
        "stack": "".join(traceback.format_exception(error)),
    }

    data: dict[str, Any] = {}
    suggestion = getattr(error, "suggestion", None)
    if suggestion:
        data["suggestion"] = suggestion
    path = getattr(error, "path", None)
    if isinstance(path, str):
        data["path"] = path
    if data:
        payload["data"] = data
    return payload


def json_to_error(payload: dict[str, Any]) -> BaseException:
    """Rebuild an exception from `error_to_json` output.

    Classes known locally are rebuilt as that class. Anything else becomes a
    RemoteError that remembers the original class name.
    """
    name = str(payload.get("name", "Error"))
    message = str(payload.get("message", ""))
    data = payload.get("data") or {}
    cls = _ERROR_CLASSES.get(name)

    error: BaseException
    if cls is None:
        error = RemoteError(name, message)
    elif cls is PartialSettingsError:
        error = PartialSettingsError(message, path=data.get("path"))
    elif cls is StoreUnavailableError:
        error = StoreUnavailableError(message)
    elif issubclass(cls, DictSyncError):
        error = cls(message, data.get("suggestion"))
    else:
        error = cls(message)

    error.remote_stack = payload.get("stack")  # type: ignore[attr-defined]
    return error
