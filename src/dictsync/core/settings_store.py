"""Reference settings transport.

Holds the multi-profile settings tree and applies batches of write targets.
Each target succeeds or fails on its own; a failure is returned as a
serialized error in that target's slot.

A batch is applied to a copy of the tree, which replaces the live tree only
once it has been stored. `YamlSettingsStore` persists it to a YAML file.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from dictsync.core.errors import (
    HostEnvironmentError,
    PartialSettingsError,
    TransportError,
    error_to_json,
)
from dictsync.core.logging import get_logger
from dictsync.core.property_path import PropertyAccessor, get_path_array

_logger = get_logger(__name__)


def default_profile_options() -> dict[str, Any]:
    return {
        "general": {"mainDictionary": ""},
        "dictionaries": {},
    }


def default_options_full() -> dict[str, Any]:
    return {
        "profiles": [{"name": "Default", "options": default_profile_options()}],
        "global": {"database": {"prefixWildcardsSupported": False}},
    }


class InMemorySettingsStore:
    """Settings transport backed by an in-process dict."""

    def __init__(self, options_full: dict[str, Any] | None = None) -> None:
        self._options = options_full if options_full is not None else default_options_full()

    async def get_options_full(self) -> dict[str, Any]:
        return copy.deepcopy(self._options)

    async def modify_global_settings(
        self, targets: Sequence[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        working = copy.deepcopy(self._options)
        accessor = PropertyAccessor(working)
        results: list[dict[str, Any]] = []
        for target in targets:
            try:
                results.append({"result": self._apply_target(accessor, target)})
            except PartialSettingsError as e:
                results.append({"error": error_to_json(e)})
        await self._persist(working)
        self._options = working
        return results

    def _apply_target(self, accessor: PropertyAccessor, target: dict[str, Any]) -> Any:
        action = target.get("action")
        path = str(target.get("path", ""))
        if action != "set":
            raise PartialSettingsError(f"Unknown action: {action}", path=path)

        try:
            parts = get_path_array(path)
            value = copy.deepcopy(target.get("value"))
            accessor.set(parts, value)
        except PartialSettingsError:
            raise
        except Exception as e:
            raise PartialSettingsError(str(e), path=path) from e
        return value

    async def _persist(self, options: dict[str, Any]) -> None:
        """Store a modified tree. It replaces the live tree only if this returns."""


class YamlSettingsStore(InMemorySettingsStore):
    """Settings transport persisted to a YAML file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(self._load())

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return default_options_full()
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except Exception as e:
            raise TransportError(f"Failed to load settings from {self.path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("profiles"), list):
            raise TransportError(f"Settings file has no profiles list: {self.path}")
        return data

    async def _persist(self, options: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, options)

    def _write(self, options: dict[str, Any]) -> None:
        text = yaml.safe_dump(
            options,
            sort_keys=True,
            default_flow_style=False,
            allow_unicode=True,
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.path)
        except PermissionError as e:
            raise HostEnvironmentError(
                f"Settings file is not writable: {self.path}",
                "Check the file permissions or point settings_path elsewhere",
            ) from e
        except OSError as e:
            raise TransportError(f"Failed to save settings to {self.path}: {e}") from e
        _logger.debug(f"settings saved: {self.path}")
