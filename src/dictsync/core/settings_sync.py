"""Keep per-profile dictionary settings consistent with the store.

Changes are expressed as declarative "set" targets addressed into the
multi-profile settings tree and submitted to the settings transport in one
batch. Targets that fail are returned as errors; the ones that succeeded stay
applied (there is no rollback).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from dictsync.core.errors import TransportError
from dictsync.core.interfaces import ISettingsTransport
from dictsync.core.logging import get_logger
from dictsync.core.models import ImportDetails, SettingsWriteResult, WriteTarget
from dictsync.core.property_path import get_path_string

_logger = get_logger(__name__)


def create_dictionary_options() -> dict[str, Any]:
    """Settings value for a newly imported dictionary."""
    return {
        "priority": 0,
        "enabled": True,
        "allowSecondarySearches": False,
    }


def build_add_dictionary_targets(
    options_full: dict[str, Any], sequenced: bool, title: str
) -> list[WriteTarget]:
    """Enable `title` on every profile.

    A sequenced dictionary also becomes the profile's main dictionary, but only
    where none is chosen yet.
    """
    targets: list[WriteTarget] = []
    for i, profile in enumerate(options_full["profiles"]):
        options = profile["options"]
        targets.append(
            WriteTarget(
                path=get_path_string(["profiles", i, "options", "dictionaries", title]),
                value=create_dictionary_options(),
            )
        )

        if sequenced and options["general"]["mainDictionary"] == "":
            targets.append(
                WriteTarget(
                    path=get_path_string(["profiles", i, "options", "general", "mainDictionary"]),
                    value=title,
                )
            )
    return targets


def build_clear_dictionaries_targets(options_full: dict[str, Any]) -> list[WriteTarget]:
    """Drop every dictionary and the main dictionary choice on every profile."""
    targets: list[WriteTarget] = []
    for i in range(len(options_full["profiles"])):
        targets.append(
            WriteTarget(
                path=get_path_string(["profiles", i, "options", "dictionaries"]),
                value={},
            )
        )
        targets.append(
            WriteTarget(
                path=get_path_string(["profiles", i, "options", "general", "mainDictionary"]),
                value="",
            )
        )
    return targets


class SettingsSynchronizer:
    """Apply write targets through a settings transport and collect failures."""

    def __init__(self, transport: ISettingsTransport) -> None:
        self._transport = transport

    async def get_options_full(self) -> dict[str, Any]:
        return await self._transport.get_options_full()

    async def get_import_details(self) -> ImportDetails:
        return ImportDetails.from_options_full(await self.get_options_full())

    async def apply(self, targets: Sequence[WriteTarget]) -> list[BaseException]:
        """Submit all targets in one batch.

        Returns:
            One error per failing target, in target order
        """
        if not targets:
            return []

        raw_results = await self._transport.modify_global_settings(
            [target.to_dict() for target in targets]
        )

        if len(raw_results) != len(targets):
            raise TransportError(
                f"Settings transport returned {len(raw_results)} results for {len(targets)} targets"
            )

        errors: list[BaseException] = []
        for target, raw in zip(targets, raw_results):
            error = SettingsWriteResult.from_dict(raw).to_error()
            if error is not None:
                _logger.verbose(f"settings write failed: {target.path}: {error}")
                errors.append(error)
        return errors

    async def add_dictionary_settings(self, sequenced: bool, title: str) -> list[BaseException]:
        options_full = await self.get_options_full()
        return await self.apply(build_add_dictionary_targets(options_full, sequenced, title))

    async def clear_dictionary_settings(self) -> list[BaseException]:
        options_full = await self.get_options_full()
        return await self.apply(build_clear_dictionaries_targets(options_full))
