"""Tests for the in-memory and YAML settings stores."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from dictsync.core.errors import TransportError, json_to_error
from dictsync.core.settings_store import (
    InMemorySettingsStore,
    YamlSettingsStore,
    default_options_full,
)


@pytest.mark.asyncio
async def test_default_tree_has_one_empty_profile(settings_store: InMemorySettingsStore) -> None:
    tree = await settings_store.get_options_full()

    assert len(tree["profiles"]) == 1
    assert tree["profiles"][0]["options"] == {"general": {"mainDictionary": ""}, "dictionaries": {}}
    assert tree["global"]["database"]["prefixWildcardsSupported"] is False


@pytest.mark.asyncio
async def test_snapshot_is_a_copy(settings_store: InMemorySettingsStore) -> None:
    tree = await settings_store.get_options_full()
    tree["profiles"].clear()

    assert len((await settings_store.get_options_full())["profiles"]) == 1


@pytest.mark.asyncio
async def test_one_result_per_target(settings_store: InMemorySettingsStore) -> None:
    results = await settings_store.modify_global_settings(
        [
            {"action": "set", "path": "profiles[0].options.general.mainDictionary", "value": "A"},
            {"action": "set", "path": "profiles[4].options.dictionaries", "value": {}},
            {"action": "delete", "path": "profiles[0].options.dictionaries", "value": None},
            {"action": "set", "path": "profiles[0", "value": None},
        ]
    )

    assert len(results) == 4
    assert results[0] == {"result": "A"}
    for failed in results[1:]:
        assert "error" in failed
    assert "Invalid path" in str(json_to_error(results[1]["error"]))
    assert "Unknown action" in str(json_to_error(results[2]["error"]))

    tree = await settings_store.get_options_full()
    assert tree["profiles"][0]["options"]["general"]["mainDictionary"] == "A"


@pytest.mark.asyncio
async def test_stored_value_is_not_aliased(settings_store: InMemorySettingsStore) -> None:
    value = {"priority": 0}
    await settings_store.modify_global_settings(
        [{"action": "set", "path": "profiles[0].options.dictionaries.A", "value": value}]
    )
    value["priority"] = 99

    tree = await settings_store.get_options_full()
    assert tree["profiles"][0]["options"]["dictionaries"]["A"] == {"priority": 0}


@pytest.mark.asyncio
async def test_yaml_store_persists_batches(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.yaml"
    store = YamlSettingsStore(path)

    await store.modify_global_settings(
        [{"action": "set", "path": 'profiles[0].options.dictionaries["Jitendex"]', "value": {}}]
    )

    saved = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert saved["profiles"][0]["options"]["dictionaries"] == {"Jitendex": {}}

    reloaded = YamlSettingsStore(path)
    tree = await reloaded.get_options_full()
    assert "Jitendex" in tree["profiles"][0]["options"]["dictionaries"]


def test_yaml_store_starts_from_defaults(tmp_path: Path) -> None:
    store = YamlSettingsStore(tmp_path / "missing.yaml")
    assert store._options == default_options_full()


def test_yaml_store_rejects_tree_without_profiles(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("profiles: nope\n", encoding="utf-8")

    with pytest.raises(TransportError, match="no profiles list"):
        YamlSettingsStore(path)


def test_yaml_store_rejects_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("profiles: [\n", encoding="utf-8")

    with pytest.raises(TransportError, match="Failed to load settings"):
        YamlSettingsStore(path)


@pytest.mark.asyncio
async def test_failed_save_leaves_tree_unchanged(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = YamlSettingsStore(blocker / "settings.yaml")

    with pytest.raises(TransportError, match="Failed to save settings"):
        await store.modify_global_settings(
            [{"action": "set", "path": "profiles[0].options.general.mainDictionary", "value": "A"}]
        )

    tree = await store.get_options_full()
    assert tree == default_options_full()
