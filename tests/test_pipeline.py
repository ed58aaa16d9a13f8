"""Tests for FileImportPipeline."""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import (
    BytesFile,
    FailingImporter,
    FailingNotifier,
    FakeImporter,
    RecordingNotifier,
    RecordingSettings,
    StoreFactory,
    options_full,
)

from dictsync.core.errors import DictionaryImportError, PartialSettingsError
from dictsync.core.models import ImportDetails, ImportResult
from dictsync.core.pipeline import FileImportPipeline, PathFileReader, summary_error
from dictsync.core.settings_sync import SettingsSynchronizer

DETAILS = ImportDetails(prefix_wildcards_supported=True)


def _pipeline(importer, settings=None, factory=None, notifier=None):  # type: ignore[no-untyped-def]
    return FileImportPipeline(
        store_factory=factory or StoreFactory(),
        importer=importer,
        settings=SettingsSynchronizer(settings or RecordingSettings(options_full(""))),
        notifier=notifier or RecordingNotifier(),
    )


def test_summary_error_wording() -> None:
    assert str(summary_error(1)).endswith(": 1 error reported.")
    assert str(summary_error(2)).endswith(": 2 errors reported.")
    assert str(summary_error(0)).endswith(": 0 errors reported.")
    assert str(summary_error(1)) == (
        "Dictionary may not have been imported properly: 1 error reported."
    )


@pytest.mark.asyncio
async def test_clean_import_records_settings_and_notifies() -> None:
    settings = RecordingSettings(options_full(""))
    factory = StoreFactory()
    notifier = RecordingNotifier()
    importer = FakeImporter([ImportResult(title="A", sequenced=True)])
    progress: list[tuple[int, int]] = []
    surfaced: list[list[BaseException]] = []

    result = await _pipeline(importer, settings, factory, notifier).import_one(
        BytesFile("a.zip", b"archive"),
        DETAILS,
        lambda total, current: progress.append((total, current)),
        lambda errors: surfaced.append(list(errors)),
    )

    assert result.title == "A"
    assert importer.calls == [(b"archive", DETAILS)]
    assert importer.stores == factory.created
    assert progress == [(2, 1), (2, 2)]
    assert notifier.events == [("dictionary", "import")]
    assert surfaced == []
    assert factory.created[0].close_calls == 1

    tree = await settings.get_options_full()
    assert tree["profiles"][0]["options"]["general"]["mainDictionary"] == "A"
    assert "A" in tree["profiles"][0]["options"]["dictionaries"]


@pytest.mark.asyncio
async def test_importer_errors_are_combined_with_summary() -> None:
    settings = RecordingSettings(
        options_full(""),
        reject_paths=["profiles[0].options.dictionaries.B"],
    )
    bad = ValueError("bad entry")
    importer = FakeImporter([ImportResult(title="B", errors=(bad,))])
    surfaced: list[list[BaseException]] = []

    await _pipeline(importer, settings).import_one(
        BytesFile("b.zip"), DETAILS, lambda t, c: None, lambda errors: surfaced.append(list(errors))
    )

    assert len(surfaced) == 1
    errors = surfaced[0]
    assert errors[0] is bad
    assert isinstance(errors[1], PartialSettingsError)
    assert str(errors[2]) == "Dictionary may not have been imported properly: 2 errors reported."


@pytest.mark.asyncio
async def test_settings_still_written_when_importer_reports_errors() -> None:
    settings = RecordingSettings(options_full(""))
    importer = FakeImporter([ImportResult(title="C", sequenced=True, errors=(ValueError("x"),))])

    await _pipeline(importer, settings).import_one(
        BytesFile("c.zip"), DETAILS, lambda t, c: None, lambda errors: None
    )

    tree = await settings.get_options_full()
    assert tree["profiles"][0]["options"]["general"]["mainDictionary"] == "C"


@pytest.mark.asyncio
async def test_settings_errors_alone_are_surfaced_without_summary() -> None:
    settings = RecordingSettings(
        options_full("Existing"),
        reject_paths=["profiles[0].options.dictionaries.D"],
    )
    surfaced: list[list[BaseException]] = []

    await _pipeline(FakeImporter([ImportResult(title="D")]), settings).import_one(
        BytesFile("d.zip"), DETAILS, lambda t, c: None, lambda errors: surfaced.append(list(errors))
    )

    assert len(surfaced) == 1
    assert len(surfaced[0]) == 1
    assert isinstance(surfaced[0][0], PartialSettingsError)


@pytest.mark.asyncio
async def test_store_closed_exactly_once_when_importer_fails() -> None:
    factory = StoreFactory()
    notifier = RecordingNotifier()
    settings = RecordingSettings(options_full(""))
    importer = FailingImporter(DictionaryImportError("malformed archive"))

    with pytest.raises(DictionaryImportError):
        await _pipeline(importer, settings, factory, notifier).import_one(
            BytesFile("bad.zip"), DETAILS, lambda t, c: None, lambda errors: None
        )

    assert len(factory.created) == 1
    assert factory.created[0].close_calls == 1
    assert notifier.events == []
    assert settings.batches == []


@pytest.mark.asyncio
async def test_path_file_reader_reads_paths(tmp_path: Path) -> None:
    archive = tmp_path / "dict.zip"
    archive.write_bytes(b"PK\x03\x04")
    reader = PathFileReader()

    assert await reader.read(archive) == b"PK\x03\x04"
    assert await reader.read(str(archive)) == b"PK\x03\x04"
    assert await reader.read(BytesFile("x", b"raw")) == b"raw"

    with pytest.raises(TypeError):
        await reader.read(42)


@pytest.mark.asyncio
async def test_failing_notifier_does_not_skip_settings() -> None:
    settings = RecordingSettings(options_full(""))
    factory = StoreFactory()
    surfaced: list[list[BaseException]] = []

    result = await _pipeline(
        FakeImporter([ImportResult(title="A", sequenced=True)]),
        settings,
        factory,
        FailingNotifier(RuntimeError("listener down")),
    ).import_one(BytesFile("a.zip"), DETAILS, lambda total, current: None, surfaced.append)

    assert result.title == "A"
    assert surfaced == []
    assert factory.created[0].close_calls == 1
    tree = await settings.get_options_full()
    assert "A" in tree["profiles"][0]["options"]["dictionaries"]
