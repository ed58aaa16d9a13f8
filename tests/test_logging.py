"""Tests for the verbosity logger, LogBus and the diagnostic error log."""

from __future__ import annotations

import pytest

from dictsync.core.config import ConfigResolver
from dictsync.core.errors import PartialSettingsError, error_to_json, json_to_error
from dictsync.core.log_bus import LogRecord, get_log_bus
from dictsync.core.logging import (
    DIAGNOSTIC_LOGGER,
    VerbosityLevel,
    apply_logging_policy,
    get_logger,
    get_verbosity,
    log_error,
    set_verbosity,
)


@pytest.fixture(autouse=True)
def _restore_verbosity():
    previous = get_verbosity()
    yield
    set_verbosity(previous)


def test_levels_filter_output(capsys: pytest.CaptureFixture[str]) -> None:
    set_verbosity(VerbosityLevel.NORMAL)
    logger = get_logger("test.levels")

    logger.verbose("hidden")
    logger.info("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "[info] shown" in out


def test_errors_go_to_stderr_even_when_quiet(capsys: pytest.CaptureFixture[str]) -> None:
    set_verbosity(VerbosityLevel.QUIET)
    get_logger("test.quiet").error("store unavailable")

    assert "[error] store unavailable" in capsys.readouterr().err


def test_records_are_mirrored_to_log_bus() -> None:
    set_verbosity(VerbosityLevel.DEBUG)

    with get_log_bus().capture("DEBUG") as records:
        get_logger("test.bus").debug("details")
        get_logger("test.bus").info("not captured")

    assert records == [
        LogRecord(level_name="DEBUG", plain="[debug] details", logger_name="test.bus")
    ]


def test_capture_unsubscribes_after_block() -> None:
    bus = get_log_bus()
    with bus.capture() as records:
        pass
    get_logger("test.after").warning("late")
    assert records == []


def test_apply_logging_policy(tmp_path) -> None:
    resolver = ConfigResolver(
        cli_args={"logging": {"level": "verbose"}},
        user_config_path=tmp_path / "u.yaml",
        system_config_path=tmp_path / "s.yaml",
    )

    apply_logging_policy(resolver.resolve_logging_policy())

    assert get_verbosity() == VerbosityLevel.VERBOSE


def test_log_error_writes_traceback_once() -> None:
    try:
        raise ValueError("bad entry")
    except ValueError as e:
        error = e

    with get_log_bus().capture("ERROR") as records:
        log_error(error)

    assert len(records) == 1
    assert records[0].logger_name == DIAGNOSTIC_LOGGER
    assert "ValueError: bad entry" in records[0].plain
    assert "Traceback" in records[0].plain


def test_log_error_prefers_remote_stack() -> None:
    remote = json_to_error(error_to_json(PartialSettingsError("Invalid path", path="x")))
    remote.remote_stack = "remote stack text"  # type: ignore[attr-defined]

    with get_log_bus().capture("ERROR") as records:
        log_error(remote)
        log_error("plain message")

    assert "remote stack text" in records[0].plain
    assert records[1].plain == "[error] plain message"
