"""Tests for ErrorNormalizer."""

from __future__ import annotations

from pathlib import Path

from dictsync.core.config import ConfigResolver, ErrorOverrideRule
from dictsync.core.error_display import DEFAULT_ERROR_OVERRIDES, ErrorNormalizer
from dictsync.core.models import DisplayLine

RESTRICTED = "A mutation operation was attempted on a database that did not allow mutations."


def test_known_host_error_is_rewritten(normalizer: ErrorNormalizer) -> None:
    error = RuntimeError(f"InvalidStateError: {RESTRICTED}")

    text = normalizer.to_display_string(error)

    assert text == DEFAULT_ERROR_OVERRIDES[0].replacement
    assert 'history preference is set to "Remember history"' in text


def test_corrupt_profile_error_is_rewritten(normalizer: ErrorNormalizer) -> None:
    error = RuntimeError(DEFAULT_ERROR_OVERRIDES[1].match)
    assert "Refresh Firefox" in normalizer.to_display_string(error)


def test_unmatched_error_passes_through(normalizer: ErrorNormalizer) -> None:
    assert normalizer.to_display_string(ValueError("bad entry")) == "bad entry"
    assert normalizer.to_display_string("plain string") == "plain string"


def test_empty_message_falls_back_to_class_name(normalizer: ErrorNormalizer) -> None:
    assert normalizer.to_display_string(TimeoutError()) == "TimeoutError"


def test_first_matching_rule_wins() -> None:
    normalizer = ErrorNormalizer(
        [
            ErrorOverrideRule(match="disk", replacement="first"),
            ErrorOverrideRule(match="disk full", replacement="second"),
        ],
        log=lambda _e: None,
    )
    assert normalizer.to_display_string(OSError("disk full")) == "first"


def test_render_groups_and_counts(normalizer: ErrorNormalizer, logged_errors: list) -> None:
    e1a = ValueError("bad entry")
    e1b = ValueError("bad entry")
    e2 = ValueError("missing index")

    lines = normalizer.render([e1a, e1b, e2])

    assert lines == [DisplayLine("bad entry", 2), DisplayLine("missing index", 1)]
    assert lines[0].count_suffix == "(2)"
    assert lines[1].count_suffix is None
    assert logged_errors == [e1a, e1b, e2]


def test_render_groups_by_rewritten_text(normalizer: ErrorNormalizer) -> None:
    lines = normalizer.render([RuntimeError(RESTRICTED), RuntimeError(f"x {RESTRICTED} y")])
    assert len(lines) == 1
    assert lines[0].count == 2


def test_display_line_forms() -> None:
    assert DisplayLine("a < b", 3).plain == "a < b (3)"
    assert DisplayLine("a < b", 3).to_html() == "<p>a &lt; b <em>(3)</em></p>"
    assert DisplayLine("single").to_html() == "<p>single</p>"


def test_config_overrides_follow_builtins(tmp_path: Path) -> None:
    user_config = tmp_path / "config.yaml"
    user_config.write_text(
        "errors:\n  overrides:\n    - ['QuotaExceededError', 'The disk is full.']\n",
        encoding="utf-8",
    )
    resolver = ConfigResolver(
        user_config_path=user_config,
        system_config_path=tmp_path / "missing.yaml",
    )

    normalizer = ErrorNormalizer.from_resolver(resolver, log=lambda _e: None)

    assert normalizer.overrides[: len(DEFAULT_ERROR_OVERRIDES)] == DEFAULT_ERROR_OVERRIDES
    assert normalizer.to_display_string("QuotaExceededError: x") == "The disk is full."


def test_render_survives_failing_log() -> None:
    def broken_log(_error: object) -> None:
        raise OSError("log sink closed")

    lines = ErrorNormalizer(log=broken_log).render([ValueError("x"), ValueError("x")])

    assert lines == [DisplayLine(text="x", count=2)]
