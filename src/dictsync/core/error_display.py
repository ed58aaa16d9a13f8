"""Turn raw failures into user-facing error panel lines.

Some host storage failures only surface as opaque messages. They are
recognized by literal substring and rewritten to an actionable instruction.
The rule table is used for rendering only, never for control flow.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from dictsync.core.config import ConfigResolver, ErrorOverrideRule
from dictsync.core.logging import get_logger, log_error
from dictsync.core.models import DisplayLine

_logger = get_logger(__name__)

# First match wins.
DEFAULT_ERROR_OVERRIDES: tuple[ErrorOverrideRule, ...] = (
    ErrorOverrideRule(
        match="A mutation operation was attempted on a database that did not allow mutations.",
        replacement=(
            "Access to IndexedDB appears to be restricted. Firefox seems to require that the "
            'history preference is set to "Remember history" before IndexedDB use of any '
            "kind is allowed."
        ),
    ),
    ErrorOverrideRule(
        match=(
            "The operation failed for reasons unrelated to the database itself and not "
            "covered by any other error code."
        ),
        replacement=(
            "Unable to access IndexedDB due to a possibly corrupt user profile. Try using the "
            '"Refresh Firefox" feature to reset your user profile.'
        ),
    ),
)


def error_string(error: BaseException | object) -> str:
    """String form of an error; falls back to the class name when empty."""
    text = str(error)
    if text == "" and isinstance(error, BaseException):
        return type(error).__name__
    return text


class ErrorNormalizer:
    """Map errors to display strings and group them for the error panel."""

    def __init__(
        self,
        overrides: Sequence[ErrorOverrideRule] = DEFAULT_ERROR_OVERRIDES,
        *,
        log: Callable[[BaseException | object], None] = log_error,
    ) -> None:
        self._overrides = tuple(overrides)
        self._log = log

    @classmethod
    def from_resolver(
        cls,
        resolver: ConfigResolver,
        *,
        log: Callable[[BaseException | object], None] = log_error,
    ) -> ErrorNormalizer:
        """Built-in rules followed by `errors.overrides` from configuration."""
        return cls((*DEFAULT_ERROR_OVERRIDES, *resolver.resolve_error_overrides()), log=log)

    @property
    def overrides(self) -> tuple[ErrorOverrideRule, ...]:
        return self._overrides

    def to_display_string(self, error: BaseException | object) -> str:
        text = error_string(error)
        for rule in self._overrides:
            if rule.match in text:
                return rule.replacement
        return text

    def render(self, errors: Iterable[BaseException | object]) -> list[DisplayLine]:
        """Log every error once, then group by display string.

        Lines keep the order in which each display string first appeared.
        """
        counts: dict[str, int] = {}
        for error in errors:
            try:
                self._log(error)
            except Exception as e:
                _logger.warning(f"error log failed: {type(e).__name__}: {e}")
            text = self.to_display_string(error)
            counts[text] = counts.get(text, 0) + 1

        return [DisplayLine(text=text, count=count) for text, count in counts.items()]
