"""Value objects passed between the import core and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape
from typing import Any

from dictsync.core.errors import json_to_error


@dataclass(frozen=True)
class ImportDetails:
    """Options shared by every file of one import batch."""

    prefix_wildcards_supported: bool = False

    @classmethod
    def from_options_full(cls, options_full: dict[str, Any]) -> ImportDetails:
        database = options_full.get("global", {}).get("database", {})
        return cls(prefix_wildcards_supported=bool(database.get("prefixWildcardsSupported", False)))


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one archive import, as reported by the importer.

    `sequenced` means the dictionary defines an explicit entry ordering.
    `title` is the unique dictionary name, used as a settings key.
    """

    title: str
    sequenced: bool = False
    errors: tuple[BaseException, ...] = ()


@dataclass(frozen=True)
class WriteTarget:
    """A single declarative settings mutation."""

    path: str
    value: Any
    action: str = "set"

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class SettingsWriteResult:
    """Outcome of one WriteTarget. `error` is a serialized error, or None."""

    result: Any = None
    error: dict[str, Any] | None = None

    def to_error(self) -> BaseException | None:
        if self.error is None:
            return None
        return json_to_error(self.error)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SettingsWriteResult:
        return cls(result=data.get("result"), error=data.get("error"))


@dataclass(frozen=True)
class ProgressReport:
    total: int
    current: int

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.current / self.total * 100.0


@dataclass(frozen=True)
class DisplayLine:
    """One grouped error line in the error panel."""

    text: str
    count: int = 1

    @property
    def count_suffix(self) -> str | None:
        return f"({self.count})" if self.count > 1 else None

    @property
    def plain(self) -> str:
        suffix = self.count_suffix
        return f"{self.text} {suffix}" if suffix else self.text

    def to_html(self) -> str:
        suffix = self.count_suffix
        if suffix:
            return f"<p>{escape(self.text)} <em>{suffix}</em></p>"
        return f"<p>{escape(self.text)}</p>"


@dataclass
class ImportPanelState:
    """Observable state of the import panel.

    `modifying` is the busy flag a UI binds its import-affecting controls to.
    """

    modifying: bool = False
    spinner_visible: bool = False
    progress_visible: bool = False
    progress_percent: float = 0.0
    import_info_text: str = ""
    import_info_visible: bool = False
    purge_notification_visible: bool = False
    errors_visible: bool = False
    error_lines: list[DisplayLine] = field(default_factory=list)

    def snapshot(self) -> dict[str, Any]:
        return {
            "modifying": self.modifying,
            "spinner_visible": self.spinner_visible,
            "progress_visible": self.progress_visible,
            "progress_percent": self.progress_percent,
            "import_info_text": self.import_info_text,
            "import_info_visible": self.import_info_visible,
            "purge_notification_visible": self.purge_notification_visible,
            "errors_visible": self.errors_visible,
            "error_lines": [line.plain for line in self.error_lines],
        }
