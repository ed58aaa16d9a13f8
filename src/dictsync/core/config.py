"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (DICTSYNC_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from dictsync.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy."""

    level_name: str  # quiet | normal | verbose | debug
    emit_error: bool
    emit_warning: bool
    emit_info: bool
    emit_verbose: bool
    emit_debug: bool
    sources: dict[str, ConfigSource]


@dataclass(frozen=True)
class ErrorOverrideRule:
    """Rewrite rule: when `match` occurs in an error string, show `replacement`."""

    match: str
    replacement: str


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'logging': {'level': 'debug'}},
            user_config_path=Path('~/.config/dictsync/config.yaml')
        )

        level, source = resolver.resolve('logging.level')
        # level = 'debug', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority)
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/dictsync/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/dictsync/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a boolean key, accepting 'true'/'false' style strings."""
        found = self._try_resolve_value(key)
        if found is None:
            return default
        value, _src = found
        if isinstance(value, bool):
            return value
        norm = str(value).strip().lower()
        if norm in {"1", "true", "yes", "on"}:
            return True
        if norm in {"0", "false", "no", "off"}:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Allowed values (after normalization):
            quiet | normal | verbose | debug

        If the key is not provided by any source, returns DEFAULT_LOGGING_LEVEL.

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        level, _src = self._resolve_logging_level_and_source()
        return level

    def resolve_logging_policy(self) -> LoggingPolicy:
        """Resolve the logging policy (side-effect free)."""
        level_name, src = self._resolve_logging_level_and_source()
        rank = ["quiet", "normal", "verbose", "debug"].index(level_name)

        return LoggingPolicy(
            level_name=level_name,
            emit_error=True,
            emit_warning=True,
            emit_info=rank >= 1,
            emit_verbose=rank >= 2,
            emit_debug=rank >= 3,
            sources={"level_name": src},
        )

    def resolve_settings_path(self) -> Path:
        """Resolve settings_path (YAML file backing the settings store)."""
        key = "settings_path"
        value, _src = self.resolve(key)
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigError(f"Config key '{key}' must be a non-empty string")
        return Path(value).expanduser()

    def resolve_error_overrides(self) -> list[ErrorOverrideRule]:
        """Resolve user-supplied error override rules.

        Each entry is a two-item list: [match_substring, replacement_message].
        """
        key = "errors.overrides"
        found = self._try_resolve_value(key)
        if found is None:
            return []
        value, _src = found
        if not isinstance(value, list):
            raise ConfigError(f"Config key '{key}' must be a list")

        rules: list[ErrorOverrideRule] = []
        for i, item in enumerate(value):
            if (
                not isinstance(item, (list, tuple))
                or len(item) != 2
                or not all(isinstance(part, str) and part for part in item)
            ):
                raise ConfigError(f"Invalid '{key}' entry #{i}: expected [match, replacement]")
            rules.append(ErrorOverrideRule(match=item[0], replacement=item[1]))
        return rules

    def _resolve_logging_level_and_source(self) -> tuple[str, ConfigSource]:
        key = "logging.level"
        found = self._try_resolve_value(key)
        if found is None:
            return DEFAULT_LOGGING_LEVEL, ConfigSource(
                value=DEFAULT_LOGGING_LEVEL,
                source="default",
            )

        value, source = found
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")

        return norm, ConfigSource(value=norm, source=source)

    def _try_resolve_value(self, key: str) -> tuple[Any, str] | None:
        try:
            return self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return None
            raise

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: DICTSYNC_KEY_NAME
        Example: DICTSYNC_LOGGING_LEVEL, DICTSYNC_SETTINGS_PATH
        """
        env_key = f"DICTSYNC_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        """Load user config file (cached)."""
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        """Load system config file (cached)."""
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except Exception as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "settings_path": str(Path.home() / ".config" / "dictsync" / "settings.yaml"),
            "diagnostics_dir": str(Path.home() / ".cache" / "dictsync" / "diagnostics"),
            "diagnostics": {
                "enabled": False,
            },
            "logging": {
                "level": "normal",
                "color": True,
            },
            "errors": {
                "overrides": [],
            },
        }
