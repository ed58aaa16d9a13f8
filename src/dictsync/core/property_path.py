"""Structured addresses into a nested settings tree.

A path is a list of parts: strings address mapping keys, non-negative ints
address list items. Its stable string form looks like
`profiles[0].options.dictionaries["JMdict (English)"]`.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from dictsync.core.errors import PropertyPathError

PathPart = str | int

_IDENTIFIER = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_INDEX = re.compile(r"[0-9]+")


def get_path_string(parts: Sequence[PathPart]) -> str:
    """Serialize path parts to their string form.

    Raises:
        PropertyPathError: On negative indices or unsupported part types
    """
    out: list[str] = []
    for part in parts:
        if isinstance(part, bool) or not isinstance(part, (int, str)):
            raise PropertyPathError(f"Invalid path part type: {type(part).__name__}")
        if isinstance(part, int):
            if part < 0:
                raise PropertyPathError(f"Invalid index: {part}")
            out.append(f"[{part}]")
        elif _IDENTIFIER.fullmatch(part):
            out.append(f".{part}" if out else part)
        else:
            escaped = part.replace("\\", "\\\\").replace('"', '\\"')
            out.append(f'["{escaped}"]')
    return "".join(out)


def get_path_array(text: str) -> list[PathPart]:
    """Parse a path string produced by get_path_string.

    Raises:
        PropertyPathError: If the string is malformed
    """
    parts: list[PathPart] = []
    i = 0
    n = len(text)

    while i < n:
        if text[i] == "[":
            i += 1
            if i < n and text[i] == '"':
                i += 1
                chars: list[str] = []
                while True:
                    if i >= n:
                        raise PropertyPathError(f"Unterminated string in path: {text!r}")
                    c = text[i]
                    if c == "\\":
                        if i + 1 >= n:
                            raise PropertyPathError(f"Dangling escape in path: {text!r}")
                        chars.append(text[i + 1])
                        i += 2
                    elif c == '"':
                        i += 1
                        break
                    else:
                        chars.append(c)
                        i += 1
                parts.append("".join(chars))
            else:
                m = _INDEX.match(text, i)
                if m is None:
                    raise PropertyPathError(f"Invalid index at offset {i} in path: {text!r}")
                parts.append(int(m.group()))
                i = m.end()
            if i >= n or text[i] != "]":
                raise PropertyPathError(f"Expected ']' at offset {i} in path: {text!r}")
            i += 1
            continue

        if parts:
            if text[i] != ".":
                raise PropertyPathError(f"Expected '.' at offset {i} in path: {text!r}")
            i += 1
        m = _IDENTIFIER.match(text, i)
        if m is None:
            raise PropertyPathError(f"Invalid identifier at offset {i} in path: {text!r}")
        parts.append(m.group())
        i = m.end()

    return parts


class PropertyAccessor:
    """Read and write values in a nested dict/list tree by path parts."""

    def __init__(self, root: Any) -> None:
        self._root = root

    @property
    def root(self) -> Any:
        return self._root

    def get(self, parts: Sequence[PathPart]) -> Any:
        current = self._root
        for i, part in enumerate(parts):
            current = self._child(current, part, parts[: i + 1])
        return current

    def set(self, parts: Sequence[PathPart], value: Any) -> None:
        """Assign `value` at `parts`. Every parent container must already exist."""
        if not parts:
            raise PropertyPathError("Cannot set the root of the settings tree")

        container = self.get(parts[:-1])
        key = parts[-1]
        if isinstance(container, dict):
            if not isinstance(key, str):
                raise PropertyPathError(f"Invalid key for mapping: {get_path_string(parts)}")
            container[key] = value
        elif isinstance(container, list):
            if not isinstance(key, int) or not 0 <= key < len(container):
                raise PropertyPathError(f"Invalid index: {get_path_string(parts)}")
            container[key] = value
        else:
            raise PropertyPathError(f"Invalid path: {get_path_string(parts)}")

    @staticmethod
    def _child(container: Any, part: PathPart, walked: Sequence[PathPart]) -> Any:
        if isinstance(container, dict) and isinstance(part, str) and part in container:
            return container[part]
        if (
            isinstance(container, list)
            and isinstance(part, int)
            and not isinstance(part, bool)
            and 0 <= part < len(container)
        ):
            return container[part]
        raise PropertyPathError(f"Invalid path: {get_path_string(walked)}")
