"""Configuration file language and the pure layer merge.

Configuration files use a small, side-effect free subset of shell
assignment syntax::

    # comment
    OUTPUT=ISO
    BACKUP_URL="nfs://server/$HOSTNAME"
    COPY_AS_IS=( /etc/hosts '/etc/some file' )
    BACKUP_PROG_EXCLUDE+=( "$VAR_DIR/output/*" )

Single quotes are literal.  Double quotes and bare words expand
``$NAME`` and ``${NAME}`` against the values assigned so far, including
those from earlier layers; unknown names expand to the empty string.
Anything that is not an assignment is rejected.

Guarantees
----------
* :func:`apply_layer` never mutates its input; it returns a new mapping.
* No file-system access; callers pass the text in.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from pathlib import Path

from recoverctl.core.models import ConfigValue
from recoverctl.exceptions import ConfigurationError

_ASSIGN_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(\+?=)")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BLANKS = " \t\r"
_WORD_END = " \t\r\n()"


class LayerKind(enum.Enum):
    """How a missing or suspicious layer is treated."""

    DEFAULTS = "defaults"
    """Must exist."""

    OPTIONAL = "optional"
    """Skipped when absent or unreadable."""

    USER = "user"
    """Optional, but a carriage return in it is fatal."""

    APPEND = "append"
    """Explicitly requested; a missing file is only a warning."""


@dataclass(frozen=True, slots=True)
class ConfigLayer:
    """One configuration source in the precedence order."""

    kind: LayerKind
    path: Path

    @property
    def forbids_carriage_return(self) -> bool:
        return self.kind is LayerKind.USER


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def apply_layer(
    values: Mapping[str, ConfigValue],
    text: str,
    source: str,
    *,
    forbid_carriage_return: bool = False,
    readonly: Collection[str] = (),
) -> dict[str, ConfigValue]:
    """Apply the assignments in *text* on top of *values*.

    Parameters
    ----------
    values:
        Settings produced by all earlier layers.
    text:
        Full content of the layer.
    source:
        Name used in error messages (usually the file path).
    forbid_carriage_return:
        Reject the whole layer if it contains ``\\r``.
    readonly:
        Names no statement in this layer may assign.

    Raises
    ------
    ConfigurationError
        For disallowed content: carriage returns where forbidden,
        non-assignment statements, unterminated quotes, or assignments
        to read-only names.
    """
    if forbid_carriage_return and "\r" in text:
        raise ConfigurationError(
            f"{source} contains a carriage return character.",
            hint="Convert the file to Unix line endings (e.g. with dos2unix).",
        )
    return _LayerParser(text, source, dict(values), readonly).run()


def merge_append(existing: ConfigValue | None, addition: ConfigValue) -> ConfigValue:
    """Combine an existing value with the right-hand side of ``+=``.

    Appending an array extends the array; appending a string to an
    array adds one element; appending a string to a string concatenates.
    """
    if isinstance(addition, tuple):
        if existing is None or existing == "":
            return addition
        base = existing if isinstance(existing, tuple) else (existing,)
        return base + addition
    if isinstance(existing, tuple):
        return existing + (addition,)
    return (existing or "") + addition


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _LayerParser:
    """Single-pass statement reader that expands as it goes."""

    def __init__(
        self,
        text: str,
        source: str,
        values: dict[str, ConfigValue],
        readonly: Collection[str],
    ) -> None:
        self._text = text
        self._source = source
        self._values = values
        self._readonly = readonly
        self._pos = 0

    def run(self) -> dict[str, ConfigValue]:
        while self._skip_separators(newlines=True):
            start = self._pos
            match = _ASSIGN_RE.match(self._text, self._pos)
            if match is None:
                raise self._error(
                    start,
                    f"unsupported statement: {self._line_text(start)!r}",
                )
            name, operator = match.groups()
            self._pos = match.end()

            value: ConfigValue
            if self._peek() == "(":
                self._pos += 1
                value = tuple(self._read_array(start))
            else:
                value = self._read_scalar()
            self._expect_end_of_statement()

            if name in self._readonly:
                raise self._error(start, f"{name} is read-only")
            if operator == "+=":
                value = merge_append(self._values.get(name), value)
            self._values[name] = value
        return self._values

    # -- statement structure ------------------------------------------------

    def _read_array(self, start: int) -> list[str]:
        words: list[str] = []
        while True:
            if not self._skip_separators(newlines=True):
                raise self._error(start, "missing ')' to close the array")
            if self._peek() == ")":
                self._pos += 1
                return words
            if self._peek() == "(":
                raise self._error(self._pos, "nested '(' is not allowed")
            words.append(self._read_word())

    def _read_scalar(self) -> str:
        if self._peek() in ("", "\n", " ", "\t", "\r"):
            return ""
        word = self._read_word()
        if self._peek() in ("(", ")"):
            raise self._error(self._pos, f"unexpected {self._peek()!r}")
        return word

    def _expect_end_of_statement(self) -> None:
        self._skip_separators(newlines=False)
        char = self._peek()
        if char not in ("", "\n"):
            raise self._error(
                self._pos,
                "only one value per assignment; quote values containing spaces",
            )

    def _skip_separators(self, *, newlines: bool) -> bool:
        """Skip blanks and comments; return False at end of text."""
        text = self._text
        while self._pos < len(text):
            char = text[self._pos]
            if char in _BLANKS or (newlines and char == "\n"):
                self._pos += 1
            elif char == "\\" and text.startswith("\\\n", self._pos):
                self._pos += 2
            elif char == "#":
                end = text.find("\n", self._pos)
                self._pos = len(text) if end < 0 else end
            else:
                return True
        return False

    # -- words ----------------------------------------------------------------

    def _read_word(self) -> str:
        text = self._text
        parts: list[str] = []
        while self._pos < len(text) and text[self._pos] not in _WORD_END:
            char = text[self._pos]
            if char == "'":
                end = text.find("'", self._pos + 1)
                if end < 0:
                    raise self._error(self._pos, "unterminated single quote")
                parts.append(text[self._pos + 1:end])
                self._pos = end + 1
            elif char == '"':
                parts.append(self._read_double_quoted())
            elif char == "\\":
                if self._pos + 1 < len(text) and text[self._pos + 1] != "\n":
                    parts.append(text[self._pos + 1])
                self._pos += 2
            elif char == "$":
                parts.append(self._read_expansion())
            else:
                parts.append(char)
                self._pos += 1
        return "".join(parts)

    def _read_double_quoted(self) -> str:
        text = self._text
        start = self._pos
        self._pos += 1
        parts: list[str] = []
        while self._pos < len(text):
            char = text[self._pos]
            if char == '"':
                self._pos += 1
                return "".join(parts)
            if char == "\\" and self._pos + 1 < len(text):
                escaped = text[self._pos + 1]
                if escaped in '"\\$':
                    parts.append(escaped)
                elif escaped != "\n":
                    parts.append(char + escaped)
                self._pos += 2
            elif char == "$":
                parts.append(self._read_expansion())
            else:
                parts.append(char)
                self._pos += 1
        raise self._error(start, "unterminated double quote")

    def _read_expansion(self) -> str:
        text = self._text
        start = self._pos
        if text.startswith("${", start):
            end = text.find("}", start + 2)
            name = text[start + 2:end] if end >= 0 else ""
            if end < 0 or not _NAME_RE.fullmatch(name):
                raise self._error(start, "bad ${...} substitution")
            self._pos = end + 1
            return self._lookup(name)
        match = _NAME_RE.match(text, start + 1)
        if match is None:
            self._pos += 1
            return "$"
        self._pos = match.end()
        return self._lookup(match.group())

    def _lookup(self, name: str) -> str:
        value = self._values.get(name, "")
        if isinstance(value, tuple):
            return " ".join(value)
        return value

    # -- diagnostics ------------------------------------------------------------

    def _peek(self) -> str:
        return self._text[self._pos:self._pos + 1]

    def _line_text(self, pos: int) -> str:
        end = self._text.find("\n", pos)
        return self._text[pos:] if end < 0 else self._text[pos:end]

    def _error(self, pos: int, message: str) -> ConfigurationError:
        line = self._text.count("\n", 0, pos) + 1
        return ConfigurationError(f"{self._source}:{line}: {message}")
