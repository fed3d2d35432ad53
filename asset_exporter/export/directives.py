# ==============================================================================
# DIRECTIVE PARSER MODULE
# ==============================================================================
# Line-at-a-time interpreter of the export script language.
#
# Script syntax (one directive per line, surrounding whitespace ignored):
#
#   # comment                   ignored
#   [json, raw]                 mode change: replaces the active output modes
#   data/palette/*.pal          pattern: export every matching entry
#
# Mode names (case-insensitive):
#   raw       untouched entry bytes
#   json      structured / text output ("text" is an alias)
#   texture   PNG images for image-like entries
#
# A header that is not closed, or holds an unknown or empty mode name (as in
# "[]" or "[json,]"), is a FatalScriptError: the whole run stops.
# ==============================================================================

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from ..core.errors import FatalScriptError


# ==============================================================================
# EXPORT MODE
# ==============================================================================

@dataclass(frozen=True)
class ExportMode:
    """
    Set of active output representations.

    Immutable: a mode change builds a new ExportMode, so a snapshot handed to
    the dispatcher can never change underneath it.
    """
    raw: bool = False
    structured: bool = True
    texture: bool = False

    @property
    def names(self) -> list:
        """Mode names in canonical order, as written in a header."""
        result = []
        if self.raw:
            result.append("raw")
        if self.structured:
            result.append("json")
        if self.texture:
            result.append("texture")
        return result

    def __str__(self):
        return "[" + ", ".join(self.names) + "]"

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "ExportMode":
        """
        Build a mode from mode names.

        Raises:
            ValueError: unknown mode name
        """
        flags = {"raw": False, "structured": False, "texture": False}
        for name in names:
            flag = MODE_NAMES.get(name.strip().lower())
            if flag is None:
                raise ValueError(f"Unknown export mode: {name}")
            flags[flag] = True
        return cls(**flags)


# Header token -> ExportMode flag
MODE_NAMES = {
    "raw": "raw",
    "json": "structured",
    "text": "structured",
    "texture": "texture",
}

DEFAULT_MODE = ExportMode()


# ==============================================================================
# DIRECTIVES
# ==============================================================================

@dataclass(frozen=True)
class Comment:
    text: str
    line_number: int = 0


@dataclass(frozen=True)
class ModeChange:
    mode: ExportMode
    line_number: int = 0


@dataclass(frozen=True)
class Pattern:
    text: str
    line_number: int = 0


Directive = Union[Comment, ModeChange, Pattern]


# ==============================================================================
# PARSER
# ==============================================================================

class DirectiveParser:
    """Classifies script lines into directives."""

    def parse_line(self, line: str, line_number: int = 0) -> Optional[Directive]:
        """
        Classify one script line.

        Args:
            line: Raw line (trailing newline allowed)
            line_number: 1-based position, used in errors

        Returns:
            A directive, or None for a blank line

        Raises:
            FatalScriptError: malformed mode header
        """
        text = line.strip()
        if not text:
            return None

        if text.startswith('#'):
            return Comment(text, line_number)

        if text.startswith('['):
            return ModeChange(self._parse_header(text, line_number), line_number)

        return Pattern(text, line_number)

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Directive]:
        """
        Classify lines lazily, in order, skipping blank ones.

        Raises FatalScriptError at the first malformed header; directives
        before it have already been yielded.
        """
        for line_number, line in enumerate(lines, start=1):
            directive = self.parse_line(line, line_number)
            if directive is not None:
                yield directive

    def _parse_header(self, text: str, line_number: int) -> ExportMode:
        if not text.endswith(']'):
            raise FatalScriptError("mode header is missing ']'", text, line_number)

        tokens = [token.strip().lower() for token in text[1:-1].split(',')]
        for token in tokens:
            if not token:
                raise FatalScriptError("mode header has an empty mode name", text, line_number)
            if token not in MODE_NAMES:
                raise FatalScriptError(f"unknown export mode '{token}'", text, line_number)

        return ExportMode.from_names(tokens)
