# ==============================================================================
# EXCEPTIONS MODULE
# ==============================================================================
# Exception hierarchy shared by the archive backends, decoders and the
# export pipeline.
#
# Severity (how the export driver reacts):
#   - FatalScriptError:  aborts the whole run, no further lines processed
#   - ResolutionMiss:    warning, batch marked failed, run continues
#   - EntryNotFound /
#     ArchiveError /
#     DecodeError:       caught per entry, batch marked failed, run continues
# ==============================================================================

from typing import Optional


class ExporterError(Exception):
    """Base class for all Asset Exporter errors."""


# ==============================================================================
# SCRIPT ERRORS
# ==============================================================================

class FatalScriptError(ExporterError):
    """
    Malformed export script line (bad header syntax, unknown mode name).

    Attributes:
        line_number (int): 1-based line number in the script
        line (str):        The offending line, trimmed
        reason (str):      Human-readable description
    """

    def __init__(self, reason: str, line: str = "", line_number: int = 0):
        self.reason = reason
        self.line = line
        self.line_number = line_number

        location = f"line {line_number}: " if line_number else ""
        message = f"{location}{reason}"
        if line:
            message += f" ({line!r})"
        super().__init__(message)


class ResolutionMiss(ExporterError):
    """A wildcard pattern matched no archive entry."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"No entries match pattern: {pattern}")


# ==============================================================================
# ARCHIVE ERRORS
# ==============================================================================

class ArchiveError(ExporterError):
    """An archive could not be read (bad header, truncated data, encryption)."""


class EntryNotFound(ArchiveError):
    """The requested key is not present in the archive."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Entry not found: {key}")


# ==============================================================================
# DECODE ERRORS
# ==============================================================================

class DecodeError(ExporterError):
    """
    A resource could not be decoded.

    Raised for malformed data, unsupported format versions, missing paired
    files, or a resource kind without a decoder.
    """

    def __init__(self, reason: str, key: Optional[str] = None):
        self.reason = reason
        self.key = key
        if key:
            super().__init__(f"{key}: {reason}")
        else:
            super().__init__(reason)
