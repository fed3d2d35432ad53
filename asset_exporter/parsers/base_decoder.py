# ==============================================================================
# BASE DECODER MODULE
# ==============================================================================
# Interface shared by all resource decoders, plus the conversion of decoded
# objects into JSON-ready values.
#
# A decoder turns the bytes of one archive entry (or, for sprite bundles, a
# group of entries) into a structured Python object:
#
#   decoder = PaletteDecoder()
#   palette = archive.decode_resource("data/palette/a.pal", decoder)
#
# Decoders raise DecodeError for malformed data. Archive read errors
# (EntryNotFound, ArchiveError) propagate unchanged.
# ==============================================================================

import dataclasses
import hashlib
import struct
from abc import ABC, abstractmethod
from typing import Any

from ..core.errors import DecodeError


class ResourceDecoder(ABC):
    """
    Decodes archive entries into structured objects.

    Subclasses implement decode_bytes(); decode() reads the entry first.
    Decoders that need several entries override decode() instead.
    """

    # Short name shown by the "formats" command
    name = "resource"

    def decode(self, archive, key: str) -> Any:
        """
        Read and decode one entry.

        Args:
            archive: ArchiveProvider holding the entry
            key: Normalized entry key

        Returns:
            Decoded object

        Raises:
            DecodeError: malformed data
            EntryNotFound: the key is not in the archive
        """
        return self.decode_bytes(archive.read_raw_bytes(key), key)

    @abstractmethod
    def decode_bytes(self, data: bytes, key: str = "") -> Any:
        """
        Decode raw entry bytes.

        Args:
            data: Entry contents
            key: Entry key, used in error messages

        Returns:
            Decoded object
        """
        pass

    def fail(self, reason: str, key: str = "") -> DecodeError:
        """Build a DecodeError naming this decoder's format."""
        return DecodeError(f"{self.name}: {reason}", key or None)


# ==============================================================================
# BYTE READER
# ==============================================================================

class ByteReader:
    """Sequential little-endian reader; short reads raise struct.error."""

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def unpack(self, fmt: str) -> tuple:
        values = struct.unpack_from('<' + fmt, self.data, self.offset)
        self.offset += struct.calcsize('<' + fmt)
        return values

    def skip(self, count: int):
        if count > self.remaining():
            raise struct.error(f"need {count} bytes at offset {self.offset}")
        self.offset += count

    def string(self, length: int) -> str:
        """Fixed-size NUL-padded name; UTF-8, else EUC-KR."""
        raw = self.data[self.offset:self.offset + length]
        if len(raw) != length:
            raise struct.error(f"string of {length} bytes truncated")
        self.offset += length
        raw = raw.split(b'\x00', 1)[0]
        try:
            return raw.decode('utf-8')
        except UnicodeDecodeError:
            return raw.decode('euc-kr', errors='replace')


# ==============================================================================
# JSON CONVERSION
# ==============================================================================

def to_json_ready(value: Any) -> Any:
    """
    Convert a decoded object into plain JSON types.

    Dataclasses become dicts, tuples become lists, and byte strings are
    summarized by size and MD5 (pixel data and palettes are not worth
    spelling out in JSON).

    Args:
        value: Decoded object

    Returns:
        Value built only from dict, list, str, int, float, bool and None
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_json_ready(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, dict):
        return {str(k): to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_ready(v) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return {"size": len(value), "md5": hashlib.md5(value).hexdigest()}
    return value
