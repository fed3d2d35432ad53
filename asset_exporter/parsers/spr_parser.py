# ==============================================================================
# SPR PARSER MODULE
# ==============================================================================
# Decoder for SPR sprite sheets (static frames; animation lives in ACT).
#
# Layout:
#   "SP" | minor u8 | major u8 | indexed count u16 | rgba count u16 (>= 2.0)
#   indexed frames: w u16, h u16, [size u16 + RLE body (>= 2.1) | raw body]
#   rgba frames:    w u16, h u16, w*h*4 bytes ARGB, bottom row first
#   trailing 1024-byte palette when there are indexed frames
#
# Palette alpha is not stored; every colour is opaque except index 0.
# ==============================================================================

import struct
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from .base_decoder import ResourceDecoder

# ==============================================================================
# CONSTANTS
# ==============================================================================

SPR_SIGNATURE = b"SP"
PALETTE_SIZE = 1024

# Frame count sanity limit per kind
MAX_FRAME_COUNT = 5000

# Frames larger than this are not rendered
MAX_RENDER_SIZE = 2048


def _grayscale_palette() -> bytes:
    ramp = np.arange(256, dtype=np.uint8)
    table = np.stack([ramp, ramp, ramp, np.full(256, 255, dtype=np.uint8)], axis=1)
    table[0] = 0
    return table.tobytes()


# Used when a sprite ships no palette of its own
DEFAULT_PALETTE = _grayscale_palette()


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class SPRFrame:
    """
    One bitmap of a sprite sheet.

    Attributes:
        width (int): Width in pixels
        height (int): Height in pixels
        kind (str): "indexed" (one palette index per pixel) or "rgba"
        data (bytes): Decompressed pixel bytes
    """
    width: int = 0
    height: int = 0
    kind: str = "indexed"
    data: bytes = b""

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass
class SPRSprite:
    """Decoded sprite sheet. Frame indices count indexed frames first."""
    version: Tuple[int, int] = (2, 1)
    indexed_frames: List[SPRFrame] = field(default_factory=list)
    rgba_frames: List[SPRFrame] = field(default_factory=list)
    palette: bytes = DEFAULT_PALETTE

    def get_total_frames(self) -> int:
        return len(self.indexed_frames) + len(self.rgba_frames)

    def get_frame(self, index: int) -> Optional[SPRFrame]:
        frames = self.indexed_frames + self.rgba_frames
        if 0 <= index < len(frames):
            return frames[index]
        return None

    def get_frame_image(self, index: int) -> Optional[Image.Image]:
        """
        Render one frame as an RGBA image.

        Args:
            index: Frame index across both frame lists

        Returns:
            Image, or None for missing, empty or oversized frames
        """
        frame = self.get_frame(index)
        if frame is None or frame.is_empty:
            return None

        if frame.width > MAX_RENDER_SIZE or frame.height > MAX_RENDER_SIZE:
            print(f"[WARN] Frame too large: {frame.width}x{frame.height}, skipped")
            return None

        shape = (frame.height, frame.width)

        if frame.kind == "rgba":
            pixels = np.frombuffer(_fit(frame.data, frame.width * frame.height * 4),
                                   dtype=np.uint8).reshape(shape + (4,))
            # 1.x files store ABGR, later ones ARGB
            order = [3, 2, 1, 0] if self.version < (2, 0) else [1, 2, 3, 0]
            rgba = np.flipud(pixels)[:, :, order]
        else:
            lut = np.frombuffer(_fit(self.palette, PALETTE_SIZE), dtype=np.uint8).reshape(256, 4)
            indices = np.frombuffer(_fit(frame.data, frame.width * frame.height), dtype=np.uint8)
            rgba = lut[indices].reshape(shape + (4,))

        return Image.fromarray(np.ascontiguousarray(rgba), 'RGBA')


def _fit(data: bytes, size: int) -> bytes:
    """Zero-pad or cut data to exactly size bytes."""
    return data[:size].ljust(size, b'\x00')


def _opaque_palette(raw: bytes) -> bytes:
    table = np.frombuffer(raw, dtype=np.uint8).copy().reshape(256, 4)
    table[:, 3] = 255
    table[0, 3] = 0
    return table.tobytes()


# ==============================================================================
# SPR PARSER
# ==============================================================================

class SPRParser(ResourceDecoder):
    """
    Decoder for SPR sprite sheets.

    Usage:
        sprite = SPRParser().load_from_bytes(data)
        image = sprite.get_frame_image(0)
    """

    name = "sprite"

    def decode_bytes(self, data: bytes, key: str = "") -> SPRSprite:
        return self.load_from_bytes(data, key)

    def load_from_bytes(self, data: bytes, key: str = "") -> SPRSprite:
        """
        Decode a sprite sheet.

        Truncated frame data ends the frame list early with a warning;
        the frames read so far are kept.

        Raises:
            DecodeError: bad signature, unsupported version or no frames
        """
        if len(data) < 6:
            raise self.fail("file too small", key)
        if data[:2] != SPR_SIGNATURE:
            raise self.fail(f"invalid SPR signature: {data[:2]!r}", key)

        version = (data[3], data[2])
        if not 1 <= version[0] <= 3:
            raise self.fail(f"unsupported SPR version: {version[0]}.{version[1]}", key)

        if version >= (2, 0):
            if len(data) < 8:
                raise self.fail("header truncated", key)
            indexed_count, rgba_count = struct.unpack_from('<HH', data, 4)
            offset = 8
        else:
            indexed_count, rgba_count = struct.unpack_from('<H', data, 4)[0], 0
            offset = 6

        if max(indexed_count, rgba_count) > MAX_FRAME_COUNT:
            raise self.fail(f"unusually high frame count: {indexed_count}+{rgba_count}", key)

        sprite = SPRSprite(version=version)
        end = len(data)
        if indexed_count and end >= offset + PALETTE_SIZE:
            end -= PALETTE_SIZE
            sprite.palette = _opaque_palette(data[end:])

        rle = version >= (2, 1)
        offset = self._read_frames(data, offset, end, indexed_count, "indexed",
                                   sprite.indexed_frames, rle)
        self._read_frames(data, offset, end, rgba_count, "rgba", sprite.rgba_frames, False)

        if sprite.get_total_frames() == 0:
            raise self.fail("SPR contains 0 frames", key)

        return sprite

    def _read_frames(self, data: bytes, offset: int, end: int, count: int, kind: str,
                     frames: List[SPRFrame], rle: bool) -> int:
        """Append up to count frames of one kind; returns the new offset."""
        bytes_per_pixel = 4 if kind == "rgba" else 1

        for i in range(count):
            if offset + 4 > end:
                print(f"[WARN] Ran out of data reading {kind} frame {i}")
                break

            width, height = struct.unpack_from('<HH', data, offset)
            offset += 4
            frame = SPRFrame(width=width, height=height, kind=kind)
            frames.append(frame)
            if frame.is_empty:
                continue

            if rle:
                if offset + 2 > end:
                    break
                size = min(struct.unpack_from('<H', data, offset)[0], end - offset - 2)
                offset += 2
                frame.data = decompress_rle(data[offset:offset + size], width * height)
            else:
                size = min(width * height * bytes_per_pixel, end - offset)
                frame.data = data[offset:offset + size]
            offset += size

        return offset


def decompress_rle(compressed: bytes, expected_size: int) -> bytes:
    """
    Expand run-length encoded indexed pixels.

    A zero byte is followed by the length of a run of zeros; any other
    byte is a literal pixel. A trailing zero with no count is one pixel.

    Args:
        compressed: Encoded pixel bytes
        expected_size: width * height

    Returns:
        Exactly expected_size bytes
    """
    out = bytearray()
    pos = 0
    while pos < len(compressed) and len(out) < expected_size:
        value = compressed[pos]
        pos += 1
        if value == 0 and pos < len(compressed):
            out.extend(bytes(compressed[pos]))
            pos += 1
        else:
            out.append(value)
    return _fit(bytes(out), expected_size)
