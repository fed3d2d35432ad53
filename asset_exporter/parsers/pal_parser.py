# ==============================================================================
# PAL (PALETTE) FILE PARSER
# ==============================================================================
# This module reads Ragnarok Online .pal palette files.
#
# PAL FILE FORMAT:
# ----------------
# PAL files are simple 256-color palettes used by indexed sprites.
# Each color is 4 bytes (RGBA), so the file is always 1024 bytes.
#
# PALETTE USAGE:
#   - Default palette: Used when no .pal file is specified
#   - Character palettes: Different hair colors, outfit colors, etc.
#   - Index 0 is always transparent (alpha = 0)
#
# USAGE EXAMPLE:
# --------------
#   parser = PALParser()
#   palette = parser.load_from_bytes(archive.read_raw_bytes("data/a.pal"))
#   image = palette.to_image()
#
# REFERENCES:
# -----------
#   - https://ragnarokresearchlab.github.io/file-formats/pal/
# ==============================================================================

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
from PIL import Image

from .base_decoder import ResourceDecoder


# ==============================================================================
# CONSTANTS
# ==============================================================================

# Palette file size (always 1024 bytes = 256 colors * 4 bytes each)
PALETTE_SIZE = 1024

# Number of colors in a palette
PALETTE_COLOR_COUNT = 256


# ==============================================================================
# PALETTE DATA CLASS
# ==============================================================================

@dataclass
class Palette:
    """
    A decoded 256-color palette.

    Attributes:
        colors (List[Tuple]): 256 RGBA color tuples
    """
    colors: List[Tuple[int, int, int, int]] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        """Pack back into 1024 RGBA bytes."""
        return bytes(channel for color in self.colors for channel in color)

    def to_image(self, cell_size: int = 16) -> Image.Image:
        """
        Create a visual representation of the palette.

        Creates a 16x16 grid showing all 256 colors. Transparent entries
        are drawn as a grey checkerboard.

        Args:
            cell_size: Size of each color cell in pixels

        Returns:
            RGBA PIL.Image of the grid
        """
        size = 16 * cell_size
        colors = np.array(self.colors, dtype=np.uint8).reshape(16, 16, 4)

        # Expand each color to a cell_size x cell_size block
        grid = colors.repeat(cell_size, axis=0).repeat(cell_size, axis=1)
        grid[:, :, 3] = 255

        yy, xx = np.mgrid[0:size, 0:size]
        checker = np.where(((xx // 4) + (yy // 4)) % 2 == 1, 192, 128).astype(np.uint8)
        transparent = colors[:, :, 3].repeat(cell_size, axis=0).repeat(cell_size, axis=1) < 128
        for channel in range(3):
            grid[:, :, channel] = np.where(transparent, checker, grid[:, :, channel])

        return Image.fromarray(grid, 'RGBA')


# ==============================================================================
# PAL PARSER CLASS
# ==============================================================================

class PALParser(ResourceDecoder):
    """
    Parser for Ragnarok Online .pal palette files.

    Usage:
        parser = PALParser()
        palette = parser.load_from_bytes(palette_data)
        r, g, b, a = palette.colors[1]
    """

    name = "palette"

    def decode_bytes(self, data: bytes, key: str = "") -> Palette:
        return self.load_from_bytes(data, key)

    def load_from_bytes(self, data: bytes, key: str = "") -> Palette:
        """
        Load a palette from raw bytes.

        Args:
            data: Raw bytes of the palette (should be 1024 bytes)
            key: Entry key for error messages

        Returns:
            Decoded Palette

        Raises:
            DecodeError: fewer than 1024 bytes
        """
        if len(data) < PALETTE_SIZE:
            raise self.fail(
                f"palette data too small: {len(data)} bytes (expected {PALETTE_SIZE})", key
            )

        colors = []
        for i in range(PALETTE_COLOR_COUNT):
            r, g, b, a = data[i * 4:i * 4 + 4]

            # Index 0 is always transparent in RO
            if i == 0:
                a = 0
            # Fix common issue where alpha is 0 in file but should be 255
            elif a == 0:
                a = 255
            colors.append((r, g, b, a))

        return Palette(colors=colors)
