# ==============================================================================
# GAT PARSER MODULE
# ==============================================================================
# Parser for Ragnarok Online GAT (Ground Altitude) files.
#
# GAT files hold the walkability grid of a map: one cell per ground tile,
# each with four corner heights and a terrain type.
#
# File Structure:
#   - Signature: "GRAT" (4 bytes)
#   - Version: major, minor (1 byte each)
#   - Width, height (int32 each)
#   - Cells (20 bytes each, row-major):
#       4 x float32 corner heights (bottom-left, bottom-right,
#       top-left, top-right), int32 terrain type
#
# The decoder does not return every cell (large maps have ~160k); it
# returns dimensions, height range and a histogram of terrain types.
#
# References:
#   - https://ragnarokresearchlab.github.io/file-formats/gat/
# ==============================================================================

import struct
from dataclasses import dataclass, field
from typing import Dict

from .base_decoder import ResourceDecoder


GAT_SIGNATURE = b"GRAT"
GAT_HEADER_SIZE = 14
GAT_CELL_SIZE = 20

# Terrain type names
TERRAIN_TYPES = {
    0: "walkable",
    1: "blocked",
    2: "water_nonwalkable",
    3: "water_walkable",
    4: "water_snipable",
    5: "cliff_snipable",
    6: "cliff",
}


@dataclass
class GATMap:
    """
    Summary of a decoded altitude map.

    Attributes:
        version (str):            "major.minor"
        width (int):              Cells per row
        height (int):             Rows
        min_altitude (float):     Lowest corner height
        max_altitude (float):     Highest corner height
        terrain (Dict[str, int]): Cell count per terrain type name
    """
    version: str = ""
    width: int = 0
    height: int = 0
    min_altitude: float = 0.0
    max_altitude: float = 0.0
    terrain: Dict[str, int] = field(default_factory=dict)


class GATParser(ResourceDecoder):
    """Decoder for .gat altitude maps."""

    name = "altitude map"

    def decode_bytes(self, data: bytes, key: str = "") -> GATMap:
        if len(data) < GAT_HEADER_SIZE or data[:4] != GAT_SIGNATURE:
            raise self.fail("invalid GAT signature", key)

        major, minor = data[4], data[5]
        width, height = struct.unpack_from('<ii', data, 6)
        if width < 0 or height < 0:
            raise self.fail(f"invalid dimensions {width}x{height}", key)

        cell_count = width * height
        expected = GAT_HEADER_SIZE + cell_count * GAT_CELL_SIZE
        if len(data) < expected:
            raise self.fail(f"truncated: {len(data)} bytes, expected {expected}", key)

        gat = GATMap(version=f"{major}.{minor}", width=width, height=height)
        if cell_count == 0:
            return gat

        low = float('inf')
        high = float('-inf')
        counts: Dict[str, int] = {}
        for cell in struct.iter_unpack('<ffffi', data[GAT_HEADER_SIZE:expected]):
            corners = cell[:4]
            low = min(low, *corners)
            high = max(high, *corners)
            type_name = TERRAIN_TYPES.get(cell[4], f"type_{cell[4]}")
            counts[type_name] = counts.get(type_name, 0) + 1

        gat.min_altitude = low
        gat.max_altitude = high
        gat.terrain = counts
        return gat
