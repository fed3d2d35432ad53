# ==============================================================================
# RSW PARSER MODULE
# ==============================================================================
# Parser for Ragnarok Online RSW (Resource World) files.
#
# An RSW file ties a map together: it names the map's INI, GND (ground mesh),
# GAT (altitude) and source files, and stores water, lighting and the scene
# object list.
#
# File Structure (version dependent):
#   - Signature: "GRSW" (4 bytes), version major, minor (1 byte each)
#   - Build number: uint8 (2.2 - 2.4), uint32 + uint8 flag (2.5+)
#   - INI, GND, GAT (1.4+), SRC file names (40 bytes each)
#   - Water (1.3 - 2.5): level; type, wave height/speed/pitch (1.8+);
#     animation speed (1.9+). Newer maps keep water in the GND file.
#   - Light (1.5+): longitude, latitude, diffuse RGB, ambient RGB,
#     shadow opacity (1.7+)
#   - Ground bounds (1.6+): top, bottom, left, right
#   - Object count (int32), followed by the objects
#
# Only the header sections and the object count are decoded.
#
# References:
#   - https://ragnarokresearchlab.github.io/file-formats/rsw/
# ==============================================================================

import struct
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .base_decoder import ByteReader, ResourceDecoder


RSW_SIGNATURE = b"GRSW"
RSW_NAME_LENGTH = 40


@dataclass
class RSWWater:
    level: float = 0.0
    type: int = 0
    wave_height: float = 1.0
    wave_speed: float = 2.0
    wave_pitch: float = 50.0
    animation_speed: int = 3


@dataclass
class RSWLight:
    longitude: int = 45
    latitude: int = 45
    diffuse: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    ambient: Tuple[float, float, float] = (0.3, 0.3, 0.3)
    shadow_opacity: float = 0.5


@dataclass
class RSWWorld:
    """
    Decoded RSW header.

    Attributes:
        version (str):       "major.minor"
        build_number (int):  Editor build number (2.2+, else 0)
        ini_file (str):      Legacy INI name
        gnd_file (str):      Ground mesh file
        gat_file (str):      Altitude file (empty before 1.4)
        src_file (str):      Legacy source name
        water:               Water settings, None when stored in the GND
        light:               Light settings
        ground_bounds:       (top, bottom, left, right)
        object_count (int):  Number of scene objects
    """
    version: str = ""
    build_number: int = 0
    ini_file: str = ""
    gnd_file: str = ""
    gat_file: str = ""
    src_file: str = ""
    water: Optional[RSWWater] = None
    light: RSWLight = field(default_factory=RSWLight)
    ground_bounds: List[int] = field(default_factory=lambda: [-500, 500, -500, 500])
    object_count: int = 0


class RSWParser(ResourceDecoder):
    """Decoder for .rsw world resources."""

    name = "world resource"

    def decode_bytes(self, data: bytes, key: str = "") -> RSWWorld:
        if len(data) < 6 or data[:4] != RSW_SIGNATURE:
            raise self.fail("invalid RSW signature", key)

        version = (data[4], data[5])
        world = RSWWorld(version=f"{version[0]}.{version[1]}")
        reader = ByteReader(data, 6)

        try:
            if (2, 2) <= version < (2, 5):
                world.build_number = reader.unpack('B')[0]
            elif version >= (2, 5):
                world.build_number = reader.unpack('I')[0]
                reader.unpack('B')

            world.ini_file = reader.string(RSW_NAME_LENGTH)
            world.gnd_file = reader.string(RSW_NAME_LENGTH)
            if version >= (1, 4):
                world.gat_file = reader.string(RSW_NAME_LENGTH)
            world.src_file = reader.string(RSW_NAME_LENGTH)

            if version >= (1, 3) and version < (2, 6):
                water = RSWWater(level=reader.unpack('f')[0])
                if version >= (1, 8):
                    water.type, water.wave_height, water.wave_speed, water.wave_pitch = reader.unpack('ifff')
                if version >= (1, 9):
                    water.animation_speed = reader.unpack('i')[0]
                world.water = water

            if version >= (1, 5):
                light = world.light
                light.longitude, light.latitude = reader.unpack('ii')
                light.diffuse = reader.unpack('fff')
                light.ambient = reader.unpack('fff')
                if version >= (1, 7):
                    light.shadow_opacity = reader.unpack('f')[0]

            if version >= (1, 6):
                world.ground_bounds = list(reader.unpack('iiii'))

            world.object_count = reader.unpack('i')[0]
        except struct.error as e:
            raise self.fail(f"truncated RSW header: {e}", key)

        return world
