import struct

import pytest

from asset_exporter.core.errors import DecodeError, EntryNotFound
from asset_exporter.parsers import (
    ACTParser, GATParser, LUBParser, PALParser, RSWParser, SPRParser,
    SpriteBundleDecoder, to_json_ready,
)
from asset_exporter.parsers.spr_parser import decompress_rle
from sample_data import (
    MemoryArchive, act_bytes, gat_bytes, lub_bytes, palette_bytes, rsw_bytes, spr_bytes,
)


# ==============================================================================
# PAL
# ==============================================================================

def test_palette_forces_alpha():
    palette = PALParser().load_from_bytes(palette_bytes())

    assert len(palette.colors) == 256
    assert palette.colors[0] == (0, 255, 0, 0)
    assert palette.colors[200] == (200, 55, 100, 255)
    assert len(palette.to_bytes()) == 1024


def test_palette_too_small():
    with pytest.raises(DecodeError) as exc_info:
        PALParser().load_from_bytes(b"\x00" * 1023, "data/a.pal")
    assert exc_info.value.key == "data/a.pal"
    assert "palette data too small" in str(exc_info.value)


# ==============================================================================
# SPR
# ==============================================================================

def test_sprite_frames_and_palette():
    sprite = SPRParser().load_from_bytes(spr_bytes(frame_count=2))

    assert sprite.version == (2, 1)
    assert sprite.get_total_frames() == 2
    frame = sprite.get_frame(0)
    assert (frame.width, frame.height) == (2, 2)
    assert frame.data == bytes([1, 0, 0, 2])
    assert sprite.get_frame(2) is None


def test_sprite_frame_image_uses_palette():
    sprite = SPRParser().load_from_bytes(spr_bytes())
    image = sprite.get_frame_image(0)

    assert image.size == (2, 2)
    assert image.getpixel((0, 0)) == (1, 254, 0, 255)
    assert image.getpixel((1, 0))[3] == 0
    assert image.getpixel((1, 1)) == (2, 253, 1, 255)


def test_rgba_frame_is_flipped_and_reordered():
    # Version 2.0, one 1x2 RGBA frame stored bottom row first, ARGB
    data = b"SP" + bytes([0, 2]) + struct.pack('<HH', 0, 1)
    data += struct.pack('<HH', 1, 2)
    data += bytes([255, 10, 20, 30])     # bottom
    data += bytes([128, 40, 50, 60])     # top
    sprite = SPRParser().load_from_bytes(data)
    image = sprite.get_frame_image(0)

    assert image.getpixel((0, 0)) == (40, 50, 60, 128)
    assert image.getpixel((0, 1)) == (10, 20, 30, 255)


@pytest.mark.parametrize("data, reason", [
    (b"SP", "file too small"),
    (b"XX\x01\x02\x00\x00\x00\x00", "invalid SPR signature"),
    (b"SP\x00\x09\x01\x00\x00\x00", "unsupported SPR version"),
    (b"SP\x01\x02\x00\x00\x00\x00", "0 frames"),
])
def test_sprite_errors(data, reason):
    with pytest.raises(DecodeError) as exc_info:
        SPRParser().load_from_bytes(data)
    assert reason in str(exc_info.value)


def test_decompress_rle():
    assert decompress_rle(bytes([5, 0, 3, 7]), 5) == bytes([5, 0, 0, 0, 7])
    assert decompress_rle(bytes([5]), 3) == bytes([5, 0, 0])
    assert decompress_rle(bytes([1, 2, 3, 4]), 2) == bytes([1, 2])


def test_sprite_json_summarizes_bytes():
    document = to_json_ready(SPRParser().load_from_bytes(spr_bytes()))

    assert document["version"] == [2, 1]
    assert document["palette"]["size"] == 1024
    assert len(document["palette"]["md5"]) == 32
    assert document["indexed_frames"][0]["data"]["size"] == 4


# ==============================================================================
# ACT
# ==============================================================================

def test_action_layers_and_default_interval():
    act = ACTParser().load_from_bytes(act_bytes())

    assert act.version == (2, 0)
    assert len(act.actions) == 1
    layer = act.get_frame(0, 0).layers[0]
    assert (layer.x, layer.y, layer.sprite_index, layer.mirror) == (3, -4, 0, True)
    assert layer.color == (255, 128, 64, 255)
    assert layer.scale_x == layer.scale_y == 1.5
    assert layer.rotation == 90
    assert act.frame_intervals == [150.0]
    assert act.get_action(0).get_total_duration() == 150.0
    assert act.get_frame(0, 0).event_id == -1


def test_action_truncated_tail_keeps_complete_actions():
    data = bytearray(act_bytes())
    struct.pack_into('<H', data, 4, 2)      # claims a second action
    data += struct.pack('<i', 1) + b"\x00" * 10

    act = ACTParser().load_from_bytes(bytes(data))
    assert len(act.actions) == 1


def test_action_without_readable_actions():
    data = b"AC" + bytes([0, 2]) + struct.pack('<H', 1) + b"\x00" * 10 + struct.pack('<i', 500)
    with pytest.raises(DecodeError) as exc_info:
        ACTParser().load_from_bytes(data)
    assert "no readable actions" in str(exc_info.value)


# ==============================================================================
# GAT / RSW / LUB
# ==============================================================================

def test_altitude_map_summary():
    gat = GATParser().decode_bytes(gat_bytes())

    assert (gat.version, gat.width, gat.height) == ("1.2", 2, 1)
    assert (gat.min_altitude, gat.max_altitude) == (-1.0, 5.0)
    assert gat.terrain == {"walkable": 1, "blocked": 1}


def test_altitude_map_truncated():
    with pytest.raises(DecodeError):
        GATParser().decode_bytes(gat_bytes()[:-1])


def test_world_resource_header():
    world = RSWParser().decode_bytes(rsw_bytes())

    assert world.version == "2.1"
    assert world.gnd_file == "prontera.gnd"
    assert world.gat_file == "prontera.gat"
    assert world.water.level == -2.5
    assert world.water.animation_speed == 3
    assert (world.light.longitude, world.light.latitude) == (45, 30)
    assert world.ground_bounds == [-100, 100, -200, 200]
    assert world.object_count == 7


def test_world_resource_truncated():
    with pytest.raises(DecodeError) as exc_info:
        RSWParser().decode_bytes(rsw_bytes()[:60])
    assert "truncated" in str(exc_info.value)


def test_lua_chunk_header():
    header = LUBParser().decode_bytes(lub_bytes("@item.lua"))

    assert header.version == "5.1"
    assert header.little_endian
    assert header.source_name == "@item.lua"


def test_plain_lua_source_is_rejected():
    with pytest.raises(DecodeError):
        LUBParser().decode_bytes(b"-- not compiled\nreturn {}\n")


# ==============================================================================
# SPRITE BUNDLE / ARCHIVE DECODING
# ==============================================================================

def test_bundle_decodes_both_halves():
    archive = MemoryArchive({
        "data/sprite/poring.spr": spr_bytes(),
        "data/sprite/poring.act": act_bytes(),
    })
    bundle = archive.decode_resource("data/sprite/poring", SpriteBundleDecoder())

    assert bundle.stem == "data/sprite/poring"
    assert bundle.sprite.get_total_frames() == 1
    assert len(bundle.action.actions) == 1


def test_bundle_names_the_missing_half():
    archive = MemoryArchive({"data/sprite/poring.act": act_bytes()})
    with pytest.raises(DecodeError) as exc_info:
        archive.decode_resource("data/sprite/poring", SpriteBundleDecoder())
    assert "data/sprite/poring.spr" in str(exc_info.value)


def test_decode_resource_of_a_missing_key():
    with pytest.raises(EntryNotFound):
        MemoryArchive().decode_resource("data/a.pal", PALParser())
