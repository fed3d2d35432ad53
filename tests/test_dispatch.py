import hashlib
import io
import json
import os

import pytest
from PIL import Image

from asset_exporter.export.directives import DEFAULT_MODE, ExportMode
from asset_exporter.export.dispatch import (
    UNSUPPORTED, DispatchTable, FormatDispatcher, OutputSettings, Strategy,
    TextStrategy, build_default_table,
)
from asset_exporter.export.resolver import ResolvedEntry
from sample_data import MemoryArchive

RAW = ExportMode(raw=True, structured=False)
RAW_JSON = ExportMode(raw=True, structured=True)
TEXTURE = ExportMode(structured=False, texture=True)


def entry(identifier, *members):
    return ResolvedEntry(identifier, identifier, members or (identifier,))


def read_output(sink, path):
    with open(os.path.join(sink.root, *path.split('/')), 'rb') as f:
        return f.read()


@pytest.fixture
def dispatcher(archive, sink):
    return FormatDispatcher(archive, sink)


def test_palette_to_json(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/palette/a.pal"), DEFAULT_MODE)

    assert outcome.status == "success"
    assert outcome.outputs == ["data/palette/a.pal.json"]
    document = json.loads(read_output(sink, "data/palette/a.pal.json"))
    assert len(document["colors"]) == 256
    assert document["colors"][0] == [0, 255, 0, 0]
    assert document["colors"][1] == [1, 254, 0, 255]


def test_digest_covers_every_output_in_write_order(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/palette/a.pal"), RAW_JSON)

    assert outcome.outputs == ["data/palette/a.pal.json", "data/palette/a.pal"]
    written = b"".join(read_output(sink, path) for path in outcome.outputs)
    assert outcome.digest == hashlib.md5(written).hexdigest()
    assert outcome.detail == "structured, raw"


def test_text_entries_pass_through(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/readme.txt"), DEFAULT_MODE)

    assert outcome.status == "success"
    assert outcome.outputs == ["data/readme.txt.txt"]
    assert read_output(sink, "data/readme.txt.txt") == b"hello\nworld\n"


def test_undecodable_text_fails(sink):
    dispatcher = FormatDispatcher(MemoryArchive({"data/bad.txt": b"\xff\xfe\xfa"}), sink)
    outcome = dispatcher.dispatch(entry("data/bad.txt"), DEFAULT_MODE)

    assert outcome.failed
    assert outcome.cause.startswith("text: ")
    assert outcome.outputs == []


def test_unknown_extension_is_unsupported(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/blob.bin"), DEFAULT_MODE)

    assert outcome.status == "unsupported"
    assert outcome.outputs == []
    assert outcome.digest is None
    assert sink.written == []


def test_raw_writes_stored_bytes_under_the_member_key(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/blob.bin"), RAW)

    assert outcome.status == "success"
    assert outcome.outputs == ["data/blob.bin"]
    assert read_output(sink, "data/blob.bin") == b"\x00\x01\x02"


def test_raw_of_a_missing_literal_fails(dispatcher):
    outcome = dispatcher.dispatch(entry("data/nothing.bin"), RAW)

    assert outcome.failed
    assert "Entry not found: data/nothing.bin" in outcome.cause


def test_structured_failure_does_not_stop_raw(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/broken.pal"), RAW_JSON)

    assert outcome.failed
    assert outcome.cause.startswith("structured: ")
    assert "palette data too small" in outcome.cause
    assert outcome.outputs == ["data/broken.pal"]
    assert read_output(sink, "data/broken.pal") == b"short"


def test_sprite_bundle_to_json(dispatcher, sink):
    stem = entry("data/sprite/poring", "data/sprite/poring.spr", "data/sprite/poring.act")
    outcome = dispatcher.dispatch(stem, DEFAULT_MODE)

    assert outcome.status == "success"
    assert outcome.outputs == ["data/sprite/poring.json"]
    document = json.loads(read_output(sink, "data/sprite/poring.json"))
    assert document["stem"] == "data/sprite/poring"
    assert document["sprite"]["version"] == [2, 1]
    assert document["sprite"]["palette"]["size"] == 1024
    layer = document["action"]["actions"][0]["frames"][0]["layers"][0]
    assert (layer["x"], layer["y"], layer["mirror"]) == (3, -4, True)


def test_sprite_bundle_missing_companion_fails(dispatcher):
    outcome = dispatcher.dispatch(entry("data/sprite/lonely", "data/sprite/lonely.spr"), DEFAULT_MODE)

    assert outcome.failed
    assert "missing companion entry: data/sprite/lonely.act" in outcome.cause


def test_bundle_raw_writes_every_member(dispatcher, sink):
    stem = entry("data/sprite/poring", "data/sprite/poring.act", "data/sprite/poring.spr")
    outcome = dispatcher.dispatch(stem, RAW)

    assert outcome.outputs == ["data/sprite/poring.act", "data/sprite/poring.spr"]
    assert outcome.detail == "raw x2"


def test_lub_is_decoded_only_under_luafiles514(dispatcher, sink):
    decoded = dispatcher.dispatch(entry("data/luafiles514/lua files/skillinfo.lub"), DEFAULT_MODE)
    skipped = dispatcher.dispatch(entry("data/other/skillinfo.lub"), DEFAULT_MODE)

    assert decoded.status == "success"
    document = json.loads(read_output(sink, "data/luafiles514/lua files/skillinfo.lub.json"))
    assert document["version"] == "5.1"
    assert document["source_name"] == "@skillinfo.lua"
    assert skipped.status == "unsupported"


def test_texture_reencodes_images(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/texture/logo.png"), TEXTURE)

    assert outcome.outputs == ["data/texture/logo.png.png"]
    image = Image.open(io.BytesIO(read_output(sink, "data/texture/logo.png.png")))
    assert image.size == (3, 2)
    assert image.mode == "RGBA"


def test_texture_numbers_multiple_frames(dispatcher):
    single = dispatcher.dispatch(entry("data/sprite/poring.spr"), TEXTURE)
    multi = dispatcher.dispatch(entry("data/sprite/lonely.spr"), TEXTURE)
    bundle = dispatcher.dispatch(
        entry("data/sprite/poring", "data/sprite/poring.spr", "data/sprite/poring.act"), TEXTURE)

    assert single.outputs == ["data/sprite/poring.spr.png"]
    assert multi.outputs == ["data/sprite/lonely.spr.000.png", "data/sprite/lonely.spr.001.png"]
    assert bundle.outputs == ["data/sprite/poring.png"]


def test_texture_without_renderer_is_unsupported(dispatcher):
    assert dispatcher.dispatch(entry("data/blob.bin"), TEXTURE).status == "unsupported"


def test_palette_swatch(dispatcher, sink):
    outcome = dispatcher.dispatch(entry("data/palette/a.pal"), ExportMode(texture=True))

    assert outcome.outputs == ["data/palette/a.pal.json", "data/palette/a.pal.png"]
    image = Image.open(io.BytesIO(read_output(sink, "data/palette/a.pal.png")))
    assert image.size == (256, 256)


def test_unexpected_exceptions_become_failures(archive, sink):
    class Exploding(Strategy):
        kind = "structured"

        def produce(self, archive, identifier, settings):
            raise RuntimeError("boom")

    table = DispatchTable()
    table.register("bin", Exploding())
    outcome = FormatDispatcher(archive, sink, table).dispatch(entry("data/blob.bin"), DEFAULT_MODE)

    assert outcome.failed
    assert outcome.cause == "structured: boom"


def test_output_settings_rename_outputs(archive, sink):
    settings = OutputSettings(structured_suffix=".out.json", text_suffix=".utf8")
    dispatcher = FormatDispatcher(archive, sink, settings=settings)

    assert dispatcher.dispatch(entry("data/palette/a.pal"), DEFAULT_MODE).outputs == ["data/palette/a.pal.out.json"]
    assert dispatcher.dispatch(entry("data/readme.txt"), DEFAULT_MODE).outputs == ["data/readme.txt.utf8"]


def test_lookup_rules():
    table = build_default_table()

    assert table.lookup("DATA/README.TXT").kind == "text"
    assert table.lookup("Data/LuaFiles514/x.lub").kind == "structured"
    assert table.lookup("data/x.lub") is UNSUPPORTED
    assert table.lookup("data/sprite/poring").description == "structured (sprite bundle)"
    assert table.texture_renderer("data/x.bin") is None


def test_describe_lists_every_extension():
    rows = dict(build_default_table().describe())

    assert rows["txt"] == "text"
    assert rows["pal"] == "structured (palette), texture (palette swatch)"
    assert rows["lub"] == "structured (lua chunk) if under luafiles514/, otherwise unsupported"
    assert rows["(none)"] == "structured (sprite bundle), texture (sprite bundle frames)"
    assert rows["bmp"] == "texture (image)"


def test_custom_table_registration():
    table = DispatchTable()
    table.register(".CFG", TextStrategy())

    assert table.lookup("a/b.cfg").kind == "text"
    assert table.lookup("a/b.ini") is UNSUPPORTED
