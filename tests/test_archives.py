import pytest

from asset_exporter.core.errors import ArchiveError, EntryNotFound
from asset_exporter.extractors import (
    ArchiveRegistry, DirectoryArchive, GRFVirtualFileSystem, open_archive,
)
from asset_exporter.extractors.grf_archive import GRF_FILE_FLAG_FILE, GRF_FILE_FLAG_MIXCRYPT
from sample_data import grf_bytes, palette_bytes


@pytest.fixture
def grf_path(tmp_path):
    path = tmp_path / "data.grf"
    path.write_bytes(grf_bytes({
        "data\\Readme.TXT": b"hello " * 50,
        "data\\palette\\a.pal": palette_bytes(),
        "data\\secret.bin": b"encrypted",
    }, flags={"data\\secret.bin": GRF_FILE_FLAG_FILE | GRF_FILE_FLAG_MIXCRYPT}))
    return str(path)


# ==============================================================================
# GRF
# ==============================================================================

def test_grf_keys_are_normalized(grf_path):
    with open_archive([grf_path]) as archive:
        assert isinstance(archive, GRFVirtualFileSystem)
        assert archive.keys() == ("data/readme.txt", "data/palette/a.pal", "data/secret.bin")


def test_grf_reads_inflate_entries(grf_path):
    with open_archive(grf_path) as archive:
        assert archive.read_raw_bytes("data/readme.txt") == b"hello " * 50
        assert archive.read_raw_bytes("DATA\\README.TXT") == b"hello " * 50
        assert archive.read_raw_bytes("data/palette/a.pal") == palette_bytes()

        entry = archive.get_entry("data/readme.txt")
        assert entry.size == 300
        assert entry.compressed_size < entry.size
        assert entry.source == grf_path


def test_grf_uncompressed_entries(tmp_path):
    path = tmp_path / "plain.grf"
    path.write_bytes(grf_bytes({"a.txt": b"plain"}, compress=False))

    with open_archive(str(path)) as archive:
        assert archive.read_raw_bytes("a.txt") == b"plain"


def test_grf_missing_and_encrypted_entries(grf_path):
    with open_archive(grf_path) as archive:
        with pytest.raises(EntryNotFound):
            archive.read_raw_bytes("data/nothing.txt")
        with pytest.raises(ArchiveError) as exc_info:
            archive.read_raw_bytes("data/secret.bin")
        assert "Encrypted" in str(exc_info.value)


def test_grf_later_archives_override(tmp_path):
    base = tmp_path / "data.grf"
    patch = tmp_path / "rdata.grf"
    base.write_bytes(grf_bytes({"data\\a.txt": b"old", "data\\b.txt": b"base"}))
    patch.write_bytes(grf_bytes({"data\\a.txt": b"new"}))

    with open_archive([str(base), str(patch)]) as archive:
        assert archive.read_raw_bytes("data/a.txt") == b"new"
        assert archive.read_raw_bytes("data/b.txt") == b"base"
        assert archive.get_statistics()["loaded_grfs"] == 2


def test_grf_cache_hits(grf_path):
    with open_archive(grf_path) as archive:
        archive.read_raw_bytes("data/readme.txt")
        archive.read_raw_bytes("data/readme.txt")
        stats = archive.get_statistics()

    assert stats["cache_hits"] == 1
    assert stats["files_read"] == 1


def test_grf_detect(grf_path, tmp_path):
    other = tmp_path / "other.bin"
    other.write_bytes(b"not a grf at all")

    assert GRFVirtualFileSystem.detect(grf_path)
    assert not GRFVirtualFileSystem.detect(str(other))
    assert not GRFVirtualFileSystem.detect(str(tmp_path))


def test_grf_bad_file_table(tmp_path):
    path = tmp_path / "broken.grf"
    path.write_bytes(grf_bytes({"a.txt": b"x"})[:-4])

    with pytest.raises(ArchiveError):
        open_archive(str(path))


# ==============================================================================
# DIRECTORY
# ==============================================================================

@pytest.fixture
def data_dir(tmp_path):
    root = tmp_path / "client"
    (root / "data" / "sprite").mkdir(parents=True)
    (root / "data" / "readme.txt").write_bytes(b"hello")
    (root / "data" / "sprite" / "b.spr").write_bytes(b"SP")
    (root / "data" / "a.pal").write_bytes(b"pal")
    return root


def test_directory_keys_are_sorted_posix_paths(data_dir):
    with open_archive(str(data_dir)) as archive:
        assert isinstance(archive, DirectoryArchive)
        assert archive.keys() == ("data/a.pal", "data/readme.txt", "data/sprite/b.spr")
        assert archive.read_raw_bytes("data\\readme.txt") == b"hello"
        assert archive.get_entry("data/a.pal").size == 3
        assert archive.get_total_size() == 10


def test_directory_missing_entry(data_dir):
    with open_archive(str(data_dir)) as archive:
        with pytest.raises(EntryNotFound):
            archive.read_raw_bytes("data/none.txt")
        assert not archive.contains("data/none.txt")


def test_directory_override(data_dir, tmp_path):
    patch = tmp_path / "patch"
    (patch / "data").mkdir(parents=True)
    (patch / "data" / "readme.txt").write_bytes(b"patched")

    with open_archive([str(data_dir), str(patch)]) as archive:
        assert archive.read_raw_bytes("data/readme.txt") == b"patched"
        assert len(archive.keys()) == 3


# ==============================================================================
# REGISTRY
# ==============================================================================

def test_registry_knows_both_providers():
    providers = ArchiveRegistry.get_all()
    assert providers["grf"] is GRFVirtualFileSystem
    assert providers["dir"] is DirectoryArchive


def test_open_archive_errors(grf_path, data_dir, tmp_path):
    with pytest.raises(ArchiveError):
        open_archive([])
    with pytest.raises(ArchiveError):
        open_archive(str(tmp_path / "missing.grf"))
    with pytest.raises(ArchiveError):
        open_archive([grf_path, str(data_dir)])
