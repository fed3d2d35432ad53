import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TESTS = Path(__file__).resolve().parent
if str(TESTS) not in sys.path:
    sys.path.insert(0, str(TESTS))

from sample_data import MemoryArchive, sample_archive_files  # noqa: E402
from asset_exporter.core.reporter import RecordingReporter  # noqa: E402
from asset_exporter.export.sink import OutputSink  # noqa: E402


@pytest.fixture
def archive():
    return MemoryArchive(sample_archive_files())


@pytest.fixture
def sink(tmp_path):
    return OutputSink(str(tmp_path / "out"))


@pytest.fixture
def reporter():
    return RecordingReporter()
