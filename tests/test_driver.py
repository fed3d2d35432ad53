import os

from asset_exporter.core.config import Config
from asset_exporter.core.ledger import ExportLedger
from asset_exporter.export.directives import ExportMode
from asset_exporter.export.driver import BatchResult, ExportDriver
from asset_exporter.export.sink import OutputSink
from sample_data import MemoryArchive, sample_archive_files


def make_driver(archive, sink, reporter, **config_values):
    config = Config(config_path=os.devnull)
    for key, value in config_values.items():
        config[key] = value
    return ExportDriver(archive, sink, reporter, config=config)


def written_files(root):
    found = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            found.append(os.path.relpath(os.path.join(dirpath, filename), root).replace(os.sep, '/'))
    return sorted(found)


def test_script_end_to_end(archive, sink, reporter):
    script = [
        "# palettes as JSON",
        "data/palette/*.pal",
        "",
        "[raw]",
        "data/readme.txt",
    ]
    result = make_driver(archive, sink, reporter).export(script)

    assert result.success
    assert result.exported == 3
    assert written_files(sink.root) == [
        "data/palette/a.pal.json",
        "data/palette/b.pal.json",
        "data/readme.txt",
    ]


def test_literal_pattern_exports_exactly_that_key(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["[raw]", "data/palette/a.pal"])

    assert [o.identifier for o in result.outcomes] == ["data/palette/a.pal"]
    assert written_files(sink.root) == ["data/palette/a.pal"]


def test_mode_changes_apply_only_to_later_patterns(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export([
        "data/palette/a.pal",
        "[raw]",
        "data/palette/b.pal",
    ])

    assert result.success
    assert written_files(sink.root) == ["data/palette/a.pal.json", "data/palette/b.pal"]


def test_malformed_header_aborts_but_keeps_earlier_outputs(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export([
        "data/palette/a.pal",
        "[json",
        "data/palette/b.pal",
    ], script_name="export.txt")

    assert result.aborted
    assert not result.success
    assert "line 2" in result.fatal_error
    assert written_files(sink.root) == ["data/palette/a.pal.json"]
    assert reporter.errors and reporter.errors[0].startswith("export.txt: line 2")


def test_unknown_mode_aborts(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["[xml]", "data/palette/a.pal"])

    assert result.aborted
    assert result.outcomes == []
    assert sink.written == []


def test_zero_matches_is_reported_and_export_continues(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["data/*.gnd", "data/palette/a.pal"])

    assert not result.success
    assert not result.aborted
    assert result.misses == ["data/*.gnd"]
    assert result.exported == 1
    assert any("data/*.gnd" in w for w in reporter.warnings)


def test_unsupported_entries_do_not_fail_the_batch(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["data/blob.bin"])

    assert result.success
    assert result.unsupported == 1
    assert sink.written == []
    assert any("unsupported format" in m for m in reporter.of_level("info"))


def test_entry_failure_does_not_stop_the_batch(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["data/*.pal"])

    assert not result.success
    assert result.failed == ["data/broken.pal"]
    assert result.exported == 2
    assert len(reporter.warnings) == 1


def test_grouped_stems_export_once(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["[raw]", "data/sprite/*.spr"])

    assert [o.identifier for o in result.outcomes] == ["data/sprite/poring", "data/sprite/lonely"]
    assert written_files(sink.root) == [
        "data/sprite/lonely.spr",
        "data/sprite/poring.act",
        "data/sprite/poring.spr",
    ]


def test_literal_stem_exports_like_its_wildcard(archive, tmp_path, reporter):
    literal = make_driver(archive, OutputSink(str(tmp_path / "lit")), reporter).export(
        ["[raw, json]", "data/sprite/poring"])
    wildcard = make_driver(archive, OutputSink(str(tmp_path / "wild")), reporter).export(
        ["[raw, json]", "data/sprite/poring*"])

    assert literal.success
    assert [o.identifier for o in literal.outcomes] == ["data/sprite/poring"]
    assert written_files(str(tmp_path / "lit")) == [
        "data/sprite/poring.act",
        "data/sprite/poring.json",
        "data/sprite/poring.spr",
    ]
    assert written_files(str(tmp_path / "lit")) == written_files(str(tmp_path / "wild"))
    assert literal.outcomes[0].digest == wildcard.outcomes[0].digest


def read_tree(root):
    contents = {}
    for path in written_files(root):
        with open(os.path.join(root, *path.split('/')), 'rb') as f:
            contents[path] = f.read()
    return contents


def test_rerun_into_the_same_directory_is_byte_identical(archive, sink, reporter):
    script = ["[raw, json, texture]", "data/*"]
    first = make_driver(archive, sink, reporter).export(script)
    before = read_tree(sink.root)

    second = make_driver(archive, sink, reporter).export(script)
    after = read_tree(sink.root)

    assert before
    assert after == before
    assert [o.digest for o in first.outcomes] == [o.digest for o in second.outcomes]


def test_raw_is_switched_off_for_later_patterns(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export([
        "[json, raw]",
        "data/palette/a.pal",
        "[json]",
        "data/palette/b.pal",
    ])

    assert result.success
    assert written_files(sink.root) == [
        "data/palette/a.pal",
        "data/palette/a.pal.json",
        "data/palette/b.pal.json",
    ]


def test_parallel_export_folds_in_archive_order(tmp_path, reporter):
    archive = MemoryArchive(sample_archive_files())
    script = ["[raw, json]", "data/*"]

    sequential = make_driver(archive, OutputSink(str(tmp_path / "seq")), reporter).export(script)
    parallel = make_driver(archive, OutputSink(str(tmp_path / "par")), reporter,
                           export_workers=4).export(script)

    assert [(o.identifier, o.status, o.digest) for o in sequential.outcomes] == \
           [(o.identifier, o.status, o.digest) for o in parallel.outcomes]
    assert parallel.summary() == sequential.summary()


def test_each_run_starts_in_the_default_mode(archive, sink, reporter):
    driver = make_driver(archive, sink, reporter)
    driver.export(["[raw]"])
    driver.export(["data/palette/a.pal"])

    assert written_files(sink.root) == ["data/palette/a.pal.json"]


def test_configured_default_mode(archive, sink, reporter):
    driver = make_driver(archive, sink, reporter, default_modes=["raw"])
    driver.export(["data/readme.txt"])

    assert written_files(sink.root) == ["data/readme.txt"]


def test_export_file_accepts_a_bom(archive, sink, reporter, tmp_path):
    script = tmp_path / "export.txt"
    script.write_text("\ufeff[raw]\r\ndata/readme.txt\r\n", encoding="utf-8")

    result = make_driver(archive, sink, reporter).export_file(str(script))

    assert result.success
    assert written_files(sink.root) == ["data/readme.txt"]


def test_export_patterns(archive, sink, reporter):
    driver = make_driver(archive, sink, reporter)
    result = driver.export_patterns(["data/palette/a.pal", "  ", "data/blob.bin"],
                                    ExportMode(raw=True, structured=False))

    assert result.success
    assert written_files(sink.root) == ["data/blob.bin", "data/palette/a.pal"]


def test_patterns_are_normalized(archive, sink, reporter):
    result = make_driver(archive, sink, reporter).export(["[raw]", "\\data\\readme.txt"])

    assert result.success
    assert written_files(sink.root) == ["data/readme.txt"]


def test_ledger_records_the_run(archive, sink, reporter):
    ledger = ExportLedger(":memory:")
    driver = ExportDriver(archive, sink, reporter, config=Config(os.devnull),
                          ledger=ledger, archive_label="memory")
    result = driver.export(["data/palette/*.pal", "data/*.gnd", "data/broken.pal"],
                           script_name="export.txt")

    run = ledger.recent_runs()[0]
    assert (run.script, run.archive, run.success) == ("export.txt", "memory", False)
    assert (run.exported, run.failed, run.misses) == (2, 1, 1)
    assert run.finished_at is not None

    records = ledger.records_for_run(run.id)
    assert [(r.identifier, r.status) for r in records] == [
        ("data/palette/a.pal", "success"),
        ("data/palette/b.pal", "success"),
        ("data/*.gnd", "miss"),
        ("data/broken.pal", "failed"),
    ]
    assert records[0].digest == result.outcomes[0].digest
    assert records[0].outputs == "data/palette/a.pal.json"
    ledger.close()


def test_batch_result_summary():
    result = BatchResult()
    result.record_miss("x/*")
    assert result.summary() == "0 exported, 0 unsupported, 0 failed, 1 unmatched patterns"
    assert ExportDriver.summary_line(result) == f"Export done with errors: {result.summary()}"
