import json
import os

import pytest

from asset_exporter.cli import main
from sample_data import act_bytes, palette_bytes, spr_bytes


@pytest.fixture
def client(tmp_path):
    root = tmp_path / "client" / "data"
    (root / "sprite").mkdir(parents=True)
    (root / "a.pal").write_bytes(palette_bytes())
    (root / "notes.txt").write_bytes(b"notes")
    (root / "sprite" / "poring.spr").write_bytes(spr_bytes())
    (root / "sprite" / "poring.act").write_bytes(act_bytes())
    return str(tmp_path / "client")


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "ledger_path": str(tmp_path / "ledger.db"),
        "use_colors": False,
    }))
    return str(path)


def write_script(tmp_path, *lines):
    path = tmp_path / "export.txt"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


def run_export(client, config_path, out, *extra):
    return main(["export", "--archive", client, "--output", out,
                 "--config", config_path, "--no-color", *extra])


def test_export_script(client, config_path, tmp_path):
    out = str(tmp_path / "out")
    script = write_script(tmp_path, "data/*.pal", "[raw]", "data/sprite/*.spr")

    assert run_export(client, config_path, out, "--script", script) == 0
    assert os.path.isfile(os.path.join(out, "data", "a.pal.json"))
    assert os.path.isfile(os.path.join(out, "data", "sprite", "poring.spr"))
    assert os.path.isfile(os.path.join(out, "data", "sprite", "poring.act"))


def test_export_patterns_with_mode(client, config_path, tmp_path):
    out = str(tmp_path / "out")

    code = run_export(client, config_path, out,
                      "--pattern", "data/notes.txt", "--pattern", "data/*.pal", "--mode", "raw,texture")

    assert code == 0
    assert os.path.isfile(os.path.join(out, "data", "notes.txt"))
    assert os.path.isfile(os.path.join(out, "data", "a.pal.png"))
    assert not os.path.exists(os.path.join(out, "data", "a.pal.json"))


def test_bad_configured_modes_use_the_default(client, tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"default_modes": ["xml"], "use_colors": False}))
    out = str(tmp_path / "out")

    code = run_export(client, str(path), out, "--pattern", "data/a.pal")

    assert code == 0
    assert os.path.isfile(os.path.join(out, "data", "a.pal.json"))
    assert "Invalid config value for default_modes" in capsys.readouterr().out


def test_exit_codes(client, config_path, tmp_path):
    out = str(tmp_path / "out")

    fatal = write_script(tmp_path, "data/*.pal", "[json")
    assert run_export(client, config_path, out, "--script", fatal) == 3

    miss = write_script(tmp_path, "data/*.gnd")
    assert run_export(client, config_path, out, "--script", miss) == 2

    assert run_export(client, config_path, out, "--script", str(tmp_path / "none.txt")) == 1
    assert main(["export", "--archive", str(tmp_path / "none.grf"), "--output", out,
                 "--config", config_path, "--pattern", "x"]) == 1
    assert main(["export", "--archive", client]) == 1
    assert main(["export", "--archive", client, "--pattern", "x", "--mode", "xml"]) == 1
    assert main([]) == 1


def test_ledger_history_and_verify(client, config_path, tmp_path, capsys):
    out = str(tmp_path / "out")
    script = write_script(tmp_path, "[raw, json]", "data/*")

    assert run_export(client, config_path, out, "--script", script, "--ledger") == 0
    capsys.readouterr()

    assert main(["history", "--config", config_path]) == 0
    assert "export.txt" in capsys.readouterr().out

    assert main(["history", "--config", config_path, "--run", "1"]) == 0
    assert "data/sprite/poring" in capsys.readouterr().out

    assert main(["verify", "--config", config_path, "--run", "1"]) == 0

    with open(os.path.join(out, "data", "a.pal.json"), "a", encoding="utf-8") as f:
        f.write(" ")
    assert main(["verify", "--config", config_path, "--run", "1"]) == 2
    assert main(["verify", "--config", config_path, "--run", "99"]) == 1


def test_list_and_formats(client, capsys):
    assert main(["list", "--archive", client, "--pattern", "data/sprite/*", "--no-color"]) == 0
    listing = capsys.readouterr().out
    assert "data/sprite/poring.spr" in listing
    assert "data/a.pal" not in listing
    assert "Total: 2 entries" in listing

    assert main(["formats"]) == 0
    assert "luafiles514" in capsys.readouterr().out
