"""
CLI Tests
"""

import json

import pytest

from instaplot.cli import main

HARBOUR_NIGHT = [
    {"id": "h1", "time": "2024-02-01T21:00", "actor": "Zed", "place": "Harbour",
     "claims": "Was loading crates", "x": 120, "y": 140},
    {"id": "h2", "time": "2024-02-01T22:30", "actor": "Amy", "place": "Warehouse",
     "claims": "Heard an engine", "is_lie": True, "x": 320, "y": 240},
    {"id": "h3", "time": "2024-02-01T23:15", "actor": "Zed", "place": "Harbour",
     "claims": "Left before midnight"},
]


@pytest.fixture
def storage_dir(tmp_path):
    return str(tmp_path / "board")


def run(storage_dir, *args):
    return main(["--storage-dir", storage_dir] + list(args))


class TestCli:

    def test_list_fresh_board_shows_seed(self, storage_dir, capsys):
        assert run(storage_dir, "list") == 0
        out = capsys.readouterr().out
        assert "John Smith" in out
        assert "Jane Doe" in out

    def test_add_and_delete(self, storage_dir, capsys):
        assert run(storage_dir, "add", "--time", "2024-01-16T08:00", "--actor", "Bob",
                   "--place", "Harbour", "--claims", "Was fishing", "--lie") == 0
        out = capsys.readouterr().out
        card_id = out.strip().split()[-1]

        run(storage_dir, "export")
        exported = json.loads(capsys.readouterr().out)
        assert exported[-1]["id"] == card_id
        assert exported[-1]["is_lie"] is True

        assert run(storage_dir, "delete", card_id) == 0
        assert run(storage_dir, "delete", card_id) == 1

    def test_import_with_yes(self, storage_dir, tmp_path, capsys):
        source = tmp_path / "cards.json"
        source.write_text(json.dumps(HARBOUR_NIGHT), encoding="utf-8")
        assert run(storage_dir, "import", str(source), "--yes") == 0
        assert "Successfully imported 3 cards" in capsys.readouterr().out

    def test_import_declined(self, storage_dir, tmp_path, monkeypatch, capsys):
        source = tmp_path / "cards.json"
        source.write_text(json.dumps(HARBOUR_NIGHT), encoding="utf-8")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")
        assert run(storage_dir, "import", str(source)) == 1
        out = capsys.readouterr().out
        assert "replace all 2 existing cards" in out

        run(storage_dir, "export")
        assert [c["id"] for c in json.loads(capsys.readouterr().out)] == ["1", "2"]

    def test_organize(self, storage_dir, capsys):
        assert run(storage_dir, "organize", "--x", "actor", "--y", "time") == 0
        assert "Organized 2 cards" in capsys.readouterr().out
        run(storage_dir, "export")
        cards = json.loads(capsys.readouterr().out)
        assert [(c["x"], c["y"]) for c in cards] == [(100.0, 100.0), (300.0, 500.0)]

    def test_unknown_axis_rejected(self, storage_dir):
        with pytest.raises(SystemExit):
            run(storage_dir, "organize", "--x", "claims")
