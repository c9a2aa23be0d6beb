"""
Tests for the command line.
"""

import json

import pytest

from ..cli import main
from .test_neural import weights_document


class TestValidateWeights:

    def test_valid_file(self, tmp_path, capsys):
        path = tmp_path / "weights.json"
        path.write_text(json.dumps(weights_document(hidden=5)), encoding="utf-8")

        main(["validate-weights", str(path)])

        assert "Valid: hidden size 5" in capsys.readouterr().out

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"blocks": []}), encoding="utf-8")

        with pytest.raises(SystemExit) as exc:
            main(["validate-weights", str(path)])
        assert exc.value.code == 1


class TestSimulate:

    def test_simulate_and_export(self, tmp_path, capsys):
        out = tmp_path / "records.json"

        main([
            "--log-level", "WARNING",
            "simulate", "--games", "2", "--players", "2", "--iterations", "2",
            "--max-turns", "2", "--seed", "3", "--export", str(out),
        ])

        printed = capsys.readouterr().out
        assert "Game 1: winner" in printed
        assert "Game 2: winner" in printed
        assert isinstance(json.loads(out.read_text(encoding="utf-8")), list)

    def test_needs_two_players(self):
        with pytest.raises(SystemExit):
            main(["simulate", "--players", "1"])


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit):
        main([])
    assert "usage" in capsys.readouterr().out.lower()
