"""Tests for the peulot console script."""

from unittest.mock import patch

import pytest

from peulot.cli import main


class TestCli:
    def test_help_exits_zero(self, capsys):
        with patch("sys.argv", ["peulot", "--help"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 0
        assert "init-db" in capsys.readouterr().out

    def test_unknown_command(self):
        with patch("sys.argv", ["peulot", "migrate"]), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 1

    def test_init_db(self, capsys):
        with patch("sys.argv", ["peulot", "init-db"]), \
             patch("peulot.config.settings.storage_backend", "memory"):
            main()
        assert "Initialized memory storage" in capsys.readouterr().out

    def test_serve_runs_uvicorn(self):
        with patch("sys.argv", ["peulot", "serve"]), patch("peulot.api.main.uvicorn.run") as mock_run:
            main()
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0] == "peulot.api.main:app"
