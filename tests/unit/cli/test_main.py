"""Unit tests for the CLI commands."""

import os

import pytest

from fedbroker.cli.main import providers
from fedbroker.config import CONFIG_FILE_ENV


class TestProvidersCommand:
    def test_lists_configured_providers(self, monkeypatch, tmp_path, capsys):
        config_file = tmp_path / "fedbroker.yaml"
        config_file.write_text("providers:\n  discord:\n    kind: discord\n    client_id: abc\n")
        monkeypatch.setenv(CONFIG_FILE_ENV, "")

        providers(config=config_file)

        out = capsys.readouterr().out
        assert "discord" in out
        assert os.environ[CONFIG_FILE_ENV] == str(config_file.resolve())

    def test_missing_config_file_exits(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_FILE_ENV, "")

        with pytest.raises(SystemExit):
            providers(config=tmp_path / "missing.yaml")
