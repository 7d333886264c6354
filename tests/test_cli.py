"""Tests for the command line interface."""

from click.testing import CliRunner

from tubelink import __version__
from tubelink.cli import cli


class TestCli:
    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code == 0
        for name in ("start", "serve", "parse", "extract"):
            assert name in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert __version__ in result.output

    def test_extract(self):
        result = CliRunner().invoke(cli, ["extract", "see https://youtu.be/dQw4w9WgXcQ"])
        assert result.exit_code == 0
        assert "dQw4w9WgXcQ" in result.output

    def test_extract_nothing(self):
        result = CliRunner().invoke(cli, ["extract", "no link"])
        assert result.exit_code == 1

    def test_parse_without_api_key(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("TUBELINK_YOUTUBE_API_KEY", raising=False)
        result = CliRunner().invoke(cli, ["parse", "https://youtu.be/dQw4w9WgXcQ"])
        assert result.exit_code == 1
        assert "youtube_api_key" in result.output
