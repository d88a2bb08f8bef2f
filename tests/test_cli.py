"""Tests for the command-line interface."""

import pytest

from claude_desktop_linux import cli, pipeline
from claude_desktop_linux.exceptions import ConfigurationError, PatchError
from claude_desktop_linux.models import BuildFormat


class TestMakeConfig:
    """Tests for option conversion."""

    def test_valid(self):
        config = cli.make_config("FLATPAK", "No")
        assert config.format == BuildFormat.FLATPAK
        assert config.cleanup is False

    def test_invalid_format_message(self):
        with pytest.raises(ConfigurationError) as exc:
            cli.make_config("snap", "yes")
        assert str(exc.value) == "Invalid build format specified: 'snap'. Must be 'deb', 'appimage', or 'flatpak'."

    def test_invalid_cleanup_message(self):
        with pytest.raises(ConfigurationError, match="Invalid cleanup option specified"):
            cli.make_config("deb", "sometimes")


class TestMain:
    """Tests for exit codes."""

    @pytest.fixture
    def runs(self, monkeypatch):
        """Record pipeline runs instead of building."""
        calls = []

        class RecordingPipeline:
            def __init__(self, config):
                self.config = config

            def run(self):
                calls.append(self.config)

        monkeypatch.setattr(pipeline, "BuildPipeline", RecordingPipeline)
        return calls

    def test_help(self, runs, capsys):
        assert cli.main(["--help"]) == 0
        assert "--build" in capsys.readouterr().out
        assert runs == []

    def test_short_help(self, runs):
        assert cli.main(["-h"]) == 0

    def test_test_flags(self, runs, capsys):
        assert cli.main(["-b", "AppImage", "--clean", "no", "--test-flags"]) == 0
        out = capsys.readouterr().out
        assert "appimage" in out
        assert "Exiting without build." in out
        assert runs == []

    def test_default_build(self, runs):
        assert cli.main([]) == 0
        assert len(runs) == 1
        assert runs[0].format == BuildFormat.DEB
        assert runs[0].cleanup is True

    def test_invalid_format(self, runs):
        assert cli.main(["--build", "rpm"]) == 1
        assert runs == []

    def test_unknown_option(self, runs):
        assert cli.main(["--frobnicate"]) == 1

    def test_missing_value(self, runs):
        assert cli.main(["--build"]) == 1

    def test_pipeline_failure(self, monkeypatch, capsys):
        class FailingPipeline:
            def __init__(self, config):
                pass

            def run(self):
                raise PatchError("Failed to extract tray menu function name: pattern not found")

        monkeypatch.setattr(pipeline, "BuildPipeline", FailingPipeline)
        assert cli.main(["-b", "deb"]) == 1
        assert "tray menu function name" in capsys.readouterr().out
