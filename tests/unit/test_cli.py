"""CLI command tests using Click's CliRunner

Tests argument parsing, help text, JSON output, and execution paths
with the renderer replaced by FakeRenderer (no ffmpeg needed).
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli import main
from core.assets import FINAL_NAME
from tests.mocks.renderer import FakeRenderer


@pytest.fixture
def runner():
    return CliRunner()


# ============================================================
# Main CLI Group
# ============================================================

class TestMainGroup:
    """Tests for the top-level CLI group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Story Reel Builder" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_all_commands_registered(self, runner):
        result = runner.invoke(main, ["--help"])
        for cmd in ["build", "list", "check", "serve"]:
            assert cmd in result.output, f"Command '{cmd}' not found in help output"

    def test_unknown_command(self, runner):
        result = runner.invoke(main, ["nonexistent"])
        assert result.exit_code != 0


# ============================================================
# Build Command
# ============================================================

class TestBuildCommand:
    """Tests for storyreel build"""

    def test_build_success(self, runner, make_story, stories_root):
        make_story("abc123")

        with patch("cli.build.FFmpegRenderer", return_value=FakeRenderer()):
            result = runner.invoke(main, ["build", "abc123", "-d", str(stories_root)])

        assert result.exit_code == 0, result.output
        assert "Build complete" in result.output
        assert "embedded" in result.output
        assert "Build time" in result.output
        assert (stories_root / "abc123" / FINAL_NAME).exists()

    def test_build_json(self, runner, make_story, stories_root):
        make_story("abc123", transcript=None)

        with patch("cli.build.FFmpegRenderer", return_value=FakeRenderer(duration=3.0)):
            result = runner.invoke(main, ["build", "abc123", "-d", str(stories_root), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["subtitles_applied"] is False
        assert data["duration"] == 3.0
        assert len(data["windows"]) == 3

    def test_build_failure_exits_nonzero(self, runner, make_story, stories_root):
        make_story("abc123")

        with patch("cli.build.FFmpegRenderer", return_value=FakeRenderer(fail_concat=True)):
            result = runner.invoke(main, ["build", "abc123", "-d", str(stories_root)])

        assert result.exit_code == 1
        assert "ConcatFailure" in result.output
        assert not (stories_root / "abc123" / FINAL_NAME).exists()

    def test_build_failure_json(self, runner, make_story, stories_root):
        make_story("abc123", images=1)

        with patch("cli.build.FFmpegRenderer", return_value=FakeRenderer()):
            result = runner.invoke(main, ["build", "abc123", "-d", str(stories_root), "--json"])

        assert result.exit_code == 1
        assert json.loads(result.output)["failure"]["kind"] == "MissingAsset"

    def test_build_unknown_story(self, runner, stories_root):
        result = runner.invoke(main, ["build", "missing", "-d", str(stories_root)])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_build_keep_scratch(self, runner, make_story, stories_root):
        story_dir = make_story("abc123")

        with patch("cli.build.FFmpegRenderer", return_value=FakeRenderer()):
            result = runner.invoke(main, ["build", "abc123", "-d", str(stories_root), "--keep-scratch"])

        assert result.exit_code == 0, result.output
        assert len(list(story_dir.glob(".build-*"))) == 1


# ============================================================
# List Command
# ============================================================

class TestListCommand:
    """Tests for storyreel list"""

    def test_list_table(self, runner, make_story, stories_root):
        make_story("abc123")
        make_story("def456", transcript=None)

        result = runner.invoke(main, ["list", "-d", str(stories_root)])

        assert result.exit_code == 0
        assert "abc123" in result.output
        assert "def456" in result.output

    def test_list_json(self, runner, make_story, stories_root):
        story_dir = make_story("abc123")
        (story_dir / FINAL_NAME).write_bytes(b"video")
        make_story("def456", transcript=None)

        result = runner.invoke(main, ["list", "-d", str(stories_root), "--json"])

        rows = json.loads(result.output)
        assert rows == [
            {"story_id": "abc123", "has_video": True, "has_audio": True, "has_transcript": True},
            {"story_id": "def456", "has_video": False, "has_audio": True, "has_transcript": False},
        ]

    def test_list_completed_json(self, runner, make_story, stories_root):
        story_dir = make_story("abc123")
        (story_dir / FINAL_NAME).write_bytes(b"video")
        make_story("def456")

        result = runner.invoke(main, ["list", "-d", str(stories_root), "--completed", "--json"])

        assert json.loads(result.output) == ["abc123"]

    def test_list_empty(self, runner, tmp_path):
        result = runner.invoke(main, ["list", "-d", str(tmp_path / "none")])

        assert result.exit_code == 0
        assert "No stories found" in result.output


# ============================================================
# Check Command
# ============================================================

class TestCheckCommand:
    """Tests for storyreel check"""

    def test_check_ready(self, runner, stories_root):
        with patch("cli.status.FFmpegRenderer", return_value=FakeRenderer()):
            result = runner.invoke(main, ["check", "-d", str(stories_root), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["encoder"]["installed"] is True
        assert data["stories_dir_exists"] is True

    def test_check_missing_ffmpeg(self, runner, stories_root):
        renderer = FakeRenderer()

        async def not_installed():
            return {"installed": False, "path": None, "version": None, "ffprobe": None,
                    "error": "FFmpeg not found. Please install FFmpeg and add it to your PATH."}

        renderer.check_ffmpeg_installed = not_installed

        with patch("cli.status.FFmpegRenderer", return_value=renderer):
            result = runner.invoke(main, ["check", "-d", str(stories_root)])

        assert result.exit_code == 1
        assert "FFmpeg not found" in result.output
