"""Tests for the command-line front end."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from batch_ai.cli import build_parser
from batch_ai.cli import main


class TestParser:
    """Test argument parsing."""

    def test_run_arguments(self) -> None:
        """Test the run subcommand."""
        args = build_parser().parse_args(["--provider", "ollama", "run", "--prompt", "code-review", "a.py", "-b", "3"])
        assert args.provider == "ollama"
        assert args.prompt == "code-review"
        assert args.paths == [Path("a.py")]
        assert args.batch_size == 3

    def test_run_needs_operation(self) -> None:
        """Test that run requires --task or --prompt."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["run", "a.py"])


class TestMain:
    """Test commands against an in-process backend with no models."""

    def test_list_tasks(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test listing tasks from the workspace."""
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / ".vscode").mkdir()
            (root / ".vscode" / "tasks.json").write_text(json.dumps({"tasks": [{"label": "lint", "command": "ruff"}]}))

            assert main(["--workspace", tmpdir, "--provider", "in_process", "tasks"]) == 0
            assert "lint" in capsys.readouterr().out

    def test_check_without_models(self) -> None:
        """Test that the connection check fails without models."""
        with TemporaryDirectory() as tmpdir:
            assert main(["--workspace", tmpdir, "--provider", "in_process", "check"]) == 1

    def test_run_without_models(self) -> None:
        """Test that a run with no models exits with an error."""
        with TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "a.py").write_text("x = 1")
            argv = ["--workspace", tmpdir, "--provider", "in_process", "run", "--prompt", "code-review", "-y"]
            assert main([*argv, str(Path(tmpdir) / "a.py")]) == 1

    def test_unknown_prompt(self) -> None:
        """Test that an unknown prompt name is reported."""
        with TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "a.py").write_text("x = 1")
            argv = ["--workspace", tmpdir, "--provider", "in_process", "run", "--prompt", "nope", "-y"]
            assert main([*argv, str(Path(tmpdir) / "a.py")]) == 1
