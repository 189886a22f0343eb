"""Tests for prompt and task sources."""

import asyncio
import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from batch_ai import PromptSource
from batch_ai import TaskSource
from batch_ai import parse_prompt
from batch_ai.sources import DEFAULT_PROMPTS
from batch_ai.sources import parse_tasks_file


class TestParsePrompt:
    """Test prompt file parsing."""

    def test_frontmatter(self) -> None:
        """Test that metadata is parsed and removed from the body."""
        text = (
            "---\n"
            "description: Explain code\n"
            "author: Jane\n"
            "version: 2\n"
            "tags: explanation, learning\n"
            "model: llama3, mistral\n"
            "audience: beginners\n"
            "---\n"
            "\n"
            "Explain {{FILE_CONTENT}}\n"
        )
        prompt = parse_prompt("explain", text)

        assert prompt.name == "explain"
        assert prompt.body == "Explain {{FILE_CONTENT}}"
        assert prompt.description == "Explain code"
        assert prompt.metadata.author == "Jane"
        assert prompt.metadata.version == "2"
        assert prompt.metadata.tags == ("explanation", "learning")
        assert prompt.metadata.models == ("llama3", "mistral")
        assert prompt.metadata.extra == {"audience": "beginners"}

    def test_no_frontmatter(self) -> None:
        """Test that a plain file is all body."""
        prompt = parse_prompt("plain", "  Summarize {{FILE_NAME}}  \n")
        assert prompt.body == "Summarize {{FILE_NAME}}"
        assert prompt.description is None
        assert prompt.metadata.tags == ()

    def test_unclosed_frontmatter(self) -> None:
        """Test that a missing closing delimiter keeps everything in the body."""
        prompt = parse_prompt("open", "---\ndescription: x\nBody")
        assert prompt.body == "---\ndescription: x\nBody"
        assert prompt.description is None

    def test_delimiter_must_be_exact(self) -> None:
        """Test that an indented delimiter does not start frontmatter."""
        prompt = parse_prompt("p", " ---\ndescription: x\n---\nBody")
        assert prompt.description is None
        assert prompt.body.startswith("---")

    def test_defaults_parse(self) -> None:
        """Test that every built-in prompt has a description and a content placeholder."""
        for name, text in DEFAULT_PROMPTS.items():
            prompt = parse_prompt(name, text)
            assert prompt.description
            assert "{{FILE_CONTENT}}" in prompt.body
            assert not prompt.body.startswith("---")


class TestPromptSource:
    """Test loading prompts from a folder."""

    def test_seeds_missing_folder(self) -> None:
        """Test that a missing folder gets the default prompts."""
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "prompts"
            source = PromptSource(folder)
            asyncio.run(source.refresh())

            names = {p.name for p in source.get_prompts()}
            assert names == set(DEFAULT_PROMPTS)
            assert (folder / "code-review.prompt.md").exists()
            review = source.get_prompt("code-review")
            assert review is not None
            assert review.source_path == folder / "code-review.prompt.md"

    def test_no_defaults(self) -> None:
        """Test that seeding can be disabled."""
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir) / "prompts"
            source = PromptSource(folder, create_defaults=False)
            asyncio.run(source.refresh())
            assert source.get_prompts() == []
            assert not folder.exists()

    def test_only_prompt_files(self) -> None:
        """Test that other files in the folder are ignored."""
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "a.prompt.md").write_text("A {{FILE_CONTENT}}")
            (folder / "notes.md").write_text("not a prompt")
            source = PromptSource(folder)
            asyncio.run(source.refresh())

            assert [p.name for p in source.get_prompts()] == ["a"]
            assert source.get_prompt("notes") is None

    def test_cached_until_refresh(self) -> None:
        """Test that new files appear only after refresh()."""
        with TemporaryDirectory() as tmpdir:
            folder = Path(tmpdir)
            (folder / "a.prompt.md").write_text("A")
            source = PromptSource(folder)
            asyncio.run(source.refresh())

            (folder / "b.prompt.md").write_text("B")
            assert len(source.get_prompts()) == 1
            asyncio.run(source.refresh())
            assert len(source.get_prompts()) == 2

    def test_create_prompt(self) -> None:
        """Test writing a new prompt."""
        with TemporaryDirectory() as tmpdir:
            source = PromptSource(Path(tmpdir))
            prompt = asyncio.run(source.create_prompt("fresh", "---\ndescription: New\n---\nDo {{FILE_NAME}}"))
            assert prompt is not None
            assert prompt.description == "New"
            assert prompt.body == "Do {{FILE_NAME}}"

    def test_create_prompt_without_folder(self) -> None:
        """Test that creating a prompt needs a folder."""
        with pytest.raises(ValueError):
            asyncio.run(PromptSource(None).create_prompt("x", "y"))


class TestTaskSource:
    """Test tasks.json loading."""

    def test_parse_tasks(self) -> None:
        """Test labels, commands, templates and comments."""
        text = """{
            // build and lint tasks
            "version": "2.0.0",
            "tasks": [
                {"label": "lint", "command": "ruff check", "detail": "Lint", "aiPrompt": "Fix {{FILE_NAME}}"},
                {"command": "make docs", "args": ["--quiet"]},
                {"type": "shell"}
            ]
        }"""
        tasks = parse_tasks_file(text)

        assert [t.name for t in tasks] == ["lint", "make docs"]
        assert tasks[0].prompt_template == "Fix {{FILE_NAME}}"
        assert tasks[0].description == "Lint"
        assert tasks[1].prompt_template is None
        assert tasks[1].arguments == ("--quiet",)

    def test_missing_file(self) -> None:
        """Test that a missing tasks file means no tasks."""
        with TemporaryDirectory() as tmpdir:
            source = TaskSource(Path(tmpdir) / "tasks.json")
            asyncio.run(source.refresh())
            assert source.get_tasks() == []

    def test_invalid_json(self) -> None:
        """Test that a broken tasks file is logged and ignored."""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tasks.json"
            path.write_text("{not json")
            source = TaskSource(path)
            asyncio.run(source.refresh())
            assert source.get_tasks() == []

    def test_tasks_not_a_list(self) -> None:
        """Test that valid JSON of the wrong shape is logged and ignored."""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tasks.json"
            for text in ('{"version": "2.0.0", "tasks": null}', "null", "42", '{"tasks": {"label": "x"}}'):
                path.write_text(text)
                source = TaskSource(path)
                asyncio.run(source.refresh())
                assert source.get_tasks() == []

        with pytest.raises(ValueError, match="Expected a list of tasks"):
            parse_tasks_file('{"tasks": null}')

    def test_lookup(self) -> None:
        """Test finding a task by name."""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "tasks.json"
            path.write_text(json.dumps({"tasks": [{"label": "test", "command": "pytest"}]}))
            source = TaskSource(path)
            asyncio.run(source.refresh())

            task = source.get_task("test")
            assert task is not None
            assert task.command == "pytest"
            assert source.get_task("deploy") is None
