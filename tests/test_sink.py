"""Tests for result documents and run reports."""

import asyncio
from datetime import UTC
from datetime import datetime
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from batch_ai import ItemOutcome
from batch_ai import PromptOperation
from batch_ai import ResultSink
from batch_ai import RunSummary
from batch_ai import Target
from batch_ai import TargetKind
from batch_ai import TaskOperation
from batch_ai import Usage
from batch_ai import sink as sink_module
from batch_ai.sink import file_timestamp
from batch_ai.sink import iso_timestamp
from batch_ai.sink import result_file_name

PROMPT = PromptOperation(name="code-review", body="Review {{FILE_CONTENT}}")


def _outcome(name: str, success: bool = True) -> ItemOutcome:
    target = Target(path=Path("/w") / name, kind=TargetKind.FILE)
    if success:
        return ItemOutcome(target=target, success=True, response=f"reviewed {name}", model="m", usage=Usage(1, 2, 3))
    return ItemOutcome(target=target, success=False, error="Ollama error: timeout", model="m")


class TestNaming:
    """Test timestamps and result file names."""

    def test_timestamps(self) -> None:
        """Test the ISO and file-safe formats."""
        now = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=UTC)
        assert iso_timestamp(now) == "2024-05-01T12:30:45.123Z"
        assert file_timestamp(now) == "2024-05-01T12-30-45-123Z"

    def test_result_file_name(self) -> None:
        """Test that separators in operation names are replaced."""
        target = Target(path=Path("/w/app.py"))
        task = TaskOperation(name="lint/strict", command="ruff")
        assert result_file_name(target, task, "TS") == "app.py_lint-strict_TS.md"


class TestRecord:
    """Test per-item result documents."""

    def test_success_written(self) -> None:
        """Test the document for a successful item."""
        with TemporaryDirectory() as tmpdir:
            sink = ResultSink(Path(tmpdir) / "results")
            outcome = _outcome("app.py")
            path = asyncio.run(sink.record(outcome.target, outcome, PROMPT))

            assert path is not None
            assert path.name.startswith("app.py_code-review_")
            assert path.suffix == ".md"
            text = path.read_text(encoding="utf-8")
            assert text.startswith("# AI Result for app.py")
            assert "**Type**: prompt" in text
            assert "**Item**: code-review" in text
            assert "reviewed app.py" in text
            assert text.rstrip().endswith("*Generated by Batch AI Operations*")

    def test_failure_not_written(self) -> None:
        """Test that failed items produce no document."""
        with TemporaryDirectory() as tmpdir:
            results = Path(tmpdir) / "results"
            outcome = _outcome("app.py", success=False)
            assert asyncio.run(ResultSink(results).record(outcome.target, outcome, PROMPT)) is None
            assert not results.exists()

    def test_write_failure_swallowed(self) -> None:
        """Test that an unwritable folder does not raise."""
        with TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "file"
            blocker.write_text("not a folder")
            outcome = _outcome("app.py")
            assert asyncio.run(ResultSink(blocker / "results").record(outcome.target, outcome, PROMPT)) is None

    def test_disabled(self) -> None:
        """Test that a sink without a folder writes nothing."""
        outcome = _outcome("app.py")
        assert asyncio.run(ResultSink(None).record(outcome.target, outcome, PROMPT)) is None

    def test_same_name_not_overwritten(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that same-named targets recorded at the same instant each get a document."""
        monkeypatch.setattr(sink_module, "file_timestamp", lambda now=None: "TS")
        with TemporaryDirectory() as tmpdir:
            results = Path(tmpdir) / "results"
            sink = ResultSink(results)
            outcomes = [_outcome(f"{folder}/index.txt") for folder in "abcd"]

            async def record_all() -> list[Path | None]:
                return await asyncio.gather(*(sink.record(o.target, o, PROMPT) for o in outcomes))

            paths = asyncio.run(record_all())

            assert sorted(p.name for p in paths if p is not None) == [
                "index.txt_code-review_TS-1.md",
                "index.txt_code-review_TS-2.md",
                "index.txt_code-review_TS-3.md",
                "index.txt_code-review_TS.md",
            ]
            bodies = {p.read_text(encoding="utf-8") for p in results.iterdir()}
            assert len(bodies) == 4


class TestSummarize:
    """Test run reports."""

    def test_sections(self) -> None:
        """Test that successes and failures are listed separately."""
        summary = RunSummary.from_outcomes([_outcome("a.py"), _outcome("b.py", success=False)], duration_ms=2400)
        report = ResultSink(None).summarize(summary)

        assert report.successes == 1
        assert report.failures == 1
        content = report.content
        assert content.startswith("# Batch AI Results")
        assert "**Total Processed**: 2" in content
        assert "**Total Tokens**: 3" in content
        assert "**Duration**: 2s" in content
        successes, failures = content.split("## Failed Operations")
        assert "### a.py" in successes and "reviewed a.py" in successes
        assert "### b.py" in failures and "**Error**: Ollama error: timeout" in failures

    def test_empty_sections(self) -> None:
        """Test placeholders when a section has no entries."""
        summary = RunSummary.from_outcomes([_outcome("a.py")], duration_ms=0)
        content = ResultSink(None).summarize(summary).content
        assert content.split("## Failed Operations")[1].strip() == "_None_"

    def test_publish_writes_report(self) -> None:
        """Test that publish() saves the report next to the results."""
        with TemporaryDirectory() as tmpdir:
            results = Path(tmpdir) / "results"
            summary = RunSummary.from_outcomes([_outcome("a.py")], duration_ms=10, cancelled=True)
            report = asyncio.run(ResultSink(results).publish(summary))

            assert report.path is not None
            assert report.path.name.startswith("batch-summary_")
            assert "**Cancelled**: yes" in report.path.read_text(encoding="utf-8")
