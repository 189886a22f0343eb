"""
Result persistence and run reports.

Every successful item becomes one markdown document in the results folder.
Writing is best-effort: a failed write is logged and never fails the run.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .types import ItemOutcome
from .types import Operation
from .types import RunSummary
from .types import Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedReport:
    """Human-readable run report."""

    content: str
    successes: int
    failures: int
    path: Path | None = None  # Set once the report has been written


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp like 2024-05-01T12:30:45.123Z."""
    now = (now or datetime.now(UTC)).astimezone(UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def file_timestamp(now: datetime | None = None) -> str:
    """ISO timestamp with ':' and '.' replaced by '-', safe for file names."""
    return iso_timestamp(now).replace(":", "-").replace(".", "-")


def result_file_name(target: Target, operation: Operation, timestamp: str) -> str:
    """`<target-basename>_<operation-name>_<timestamp>.md`."""
    operation_name = operation.name.replace("/", "-").replace("\\", "-")
    return f"{target.name}_{operation_name}_{timestamp}.md"


class ResultSink:
    """
    Writes result documents and run reports.

    Example:
        sink = ResultSink(Path(".vscode/batch-ai-results"))
        await sink.record(target, outcome, operation)
        report = sink.summarize(summary)
    """

    def __init__(self, output_dir: Path | None):
        """
        Args:
            output_dir: Folder for result documents; None disables writing
        """
        self.output_dir = output_dir

    async def record(self, target: Target, outcome: ItemOutcome, operation: Operation) -> Path | None:
        """
        Persist the outcome of one item.

        Only successful outcomes produce a document. Never raises.

        Returns:
            Path of the written document, or None if nothing was written
        """
        if self.output_dir is None or not outcome.success:
            return None

        try:
            now = datetime.now(UTC)
            path = self.output_dir / result_file_name(target, operation, file_timestamp(now))
            document = render_result(target, outcome, operation, iso_timestamp(now))
            path = await asyncio.to_thread(self._create, path, document)
            logger.debug(f"Saved result for {target.path} to {path}")
            return path
        except Exception as e:
            logger.error(f"Failed to save result for {target.path}: {e}")
            return None

    def summarize(self, summary: RunSummary) -> RenderedReport:
        """Render a report with successes and failures in separate sections."""
        successful = [r for r in summary.results if r.success]
        failed = [r for r in summary.results if not r.success]

        lines = [
            "# Batch AI Results",
            "",
            f"**Total Processed**: {summary.total_processed}",
            f"**Successful**: {summary.total_successful}",
            f"**Failed**: {summary.total_failed}",
            f"**Total Tokens**: {summary.total_tokens}",
            f"**Duration**: {round(summary.duration_ms / 1000)}s",
        ]
        if summary.cancelled:
            lines.append("**Cancelled**: yes")
        lines.append("")

        lines += ["## Successful Operations", ""]
        if not successful:
            lines += ["_None_", ""]
        for item in successful:
            lines += _entry_header(item)
            lines += ["**Response**:", "```", item.response or "", "```", ""]

        lines += ["## Failed Operations", ""]
        if not failed:
            lines += ["_None_", ""]
        for item in failed:
            lines += _entry_header(item)
            lines += [f"**Error**: {item.error}", ""]

        return RenderedReport(content="\n".join(lines), successes=len(successful), failures=len(failed))

    async def publish(self, summary: RunSummary) -> RenderedReport:
        """
        Log a run summary and write its report next to the results. Never raises.
        """
        logger.info(
            f"Batch processing completed: processed={summary.total_processed} "
            f"successful={summary.total_successful} failed={summary.total_failed} "
            f"tokens={summary.total_tokens} duration={round(summary.duration_ms / 1000)}s"
            + (" (cancelled)" if summary.cancelled else "")
        )
        report = self.summarize(summary)
        if self.output_dir is None:
            return report

        path = self.output_dir / f"batch-summary_{file_timestamp()}.md"
        try:
            path = await asyncio.to_thread(self._create, path, report.content)
        except Exception as e:
            logger.error(f"Failed to save run report: {e}")
            return report
        return RenderedReport(report.content, report.successes, report.failures, path=path)

    def _create(self, path: Path, content: str) -> Path:
        """Write to a new file, adding -1, -2, ... before .md if the name is taken."""
        path.parent.mkdir(parents=True, exist_ok=True)
        candidate, n = path, 0
        while True:
            try:
                with candidate.open("x", encoding="utf-8") as f:
                    f.write(content)
                return candidate
            except FileExistsError:
                n += 1
                candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")


def render_result(target: Target, outcome: ItemOutcome, operation: Operation, timestamp: str) -> str:
    """Markdown document for one successful item."""
    return f"""# AI Result for {target.name}

**Type**: {operation.kind.value}
**Item**: {operation.name}
**Timestamp**: {timestamp}
**File**: {target.path}

## Result

{outcome.response or ""}

---
*Generated by Batch AI Operations*
"""


def _entry_header(item: ItemOutcome) -> list[str]:
    return [
        f"### {item.target.name}",
        f"**Path**: {item.target.path}",
        f"**Model**: {item.model or 'Unknown'}",
        f"**Tokens**: {item.tokens or 0}",
        "",
    ]
