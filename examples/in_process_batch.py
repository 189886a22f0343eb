"""
Example running a prompt over this repository's source files with an
in-process model.

No server is needed: the "model" is a Python function that counts lines.
Swap in OllamaBackend or OpenAICompatibleBackend to use a real model.
"""

import asyncio
from logging import basicConfig
from logging import getLogger
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from batch_ai import BatchEngine
from batch_ai import BatchStartedEvent
from batch_ai import Event
from batch_ai import InProcessBackend
from batch_ai import ItemDoneEvent
from batch_ai import LLMGateway
from batch_ai import LLMRequest
from batch_ai import LLMResponse
from batch_ai import ResultSink
from batch_ai import Target
from batch_ai import Usage
from batch_ai import parse_prompt

logger = getLogger(__name__)
console = Console()

PROMPT = """---
description: Rough size report
tags: metrics
---

File {{FILE_NAME}} in {{WORKSPACE_PATH}}:

{{FILE_CONTENT}}
"""


async def line_counter(request: LLMRequest) -> LLMResponse:
    """Pretend to be a model: report how many lines the prompt contains."""
    await asyncio.sleep(0.1)  # Simulate inference latency
    lines = request.prompt.count("\n")
    words = len(request.prompt.split())
    return LLMResponse(
        content=f"{lines} lines, {words} words",
        usage=Usage(prompt_tokens=words, completion_tokens=4, total_tokens=words + 4),
    )


def on_event(event: Event) -> None:
    if isinstance(event, BatchStartedEvent):
        console.print(f"[dim]Batch {event.index + 1}: {event.size} files[/dim]")
    elif isinstance(event, ItemDoneEvent) and event.outcome:
        text = Text()
        text.append(f"[{event.processed}/{event.total}] ", style="dim")
        text.append(event.outcome.target.name, style="cyan")
        if event.outcome.success:
            text.append(f" {event.outcome.response}", style="white")
        else:
            text.append(f" ERROR: {event.outcome.error}", style="red")
        console.print(text)


async def main() -> None:
    console.print(Panel.fit("[bold blue]batch_ai in-process example[/bold blue]"))

    root = Path(__file__).resolve().parent.parent
    backend = InProcessBackend()
    backend.add_model("line-counter", line_counter)

    async with LLMGateway(backend) as gateway:
        engine = BatchEngine(
            gateway,
            ResultSink(root / ".batch-ai-results"),
            workspace_path=str(root),
        )
        targets = [Target.from_path(p) for p in sorted((root / "src" / "batch_ai").glob("*.py"))]
        prompt = parse_prompt("size-report", PROMPT)

        summary = await engine.process(targets, prompt, batch_size=4, on_event=on_event)

    console.print()
    console.print(
        f"[bold green]Done[/bold green] - {summary.total_successful}/{summary.total_processed} succeeded, "
        f"{summary.total_tokens} tokens, {summary.duration_ms:.0f}ms"
    )


if __name__ == "__main__":
    basicConfig(
        level="INFO",
        format="[%(name)s] %(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    asyncio.run(main())
