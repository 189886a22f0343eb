"""
Command-line front end.

    batch-ai prompts
    batch-ai tasks
    batch-ai models
    batch-ai check
    batch-ai run --prompt code-review src/app.py src/util.py --batch-size 2
    batch-ai serve
"""

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import AsyncIterator
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.progress import BarColumn
from rich.progress import MofNCompleteColumn
from rich.progress import Progress
from rich.progress import TextColumn
from rich.progress import TimeElapsedColumn
from rich.prompt import Confirm
from rich.prompt import Prompt
from rich.table import Table

from .app import BatchApp
from .config import Settings
from .config import validate_batch_size
from .events import Event
from .events import ItemDoneEvent
from .events import RunStartedEvent
from .exceptions import BatchAIError
from .provider import ProviderType
from .types import Operation
from .types import RunSummary
from .types import Target

logger = logging.getLogger(__name__)
console = Console(stderr=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="batch-ai",
        description="Apply AI tasks and prompts to many files at once.",
    )
    parser.add_argument("--env-file", type=Path, help="Load settings from this .env file")
    parser.add_argument("--workspace", type=Path, help="Workspace root (default: current directory)")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in ProviderType],
        help="LLM backend (default: BATCH_AI_LLM_PROVIDER)",
    )
    parser.add_argument("--model", help="Model to use without asking")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("tasks", help="List available tasks")
    commands.add_parser("prompts", help="List available prompts")
    commands.add_parser("models", help="List models offered by the backend")
    commands.add_parser("check", help="Test the backend connection")
    commands.add_parser("serve", help="Answer JSON-RPC requests on stdin/stdout")

    run = commands.add_parser("run", help="Process files or folders with a task or prompt")
    operation = run.add_mutually_exclusive_group(required=True)
    operation.add_argument("--task", help="Task name")
    operation.add_argument("--prompt", help="Prompt name")
    run.add_argument("paths", nargs="+", type=Path, help="Files or folders to process")
    run.add_argument("-b", "--batch-size", type=int, help="Items processed concurrently (1-50)")
    run.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    run.add_argument("--report", action="store_true", help="Print the full report when done")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    overrides: dict[str, object] = {}
    if args.workspace:
        overrides["workspace_path"] = args.workspace
    if args.provider:
        overrides["llm_provider"] = ProviderType(args.provider)
    if args.model:
        overrides["model"] = args.model

    try:
        settings = Settings.from_env(args.env_file, **overrides)
        return asyncio.run(_dispatch(args, settings))
    except BatchAIError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        return 130


async def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    async with await BatchApp.create(settings, chooser=_choose_model) as app:
        if args.command == "tasks":
            _print_tasks(app)
        elif args.command == "prompts":
            _print_prompts(app)
        elif args.command == "models":
            for model in await app.gateway.list_models():
                print(model)
        elif args.command == "check":
            ok = await app.gateway.test_connection()
            console.print(f"{app.gateway.backend.name}: " + ("[green]ok[/green]" if ok else "[red]unreachable[/red]"))
            return 0 if ok else 1
        elif args.command == "serve":
            await app.server.serve(_stdin_lines(), _write_stdout)
        elif args.command == "run":
            return await _run(args, app)
    return 0


async def _run(args: argparse.Namespace, app: BatchApp) -> int:
    operation: Operation | None
    if args.task:
        operation = app.tasks.get_task(args.task)
        kind, name = "Task", args.task
    else:
        operation = app.prompts.get_prompt(args.prompt)
        kind, name = "Prompt", args.prompt
    if operation is None:
        console.print(f"[bold red]{kind} not found:[/bold red] {name}")
        return 1

    missing = [p for p in args.paths if not p.exists()]
    if missing:
        console.print(f"[bold red]Path not found:[/bold red] {', '.join(str(p) for p in missing)}")
        return 1
    targets = [Target.from_path(p) for p in args.paths]

    batch_size = validate_batch_size(
        args.batch_size if args.batch_size is not None else app.settings.default_batch_size
    )
    requests = -(-len(targets) // batch_size)
    if not args.yes and not Confirm.ask(
        f"This will process {len(targets)} items in {requests} batches (batch size: {batch_size}). Continue?",
        console=console,
    ):
        return 0

    summary = await _process_with_progress(app, targets, operation, batch_size)
    _print_summary(summary)
    if args.report:
        console.print(Markdown(app.sink.summarize(summary).content))
    return 0


async def _process_with_progress(
    app: BatchApp,
    targets: list[Target],
    operation: Operation,
    batch_size: int,
) -> RunSummary:
    progress = Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )
    task_id = progress.add_task(f"{operation.kind.value}: {operation.name}", total=len(targets))

    def on_event(event: Event) -> None:
        if isinstance(event, RunStartedEvent):
            console.print(f"[dim]Model: {event.model}[/dim]")
            progress.start()
        elif isinstance(event, ItemDoneEvent):
            progress.update(task_id, completed=event.processed)

    def request_cancel() -> None:
        console.print("[yellow]Cancelling after the current batch...[/yellow]")
        app.engine.cancel()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, request_cancel)
        handles_sigint = True
    except (NotImplementedError, RuntimeError):
        handles_sigint = False

    try:
        return await app.engine.process(targets, operation, batch_size, on_event=on_event)
    finally:
        progress.stop()
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)


async def _choose_model(models: list[str]) -> str | None:
    def ask() -> str | None:
        for i, model in enumerate(models, 1):
            console.print(f"  [cyan]{i}[/cyan]. {model}")
        answer = Prompt.ask(
            "Select a model",
            choices=[str(i) for i in range(1, len(models) + 1)],
            default="1",
            console=console,
        )
        return models[int(answer) - 1]

    return await asyncio.to_thread(ask)


def _print_tasks(app: BatchApp) -> None:
    tasks = app.tasks.get_tasks()
    if not tasks:
        console.print(f"[yellow]No tasks found. Configure tasks in {app.settings.tasks_file}[/yellow]")
        return
    table = Table("Name", "Command", "Description")
    for task in tasks:
        table.add_row(task.name, task.command, task.description or "")
    Console().print(table)


def _print_prompts(app: BatchApp) -> None:
    prompts = app.prompts.get_prompts()
    if not prompts:
        console.print(f"[yellow]No prompts found. Create *.prompt.md files in {app.settings.prompts_folder}[/yellow]")
        return
    table = Table("Name", "Description", "Tags")
    for prompt in prompts:
        table.add_row(prompt.name, prompt.description or "", ", ".join(prompt.metadata.tags))
    Console().print(table)


def _print_summary(summary: RunSummary) -> None:
    status = "[yellow]cancelled[/yellow]" if summary.cancelled else "[green]completed[/green]"
    console.print(
        f"Batch processing {status}:\n"
        f"  Processed: {summary.total_processed} items\n"
        f"  Successful: {summary.total_successful}\n"
        f"  Failed: {summary.total_failed}\n"
        f"  Tokens used: {summary.total_tokens}\n"
        f"  Duration: {round(summary.duration_ms / 1000)}s"
    )
    for outcome in summary.results:
        if not outcome.success:
            console.print(f"  [red]x[/red] {outcome.target.path}: {outcome.error}")


async def _stdin_lines() -> AsyncIterator[str]:
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            return
        yield line


def _write_stdout(text: str) -> None:
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


if __name__ == "__main__":
    sys.exit(main())
