"""
batch_ai - Apply AI tasks and prompts to many files at once.

A task (from a tasks.json file) or a prompt (a `*.prompt.md` file with
optional frontmatter) is resolved against each file or folder, sent to a
language model backend, and the responses are collected into a run summary
and a markdown report.

Key features:
- Interchangeable backends: in-process handlers, Ollama, OpenAI-compatible HTTP
- Bounded concurrency with ordered results and pacing between batches
- Cooperative cancellation at batch boundaries
- One active run per engine
- Per-item result files and a batch summary report
- JSON-RPC automation interface

Example:
    from pathlib import Path

    from batch_ai import BatchEngine
    from batch_ai import InProcessBackend
    from batch_ai import LLMGateway
    from batch_ai import ResultSink
    from batch_ai import Target
    from batch_ai import parse_prompt

    backend = InProcessBackend()

    @backend.register_model("echo")
    async def echo(request):
        return request.prompt.upper()

    engine = BatchEngine(LLMGateway(backend), ResultSink(Path("results")))
    prompt = parse_prompt("shout", "Shout this: {{FILE_CONTENT}}")
    targets = [Target.from_path(p) for p in Path("docs").glob("*.md")]

    summary = await engine.process(targets, prompt, batch_size=4)
    print(f"{summary.total_successful}/{summary.total_processed} succeeded")

From the environment:
    from batch_ai import BatchApp
    from batch_ai import Settings

    async with await BatchApp.create(Settings.from_env()) as app:
        summary = await app.server.run_batch("prompt", "code-review", ["src/**/*.py"], batch_size=2)
"""

from .app import BatchApp
from .config import Settings
from .content import TargetReader
from .engine import BatchEngine
from .engine import CancellationToken
from .engine import create_batches
from .events import BatchStartedEvent
from .events import Event
from .events import EventType
from .events import ItemDoneEvent
from .events import RunDoneEvent
from .events import RunStartedEvent
from .exceptions import BackendError
from .exceptions import BatchAIError
from .exceptions import ConcurrencyViolationError
from .exceptions import ConfigurationError
from .exceptions import ItemNotFoundError
from .exceptions import NoMatchingFilesError
from .exceptions import NoModelAvailableError
from .exceptions import ReadError
from .exceptions import TemplateError
from .http import FileHTTPLogger
from .provider import InProcessBackend
from .provider import LLMGateway
from .provider import ModelBackend
from .provider import OllamaBackend
from .provider import OpenAICompatibleBackend
from .provider import ProviderType
from .provider import create_backend
from .server import AutomationServer
from .sink import ResultSink
from .sources import PromptSource
from .sources import TaskSource
from .sources import parse_prompt
from .templates import resolve
from .types import GenerationConfig
from .types import ItemOutcome
from .types import LLMRequest
from .types import LLMResponse
from .types import OperationKind
from .types import PromptMetadata
from .types import PromptOperation
from .types import RunSummary
from .types import Target
from .types import TargetKind
from .types import TaskOperation
from .types import Usage

__all__ = [
    # App
    "BatchApp",
    "Settings",
    # Engine
    "BatchEngine",
    "CancellationToken",
    "TargetReader",
    "create_batches",
    "resolve",
    # Backends
    "InProcessBackend",
    "LLMGateway",
    "ModelBackend",
    "OllamaBackend",
    "OpenAICompatibleBackend",
    "ProviderType",
    "create_backend",
    "FileHTTPLogger",
    # Sources and output
    "PromptSource",
    "TaskSource",
    "parse_prompt",
    "ResultSink",
    "AutomationServer",
    # Types
    "GenerationConfig",
    "ItemOutcome",
    "LLMRequest",
    "LLMResponse",
    "OperationKind",
    "PromptMetadata",
    "PromptOperation",
    "RunSummary",
    "Target",
    "TargetKind",
    "TaskOperation",
    "Usage",
    # Events
    "Event",
    "EventType",
    "RunStartedEvent",
    "BatchStartedEvent",
    "ItemDoneEvent",
    "RunDoneEvent",
    # Exceptions
    "BatchAIError",
    "BackendError",
    "ConcurrencyViolationError",
    "ConfigurationError",
    "ItemNotFoundError",
    "NoMatchingFilesError",
    "NoModelAvailableError",
    "ReadError",
    "TemplateError",
]
