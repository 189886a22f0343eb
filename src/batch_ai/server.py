"""
Automation interface for external tools and agents.

Exposes task/prompt listing, batch runs over workspace glob patterns and a
status query, both as Python methods and as JSON-RPC 2.0 style requests
(`tools/list`, `tools/call`, `resources/list`, `resources/read`).

Example:
    server = AutomationServer(engine, tasks, prompts, workspace)
    response = await server.handle_request({
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {
            "name": "batch_process_files",
            "arguments": {"type": "prompt", "item_name": "code-review", "file_patterns": ["src/**/*.py"]},
        },
    })
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .config import MAX_BATCH_SIZE
from .config import MIN_BATCH_SIZE
from .config import validate_batch_size
from .content import TargetReader
from .engine import BatchEngine
from .exceptions import BatchAIError
from .exceptions import ConfigurationError
from .exceptions import ItemNotFoundError
from .exceptions import NoMatchingFilesError
from .sources import PromptSource
from .sources import TaskSource
from .types import Operation
from .types import OperationKind
from .types import RunSummary
from .types import Target

logger = logging.getLogger(__name__)

# JSON-RPC error codes
PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Never matched by file discovery
EXCLUDED_NAMES = {".git", ".svn", ".hg", "CVS", ".DS_Store", "Thumbs.db"}

_BRACES = re.compile(r"\{([^{}]*)\}")

TOOLS: list[dict[str, Any]] = [
    {
        "name": "batch_process_files",
        "description": "Process multiple files with AI tasks or prompts",
        "inputSchema": {
            "type": "object",
            "properties": {
                "type": {
                    "type": "string",
                    "enum": ["task", "prompt"],
                    "description": "Type of operation to perform",
                },
                "item_name": {
                    "type": "string",
                    "description": "Name of the task or prompt to use",
                },
                "file_patterns": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "File patterns to match (glob patterns)",
                },
                "batch_size": {
                    "type": "number",
                    "default": 1,
                    "minimum": MIN_BATCH_SIZE,
                    "maximum": MAX_BATCH_SIZE,
                    "description": "Number of files to process concurrently",
                },
            },
            "required": ["type", "item_name", "file_patterns"],
        },
    },
    {
        "name": "list_tasks",
        "description": "List all available AI tasks",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "list_prompts",
        "description": "List all available AI prompts",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_processing_status",
        "description": "Get current batch processing status",
        "inputSchema": {"type": "object", "properties": {}},
    },
]


class InvalidParamsError(BatchAIError):
    """Raised for malformed request parameters."""

    pass


def expand_pattern(pattern: str) -> list[str]:
    """
    Rewrite an editor-style glob into patterns Path.glob understands.

    Each `{a,b}` group becomes one pattern per alternative, and a trailing
    `**` is widened to `**/*` so it matches files and not only folders.
    """
    match = _BRACES.search(pattern)
    if match:
        head, tail = pattern[: match.start()], pattern[match.end() :]
        return [p for alt in match.group(1).split(",") for p in expand_pattern(head + alt + tail)]
    if pattern == "**" or pattern.endswith("/**"):
        pattern += "/*"
    return [pattern]


def discover_files(workspace: Path, patterns: list[str]) -> list[Path]:
    """
    Resolve glob patterns to files.

    Relative patterns are matched under the workspace; absolute paths to
    existing files are taken as they are. Brace alternatives are expanded
    first (see expand_pattern). Results keep discovery order with
    duplicates removed.
    """
    found: dict[Path, None] = {}
    for pattern in (p for raw in patterns for p in expand_pattern(raw) if p):
        candidate = Path(pattern).expanduser()
        if candidate.is_absolute():
            matches = [candidate] if candidate.is_file() else []
        else:
            matches = sorted(workspace.glob(pattern))
        for path in matches:
            if path.is_file() and not EXCLUDED_NAMES.intersection(path.parts):
                found.setdefault(path.absolute(), None)
    return list(found)


def summary_to_dict(summary: RunSummary) -> dict[str, Any]:
    """JSON-friendly view of a run summary."""
    return {
        "success": True,
        "processed": summary.total_processed,
        "successful": summary.total_successful,
        "failed": summary.total_failed,
        "cancelled": summary.cancelled,
        "duration_ms": round(summary.duration_ms),
        "tokens_used": summary.total_tokens,
        "results": [
            {
                "file": str(r.target.path),
                "success": r.success,
                "error": r.error,
                "response": r.response,
                "model": r.model,
                "tokens": r.tokens,
            }
            for r in summary.results
        ],
    }


class AutomationServer:
    """
    Batch operations for automation clients.
    """

    def __init__(
        self,
        engine: BatchEngine,
        tasks: TaskSource,
        prompts: PromptSource,
        workspace_path: Path,
    ):
        self.engine = engine
        self.tasks = tasks
        self.prompts = prompts
        self.workspace_path = workspace_path
        self._reader = TargetReader()

    # =========================================================================
    # Operations
    # =========================================================================

    def list_operations(self, kind: OperationKind | str) -> list[str]:
        """Names of the cached tasks or prompts."""
        kind = _kind(kind)
        if kind == OperationKind.TASK:
            return [t.name for t in self.tasks.get_tasks()]
        return [p.name for p in self.prompts.get_prompts()]

    def find_operation(self, kind: OperationKind | str, name: str) -> Operation:
        """
        Raises:
            ItemNotFoundError: If the name is not in that namespace
        """
        kind = _kind(kind)
        operation: Operation | None
        if kind == OperationKind.TASK:
            operation = self.tasks.get_task(name)
        else:
            operation = self.prompts.get_prompt(name)
        if operation is None:
            raise ItemNotFoundError(kind.value, name)
        return operation

    async def run_batch(
        self,
        kind: OperationKind | str,
        operation_name: str,
        file_patterns: list[str],
        batch_size: int = 1,
    ) -> RunSummary:
        """
        Run an operation over the files matching the patterns.

        Raises:
            ConfigurationError: If batch_size is outside 1..50
            ItemNotFoundError: If the operation does not exist
            NoMatchingFilesError: If no file matches
            ConcurrencyViolationError: If a run is already active
        """
        batch_size = validate_batch_size(batch_size)
        operation = self.find_operation(kind, operation_name)

        paths = await asyncio.to_thread(discover_files, self.workspace_path, file_patterns)
        if not paths:
            raise NoMatchingFilesError(file_patterns)

        targets = [Target.from_path(p) for p in paths]
        return await self.engine.process(targets, operation, batch_size)

    def get_status(self) -> dict[str, bool]:
        return {"processing": self.engine.is_active()}

    # =========================================================================
    # JSON-RPC
    # =========================================================================

    async def handle_request(self, request: dict[str, Any]) -> dict[str, Any]:
        """Answer one JSON-RPC request. Never raises."""
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params") or {}

        try:
            if method == "tools/list":
                result: Any = {"tools": TOOLS}
            elif method == "tools/call":
                result = await self._call_tool(params)
            elif method == "resources/list":
                result = await self._list_resources()
            elif method == "resources/read":
                result = await self._read_resource(params)
            else:
                return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        except (InvalidParamsError, ConfigurationError, ItemNotFoundError, NoMatchingFilesError) as e:
            return _error(request_id, INVALID_PARAMS, str(e))
        except BatchAIError as e:
            return _error(request_id, INTERNAL_ERROR, str(e))
        except Exception as e:
            logger.exception(f"Internal error handling {method}")
            return _error(request_id, INTERNAL_ERROR, f"Internal error: {e}")

        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def _call_tool(self, params: dict[str, Any]) -> Any:
        name = params.get("name")
        args = params.get("arguments") or {}

        if name == "batch_process_files":
            kind = args.get("type")
            item_name = args.get("item_name")
            patterns = args.get("file_patterns")
            if not kind or not item_name or not isinstance(patterns, list):
                raise InvalidParamsError("Invalid parameters. Required: type, item_name, file_patterns")
            summary = await self.run_batch(kind, item_name, patterns, args.get("batch_size", 1))
            return summary_to_dict(summary)
        elif name == "list_tasks":
            return self.list_operations(OperationKind.TASK)
        elif name == "list_prompts":
            return self.list_operations(OperationKind.PROMPT)
        elif name == "get_processing_status":
            return self.get_status()

        raise InvalidParamsError(f"Unknown tool: {name}")

    async def _list_resources(self) -> list[dict[str, str]]:
        paths = await asyncio.to_thread(discover_files, self.workspace_path, ["**/*"])
        return [{"path": str(p)} for p in paths]

    async def _read_resource(self, params: dict[str, Any]) -> str:
        file_path = params.get("path")
        if not file_path:
            raise InvalidParamsError("Missing file path")
        path = Path(file_path).expanduser()
        if not path.is_absolute():
            path = self.workspace_path / path
        return await self._reader.read(Target.from_path(path))

    async def serve(self, lines: AsyncIterator[str], write: Callable[[str], None]) -> None:
        """
        Answer newline-delimited JSON requests until the input ends.

        Requests are handled concurrently so status queries are answered
        while a batch is running. Requests without an id get no response.
        """
        pending: set[asyncio.Task[None]] = set()

        async def answer(request: dict[str, Any]) -> None:
            response = await self.handle_request(request)
            if "id" in request:
                write(json.dumps(response))

        async for line in lines:
            if not line.strip():
                continue
            try:
                request = json.loads(line)
                if not isinstance(request, dict):
                    raise ValueError("request must be an object")
            except ValueError as e:
                write(json.dumps(_error(None, PARSE_ERROR, f"Parse error: {e}")))
                continue
            task = asyncio.create_task(answer(request))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)


def _kind(kind: OperationKind | str) -> OperationKind:
    if isinstance(kind, OperationKind):
        return kind
    try:
        return OperationKind(kind)
    except ValueError:
        raise InvalidParamsError('Type must be "task" or "prompt"') from None


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}
