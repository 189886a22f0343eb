"""
Core types for batch_ai.
"""

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any
from typing import Literal

# =============================================================================
# Targets
# =============================================================================


class TargetKind(Enum):
    """What a target points at."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Target:
    """A file or directory selected for processing."""

    path: Path
    kind: TargetKind = TargetKind.FILE

    @property
    def name(self) -> str:
        """Final path segment."""
        return self.path.name

    @classmethod
    def from_path(cls, path: str | Path) -> "Target":
        """Build a target from a path, detecting whether it is a directory."""
        resolved = Path(path).expanduser().absolute()
        kind = TargetKind.DIRECTORY if resolved.is_dir() else TargetKind.FILE
        return cls(path=resolved, kind=kind)


# =============================================================================
# Operations
# =============================================================================


class OperationKind(Enum):
    """Namespaces an operation can live in."""

    TASK = "task"
    PROMPT = "prompt"


@dataclass(frozen=True)
class TaskOperation:
    """
    A reusable task.

    If `prompt_template` is not set, a default prompt naming `command` is
    used.
    """

    name: str
    command: str
    prompt_template: str | None = None
    description: str | None = None
    arguments: tuple[str, ...] = ()
    kind: Literal[OperationKind.TASK] = OperationKind.TASK


@dataclass(frozen=True)
class PromptMetadata:
    """Frontmatter of a prompt file."""

    author: str | None = None
    version: str | None = None
    tags: tuple[str, ...] = ()
    models: tuple[str, ...] = ()  # Preferred models ("model" key)
    extra: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PromptOperation:
    """A templated prompt, with its frontmatter already stripped from `body`."""

    name: str
    body: str
    description: str | None = None
    metadata: PromptMetadata = field(default_factory=PromptMetadata)
    source_path: Path | None = None
    kind: Literal[OperationKind.PROMPT] = OperationKind.PROMPT


Operation = TaskOperation | PromptOperation


# =============================================================================
# Requests and responses
# =============================================================================


@dataclass
class GenerationConfig:
    """Sampling settings shared by every request in a run."""

    temperature: float = 0.7
    max_tokens: int = 4000


@dataclass
class LLMRequest:
    """A single prompt sent to a backend. Built fresh for every target."""

    prompt: str
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


@dataclass
class Usage:
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass
class LLMResponse:
    """Buffered response from a backend."""

    content: str
    model: str | None = None
    usage: Usage | None = None  # None when the backend does not report usage
    raw_response: dict[str, Any] | None = None


# =============================================================================
# Outcomes
# =============================================================================


@dataclass
class ItemOutcome:
    """Success or failure record for one target."""

    target: Target
    success: bool
    response: str | None = None
    error: str | None = None
    model: str | None = None
    usage: Usage | None = None

    @property
    def tokens(self) -> int | None:
        """Total tokens, or None if the backend did not report usage."""
        return self.usage.total_tokens if self.usage else None


@dataclass(frozen=True)
class RunSummary:
    """Aggregated result of one run. Results are in input order."""

    results: tuple[ItemOutcome, ...]
    total_processed: int
    total_successful: int
    total_failed: int
    total_tokens: int
    duration_ms: float
    cancelled: bool = False

    @classmethod
    def from_outcomes(
        cls,
        outcomes: list[ItemOutcome],
        duration_ms: float,
        cancelled: bool = False,
    ) -> "RunSummary":
        successful = sum(1 for o in outcomes if o.success)
        return cls(
            results=tuple(outcomes),
            total_processed=len(outcomes),
            total_successful=successful,
            total_failed=len(outcomes) - successful,
            total_tokens=sum(o.tokens or 0 for o in outcomes),
            duration_ms=duration_ms,
            cancelled=cancelled,
        )
