"""
Settings loaded from the environment (and an optional `.env` file).

Variables:
    BATCH_AI_LLM_PROVIDER       in_process | ollama | openai_compatible
    BATCH_AI_MODEL              model to use without asking, if available
    BATCH_AI_OLLAMA_ENDPOINT    default http://localhost:11434
    BATCH_AI_OPENAI_BASE_URL    default https://api.openai.com/v1
    BATCH_AI_OPENAI_API_KEY     falls back to OPENAI_API_KEY
    BATCH_AI_DEFAULT_BATCH_SIZE 1..50, default 1
    BATCH_AI_WORKSPACE          default: current directory
    BATCH_AI_PROMPTS_FOLDER     default .vscode/prompts
    BATCH_AI_TASKS_FILE         default .vscode/tasks.json
    BATCH_AI_RESULTS_FOLDER     default .vscode/batch-ai-results
    BATCH_AI_TEMPERATURE        default 0.7
    BATCH_AI_MAX_TOKENS         default 4000
    BATCH_AI_REQUEST_TIMEOUT    seconds; unset means no timeout
    BATCH_AI_HTTP_LOG_FILE      log backend HTTP traffic to this file

Relative folder and file paths are resolved against the workspace.
"""

import os
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .provider.base import ProviderType
from .types import GenerationConfig

MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 50


def validate_batch_size(value: Any) -> int:
    """
    Enforce the 1..50 batch size policy.

    Raises:
        ConfigurationError: If the value is not an integer in range
    """
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Batch size must be an integer, got {value!r}") from None
    if isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(f"Batch size must be an integer, got {value!r}")
    if not MIN_BATCH_SIZE <= size <= MAX_BATCH_SIZE:
        raise ConfigurationError(f"Batch size must be between {MIN_BATCH_SIZE} and {MAX_BATCH_SIZE}")
    return size


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    llm_provider: ProviderType = ProviderType.IN_PROCESS
    model: str | None = None
    ollama_endpoint: str = "http://localhost:11434"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_key: str | None = None
    default_batch_size: int = 1
    workspace_path: Path = field(default_factory=Path.cwd)
    prompts_folder: Path = Path(".vscode/prompts")
    tasks_file: Path = Path(".vscode/tasks.json")
    results_folder: Path = Path(".vscode/batch-ai-results")
    temperature: float = 0.7
    max_tokens: int = 4000
    request_timeout: float | None = None
    http_log_file: Path | None = None

    def __post_init__(self) -> None:
        validate_batch_size(self.default_batch_size)
        if self.max_tokens < 1:
            raise ConfigurationError("max_tokens must be positive")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

    @classmethod
    def from_env(cls, env_file: Path | None = None, **overrides: Any) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional .env file (the default dotenv lookup otherwise)
            **overrides: Field values that win over the environment

        Raises:
            ConfigurationError: If a value is invalid
        """
        load_dotenv(env_file)

        values: dict[str, Any] = {}
        provider = _env("LLM_PROVIDER")
        if provider:
            try:
                values["llm_provider"] = ProviderType(provider)
            except ValueError:
                choices = ", ".join(p.value for p in ProviderType)
                raise ConfigurationError(f"Unknown LLM provider '{provider}' (expected one of: {choices})") from None

        for name, key in (
            ("model", "MODEL"),
            ("ollama_endpoint", "OLLAMA_ENDPOINT"),
            ("openai_base_url", "OPENAI_BASE_URL"),
        ):
            if value := _env(key):
                values[name] = value

        api_key = _env("OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY")
        if api_key:
            values["openai_api_key"] = api_key

        for name, key in (
            ("workspace_path", "WORKSPACE"),
            ("prompts_folder", "PROMPTS_FOLDER"),
            ("tasks_file", "TASKS_FILE"),
            ("results_folder", "RESULTS_FOLDER"),
            ("http_log_file", "HTTP_LOG_FILE"),
        ):
            if value := _env(key):
                values[name] = Path(value).expanduser()

        if value := _env("DEFAULT_BATCH_SIZE"):
            values["default_batch_size"] = validate_batch_size(value)
        if value := _env("TEMPERATURE"):
            values["temperature"] = _number(key="TEMPERATURE", value=value, kind=float)
        if value := _env("MAX_TOKENS"):
            values["max_tokens"] = _number(key="MAX_TOKENS", value=value, kind=int)
        if value := _env("REQUEST_TIMEOUT"):
            values["request_timeout"] = _number(key="REQUEST_TIMEOUT", value=value, kind=float)

        values.update(overrides)
        return cls(**values).resolved()

    def resolved(self) -> "Settings":
        """Return a copy with relative paths anchored at the workspace."""
        workspace = self.workspace_path.expanduser().absolute()
        return replace(
            self,
            workspace_path=workspace,
            prompts_folder=_anchor(workspace, self.prompts_folder),
            tasks_file=_anchor(workspace, self.tasks_file),
            results_folder=_anchor(workspace, self.results_folder),
            http_log_file=_anchor(workspace, self.http_log_file) if self.http_log_file else None,
        )

    @property
    def generation(self) -> GenerationConfig:
        return GenerationConfig(temperature=self.temperature, max_tokens=self.max_tokens)


def _env(key: str) -> str | None:
    value = os.getenv(f"BATCH_AI_{key}")
    return value.strip() if value and value.strip() else None


def _number(key: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError:
        raise ConfigurationError(f"BATCH_AI_{key} must be a number, got {value!r}") from None


def _anchor(workspace: Path, path: Path) -> Path:
    return path if path.is_absolute() else workspace / path
