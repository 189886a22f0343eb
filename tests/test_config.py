"""Tests for settings."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from batch_ai import ConfigurationError
from batch_ai import ProviderType
from batch_ai import Settings
from batch_ai.config import validate_batch_size

ENV_KEYS = [
    "BATCH_AI_LLM_PROVIDER",
    "BATCH_AI_MODEL",
    "BATCH_AI_OLLAMA_ENDPOINT",
    "BATCH_AI_OPENAI_BASE_URL",
    "BATCH_AI_OPENAI_API_KEY",
    "OPENAI_API_KEY",
    "BATCH_AI_DEFAULT_BATCH_SIZE",
    "BATCH_AI_WORKSPACE",
    "BATCH_AI_PROMPTS_FOLDER",
    "BATCH_AI_TASKS_FILE",
    "BATCH_AI_RESULTS_FOLDER",
    "BATCH_AI_TEMPERATURE",
    "BATCH_AI_MAX_TOKENS",
    "BATCH_AI_REQUEST_TIMEOUT",
    "BATCH_AI_HTTP_LOG_FILE",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so teardown also removes values loaded from .env files
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


class TestBatchSize:
    """Test the batch size policy."""

    def test_bounds(self) -> None:
        """Test that 1 and 50 are accepted and anything outside is not."""
        assert validate_batch_size(1) == 1
        assert validate_batch_size(50) == 50
        assert validate_batch_size("8") == 8
        for bad in (0, 51, -3, "many", None, 2.5):
            with pytest.raises(ConfigurationError):
                validate_batch_size(bad)

    def test_settings_validated(self) -> None:
        """Test that invalid settings are rejected at construction."""
        with pytest.raises(ConfigurationError):
            Settings(default_batch_size=0)
        with pytest.raises(ConfigurationError):
            Settings(max_tokens=0)


class TestFromEnv:
    """Test loading settings from the environment."""

    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test defaults with paths anchored at the workspace."""
        with TemporaryDirectory() as tmpdir:
            settings = Settings.from_env(Path(tmpdir) / "absent.env", workspace_path=Path(tmpdir))

            workspace = Path(tmpdir).absolute()
            assert settings.llm_provider == ProviderType.IN_PROCESS
            assert settings.default_batch_size == 1
            assert settings.prompts_folder == workspace / ".vscode" / "prompts"
            assert settings.tasks_file == workspace / ".vscode" / "tasks.json"
            assert settings.results_folder == workspace / ".vscode" / "batch-ai-results"
            assert settings.request_timeout is None
            assert settings.generation.temperature == 0.7
            assert settings.generation.max_tokens == 4000

    def test_environment_values(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that BATCH_AI_* variables are read."""
        with TemporaryDirectory() as tmpdir:
            clean_env.setenv("BATCH_AI_WORKSPACE", tmpdir)
            clean_env.setenv("BATCH_AI_LLM_PROVIDER", "ollama")
            clean_env.setenv("BATCH_AI_MODEL", "llama3")
            clean_env.setenv("BATCH_AI_DEFAULT_BATCH_SIZE", "5")
            clean_env.setenv("BATCH_AI_RESULTS_FOLDER", "/tmp/elsewhere")
            clean_env.setenv("BATCH_AI_REQUEST_TIMEOUT", "30")
            clean_env.setenv("OPENAI_API_KEY", "sk-fallback")

            settings = Settings.from_env(Path(tmpdir) / "absent.env")

            assert settings.llm_provider == ProviderType.OLLAMA
            assert settings.model == "llama3"
            assert settings.default_batch_size == 5
            assert settings.results_folder == Path("/tmp/elsewhere")
            assert settings.request_timeout == 30.0
            assert settings.openai_api_key == "sk-fallback"
            assert settings.workspace_path == Path(tmpdir).absolute()

    def test_dotenv_file(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that a .env file is loaded."""
        with TemporaryDirectory() as tmpdir:
            env_file = Path(tmpdir) / ".env"
            env_file.write_text("BATCH_AI_MAX_TOKENS=256\nBATCH_AI_TEMPERATURE=0.1\n")
            settings = Settings.from_env(env_file, workspace_path=Path(tmpdir))
            assert settings.max_tokens == 256
            assert settings.temperature == 0.1

    def test_overrides_win(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that explicit overrides beat the environment."""
        clean_env.setenv("BATCH_AI_MODEL", "from-env")
        with TemporaryDirectory() as tmpdir:
            settings = Settings.from_env(Path(tmpdir) / "absent.env", model="explicit", workspace_path=Path(tmpdir))
            assert settings.model == "explicit"

    def test_invalid_values(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that bad values raise ConfigurationError."""
        with TemporaryDirectory() as tmpdir:
            absent = Path(tmpdir) / "absent.env"
            clean_env.setenv("BATCH_AI_LLM_PROVIDER", "mainframe")
            with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
                Settings.from_env(absent)

            clean_env.delenv("BATCH_AI_LLM_PROVIDER")
            clean_env.setenv("BATCH_AI_DEFAULT_BATCH_SIZE", "100")
            with pytest.raises(ConfigurationError):
                Settings.from_env(absent)

            clean_env.delenv("BATCH_AI_DEFAULT_BATCH_SIZE")
            clean_env.setenv("BATCH_AI_MAX_TOKENS", "lots")
            with pytest.raises(ConfigurationError, match="BATCH_AI_MAX_TOKENS"):
                Settings.from_env(absent)
