"""
Backend construction from settings.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..exceptions import ConfigurationError
from ..http import FileHTTPLogger
from ..http import HTTPClient
from .base import ModelBackend
from .base import ProviderType
from .in_process import InProcessBackend
from .in_process import ModelHandler
from .ollama import OllamaBackend
from .openai import OpenAICompatibleBackend

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


def create_backend(
    settings: "Settings",
    models: dict[str, ModelHandler] | None = None,
) -> ModelBackend:
    """
    Build the backend selected by `settings.llm_provider`.

    Args:
        settings: Loaded settings
        models: Handlers for the in-process backend (ignored otherwise)

    Raises:
        ConfigurationError: If the provider type is not supported
    """
    provider = settings.llm_provider

    if provider == ProviderType.IN_PROCESS:
        return InProcessBackend(models)

    http = _http_client(settings.request_timeout, settings.http_log_file)
    if provider == ProviderType.OLLAMA:
        return OllamaBackend(settings.ollama_endpoint, http=http)
    elif provider == ProviderType.OPENAI_COMPATIBLE:
        return OpenAICompatibleBackend(settings.openai_base_url, settings.openai_api_key, http=http)

    raise ConfigurationError(f"Unsupported provider: {provider}")


def _http_client(timeout: float | None, log_file: Path | None) -> HTTPClient:
    http_logger = FileHTTPLogger(log_file) if log_file else None
    if http_logger:
        logger.info(f"Logging backend HTTP traffic to {log_file}")
    return HTTPClient(timeout=timeout, logger=http_logger)
