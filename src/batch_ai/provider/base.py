"""
Backend contract shared by every model source.

A backend lists the models it can serve and executes one buffered request.
Exactly one backend is active per gateway; which one is decided from
configuration when the gateway is built.
"""

import asyncio
import logging
from abc import ABC
from abc import abstractmethod
from enum import Enum

import aiohttp

from ..exceptions import BackendError
from ..http import HTTPClient
from ..http import HTTPError
from ..types import LLMRequest
from ..types import LLMResponse

logger = logging.getLogger(__name__)

# Errors an HTTP round trip can end with besides a 4xx/5xx answer
TRANSPORT_ERRORS = (HTTPError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class ProviderType(Enum):
    """Supported backend types."""

    IN_PROCESS = "in_process"  # Models registered as Python callables
    OLLAMA = "ollama"  # Local Ollama runtime over its HTTP API
    OPENAI_COMPATIBLE = "openai_compatible"  # OpenAI, LM Studio, vLLM, llama.cpp server, etc.


class ModelBackend(ABC):
    """
    Abstract model backend.

    Subclasses must not retry failed requests.
    """

    name: str = "backend"

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Return the identifiers of available models. May raise."""

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Execute one request.

        Raises:
            BackendError: On transport or API failure
        """

    async def health_check(self) -> bool:
        """Return True if the backend can serve at least one model."""
        return len(await self.list_models()) > 0

    def set_run_id(self, run_id: str | None) -> None:
        """Tag subsequent traffic with a run ID. No-op unless the backend logs traffic."""

    async def close(self) -> None:
        """Release resources held by the backend."""

    async def __aenter__(self) -> "ModelBackend":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


class HTTPBackend(ModelBackend):
    """Base for backends reached over HTTP."""

    label: str = "HTTP"

    def __init__(self, base_url: str, http: HTTPClient | None = None, timeout: float | None = None):
        """
        Args:
            base_url: Root URL of the backend API
            http: Optional shared HTTP client (one is created otherwise)
            timeout: Request timeout in seconds for a created client, None for no timeout
        """
        self.base_url = base_url.rstrip("/")
        self._http = http or HTTPClient(timeout=timeout)

    def _error(self, error: Exception) -> BackendError:
        """Translate a transport failure, keeping the backend's own message when it sent one."""
        if isinstance(error, HTTPError):
            message = error.error_message() or str(error)
            return BackendError(f"{self.label} error: {message}", backend=self.name, status=error.status)
        return BackendError(f"{self.label} error: {error}", backend=self.name)

    def set_run_id(self, run_id: str | None) -> None:
        self._http.set_run_id(run_id)

    async def close(self) -> None:
        await self._http.close()
