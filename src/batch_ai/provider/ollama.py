"""
Ollama backend: a local inference runtime reached over its HTTP API.
"""

import logging
from typing import Any

from ..http import HTTPClient
from ..types import LLMRequest
from ..types import LLMResponse
from ..types import Usage
from .base import TRANSPORT_ERRORS
from .base import HTTPBackend

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:11434"
DEFAULT_MODEL = "llama2"
HEALTH_CHECK_TIMEOUT = 5.0


class OllamaBackend(HTTPBackend):
    """
    Backend for an Ollama server.

    Example:
        async with OllamaBackend("http://localhost:11434") as backend:
            models = await backend.list_models()
    """

    name = "ollama"
    label = "Ollama"

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        http: HTTPClient | None = None,
        timeout: float | None = None,
    ):
        super().__init__(endpoint, http=http, timeout=timeout)

    async def list_models(self) -> list[str]:
        response = await self._http.get_json(f"{self.base_url}/api/tags")
        return [m["name"] for m in response.get("models") or [] if "name" in m]

    async def generate(self, request: LLMRequest) -> LLMResponse:
        model = request.model or DEFAULT_MODEL
        body: dict[str, Any] = {
            "model": model,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature if request.temperature is not None else 0.7,
                "num_predict": request.max_tokens or -1,
            },
        }

        try:
            response = await self._http.post_json(
                f"{self.base_url}/api/generate",
                body,
                {"Content-Type": "application/json"},
            )
        except TRANSPORT_ERRORS as e:
            raise self._error(e) from e

        return LLMResponse(
            content=response.get("response", ""),
            model=response.get("model") or model,
            usage=_parse_usage(response),
            raw_response=response,
        )

    async def health_check(self) -> bool:
        status = await self._http.get_status(f"{self.base_url}/api/tags", timeout=HEALTH_CHECK_TIMEOUT)
        return status == 200


def _parse_usage(response: dict[str, Any]) -> Usage | None:
    """Build usage from Ollama's eval counters; None if the server sent neither."""
    prompt_tokens = response.get("prompt_eval_count")
    completion_tokens = response.get("eval_count")
    if prompt_tokens is None and completion_tokens is None:
        return None
    return Usage(
        prompt_tokens=prompt_tokens or 0,
        completion_tokens=completion_tokens or 0,
        total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
    )
