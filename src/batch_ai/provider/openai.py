"""
OpenAI-compatible backend.

Works with OpenAI and with local servers exposing the same API
(LM Studio, vLLM, llama.cpp server, Ollama's /v1 endpoint, etc.).
"""

import logging
from typing import Any

from ..exceptions import BackendError
from ..http import HTTPClient
from ..types import LLMRequest
from ..types import LLMResponse
from ..types import Usage
from .base import TRANSPORT_ERRORS
from .base import HTTPBackend

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatibleBackend(HTTPBackend):
    """
    Backend for OpenAI-style chat completion APIs (non-streaming).

    The API key is optional because most local servers do not check it.
    """

    name = "openai_compatible"
    label = "OpenAI"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        http: HTTPClient | None = None,
        timeout: float | None = None,
    ):
        super().__init__(base_url, http=http, timeout=timeout)
        self.api_key = api_key

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def list_models(self) -> list[str]:
        response = await self._http.get_json(f"{self.base_url}/models", self._headers())
        return [m["id"] for m in response.get("data", []) if "id" in m]

    async def generate(self, request: LLMRequest) -> LLMResponse:
        if not request.model:
            raise BackendError("A model is required for OpenAI-compatible requests", backend=self.name)

        body: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "stream": False,
        }
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.max_tokens is not None:
            body["max_completion_tokens"] = request.max_tokens

        try:
            response = await self._http.post_json(f"{self.base_url}/chat/completions", body, self._headers())
        except TRANSPORT_ERRORS as e:
            raise self._error(e) from e

        choices = response.get("choices", [])
        if not choices:
            raise BackendError("OpenAI error: No choices in response", backend=self.name)

        message = choices[0].get("message", {})
        usage = response.get("usage")
        return LLMResponse(
            content=message.get("content") or "",
            model=response.get("model") or request.model,
            usage=Usage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )
            if usage
            else None,
            raw_response=response,
        )
