"""
JSON-over-HTTP transport shared by the networked backends (aiohttp).

One aiohttp session is opened lazily and reused for every call a backend
makes. When a traffic logger is attached, each exchange is recorded under
the current run ID.
"""

import json
from typing import TYPE_CHECKING
from typing import Any

import aiohttp

if TYPE_CHECKING:
    from .logger import HTTPLogger


class HTTPError(Exception):
    """
    A 4xx/5xx answer.

    Attributes:
        status: HTTP status code
        body: Raw response text, if any
        uri: Requested URL
    """

    def __init__(self, status: int, message: str, body: str | None = None, uri: str | None = None):
        self.status = status
        self.body = body
        self.uri = uri
        suffix = f" (uri={uri})" if uri else ""
        super().__init__(f"HTTP {status}: {message}{suffix}")

    def error_message(self) -> str | None:
        """
        Pull the server's own explanation out of a JSON error body.

        Handles `{"error": "..."}` (Ollama) and `{"error": {"message": "..."}}`
        (OpenAI). Returns None for anything else.
        """
        try:
            data = json.loads(self.body or "")
        except json.JSONDecodeError:
            return None
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict):
            error = error.get("message")
        return error if isinstance(error, str) and error else None


class HTTPClient:
    """
    Lazily-opened aiohttp session plus JSON helpers.

    Example:
        async with HTTPClient(timeout=60) as http:
            tags = await http.get_json("http://localhost:11434/api/tags")
    """

    def __init__(self, timeout: float | None = None, logger: "HTTPLogger | None" = None):
        """
        Args:
            timeout: Total seconds allowed per request; None never times out
            logger: Optional traffic logger
        """
        self.timeout = timeout
        self.logger = logger
        self.run_id: str | None = None
        self._session: aiohttp.ClientSession | None = None

    def set_run_id(self, run_id: str | None) -> None:
        """Tag logged traffic with this run until changed."""
        self.run_id = run_id

    def _open(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        return self._session

    async def request_json(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Send one request and decode the JSON answer.

        Args:
            method: "GET" or "POST"
            url: Absolute URL
            body: JSON payload, sent only when given
            headers: Extra request headers
            timeout: Overrides the client timeout for this call

        Raises:
            HTTPError: On a 4xx/5xx status
            aiohttp.ClientError: If the server cannot be reached
            ValueError: If the answer is not a JSON object
        """
        headers = dict(headers or {})
        if self.logger:
            self.logger.log_request(method, url, headers, body, self.run_id)

        options: dict[str, Any] = {"headers": headers}
        if body is not None:
            options["json"] = body
        if timeout is not None:
            options["timeout"] = aiohttp.ClientTimeout(total=timeout)

        async with self._open().request(method, url, **options) as resp:
            text = await resp.text()
            if self.logger:
                self.logger.log_response(url, resp.status, text, self.run_id)
            if resp.status >= 400:
                raise HTTPError(resp.status, resp.reason or "Request failed", text, url)

        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from {url}")
        return data

    async def get_json(self, url: str, headers: dict[str, str] | None = None) -> dict[str, Any]:
        return await self.request_json("GET", url, headers=headers)

    async def post_json(
        self,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return await self.request_json("POST", url, body=body, headers=headers)

    async def get_status(self, url: str, timeout: float | None = None) -> int:
        """Status code of a GET, without reading or logging the body."""
        options = {"timeout": aiohttp.ClientTimeout(total=timeout)} if timeout is not None else {}
        async with self._open().get(url, **options) as resp:
            return resp.status

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
