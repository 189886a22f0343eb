"""
LLM gateway: model discovery, model selection and single-request calls on
top of one configured backend.
"""

import inspect
import logging
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence

from ..exceptions import BackendError
from ..exceptions import NoModelAvailableError
from ..types import LLMRequest
from ..types import LLMResponse
from .base import ModelBackend

logger = logging.getLogger(__name__)

# Picks one model out of several; None means the user dismissed the choice
ModelChooser = Callable[[list[str]], Awaitable[str | None] | str | None]


class LLMGateway:
    """
    Single entry point to the active backend.

    The gateway never retries a request.

    Example:
        gateway = LLMGateway(OllamaBackend(), chooser=ask_user)
        model = await gateway.select_model()
        response = await gateway.send_request(LLMRequest(prompt="Hi", model=model))
    """

    def __init__(
        self,
        backend: ModelBackend,
        chooser: ModelChooser | None = None,
        default_model: str | None = None,
    ):
        """
        Args:
            backend: The backend to talk to
            chooser: Called when several models are available
            default_model: Model to use without asking, if it is available
        """
        self.backend = backend
        self.chooser = chooser
        self.default_model = default_model
        self._models: list[str] = []

    async def list_models(self) -> list[str]:
        """
        Return available models. Never raises.

        A non-empty result is cached until refresh_models() is called.
        """
        if self._models:
            return list(self._models)

        try:
            self._models = await self.backend.list_models()
        except Exception as e:
            logger.error(f"Error getting {self.backend.name} models: {e}")
            self._models = []
        return list(self._models)

    async def refresh_models(self) -> list[str]:
        """Drop the cached model list and query the backend again."""
        self._models = []
        return await self.list_models()

    async def select_model(self, preferred: Sequence[str] = ()) -> str | None:
        """
        Pick the model for a run.

        Order: the first available `preferred` model, then `default_model`,
        then the only model if there is exactly one, then the chooser. With
        several models and no chooser, the first listed model is used.

        Args:
            preferred: Models the operation would like to run on

        Returns:
            The model ID, or None if the chooser was dismissed

        Raises:
            NoModelAvailableError: If the backend has no models
        """
        models = await self.list_models()
        if not models:
            raise NoModelAvailableError(f"No models available for {self.backend.name}")

        for candidate in (*preferred, self.default_model):
            if candidate and candidate in models:
                return candidate

        if len(models) == 1 or self.chooser is None:
            return models[0]

        choice = self.chooser(models)
        if inspect.isawaitable(choice):
            choice = await choice
        return choice or None

    async def send_request(self, request: LLMRequest) -> LLMResponse:
        """
        Execute a single request.

        Raises:
            BackendError: On any transport or API failure
        """
        try:
            return await self.backend.generate(request)
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"{self.backend.name} error: {e}", backend=self.backend.name) from e

    async def test_connection(self) -> bool:
        """Best-effort health probe; any error counts as unhealthy."""
        try:
            return await self.backend.health_check()
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False

    def set_run_id(self, run_id: str | None) -> None:
        self.backend.set_run_id(run_id)

    async def close(self) -> None:
        """Close the backend and release resources."""
        await self.backend.close()

    async def __aenter__(self) -> "LLMGateway":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
