"""
In-process backend: models are Python callables registered by the host.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable
from collections.abc import Callable

from ..exceptions import BackendError
from ..types import LLMRequest
from ..types import LLMResponse
from .base import ModelBackend

logger = logging.getLogger(__name__)

# A handler gets the request and returns text or a full response
ModelHandler = Callable[[LLMRequest], Awaitable[str | LLMResponse] | str | LLMResponse]


class InProcessBackend(ModelBackend):
    """
    Backend whose models are registered handlers.

    Async handlers are awaited directly; sync handlers run in a thread pool
    via asyncio.to_thread() so they never block the event loop.

    Example:
        backend = InProcessBackend()

        @backend.register_model("echo")
        async def echo(request: LLMRequest) -> str:
            return request.prompt
    """

    name = "in_process"

    def __init__(self, models: dict[str, ModelHandler] | None = None):
        self._models: dict[str, ModelHandler] = dict(models or {})

    def register_model(self, name: str) -> Callable[[ModelHandler], ModelHandler]:
        """Decorator to register a model handler under a name."""

        def decorator(func: ModelHandler) -> ModelHandler:
            self.add_model(name, func)
            return func

        return decorator

    def add_model(self, name: str, handler: ModelHandler) -> None:
        """Register a model handler directly."""
        self._models[name] = handler
        logger.debug(f"Registered in-process model: {name}")

    def remove_model(self, name: str) -> None:
        self._models.pop(name, None)

    async def list_models(self) -> list[str]:
        return list(self._models)

    async def generate(self, request: LLMRequest) -> LLMResponse:
        if not self._models:
            raise BackendError("No language models available", backend=self.name)

        model = request.model or next(iter(self._models))
        handler = self._models.get(model)
        if handler is None:
            raise BackendError(f"Unknown model: {model}", backend=self.name)

        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(request)
            else:
                result = await asyncio.to_thread(functools.partial(handler, request))
                if inspect.isawaitable(result):
                    result = await result
        except BackendError:
            raise
        except Exception as e:
            raise BackendError(f"In-process model error: {e}", backend=self.name) from e

        if isinstance(result, LLMResponse):
            if result.model is None:
                result.model = model
            return result
        return LLMResponse(content=str(result), model=model)
