"""
Wiring: builds every component from Settings.
"""

import logging

from .config import Settings
from .engine import BatchEngine
from .provider import LLMGateway
from .provider import ModelChooser
from .provider import ModelHandler
from .provider import create_backend
from .server import AutomationServer
from .sink import ResultSink
from .sources import PromptSource
from .sources import TaskSource

logger = logging.getLogger(__name__)


class BatchApp:
    """
    All components for one workspace.

    Example:
        async with await BatchApp.create(Settings.from_env()) as app:
            prompt = app.prompts.get_prompt("code-review")
            summary = await app.engine.process(targets, prompt, batch_size=2)
    """

    def __init__(
        self,
        settings: Settings,
        chooser: ModelChooser | None = None,
        models: dict[str, ModelHandler] | None = None,
    ):
        """
        Args:
            settings: Loaded settings
            chooser: Asked to pick a model when several are available
            models: Handlers for the in-process backend
        """
        self.settings = settings
        self.gateway = LLMGateway(
            create_backend(settings, models),
            chooser=chooser,
            default_model=settings.model,
        )
        self.sink = ResultSink(settings.results_folder)
        self.engine = BatchEngine(
            self.gateway,
            self.sink,
            workspace_path=str(settings.workspace_path),
            generation=settings.generation,
        )
        self.tasks = TaskSource(settings.tasks_file)
        self.prompts = PromptSource(settings.prompts_folder)
        self.server = AutomationServer(self.engine, self.tasks, self.prompts, settings.workspace_path)

    @classmethod
    async def create(
        cls,
        settings: Settings,
        chooser: ModelChooser | None = None,
        models: dict[str, ModelHandler] | None = None,
    ) -> "BatchApp":
        """Build the app and load tasks and prompts."""
        app = cls(settings, chooser=chooser, models=models)
        await app.refresh()
        return app

    async def refresh(self) -> None:
        """Reload tasks and prompts from disk."""
        await self.tasks.refresh()
        await self.prompts.refresh()
        logger.debug(f"{len(self.tasks.get_tasks())} tasks, {len(self.prompts.get_prompts())} prompts available")

    async def close(self) -> None:
        await self.gateway.close()

    async def __aenter__(self) -> "BatchApp":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
