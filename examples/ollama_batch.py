"""
Example reviewing files with a local Ollama model, configured from the
environment (.env supported).

    BATCH_AI_LLM_PROVIDER=ollama
    BATCH_AI_MODEL=llama3
    BATCH_AI_HTTP_LOG_FILE=logs/http_traffic.log

Usage:
    python examples/ollama_batch.py src/batch_ai/engine.py src/batch_ai/sink.py
"""

import asyncio
import sys
from logging import basicConfig
from logging import getLogger

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown

from batch_ai import BatchAIError
from batch_ai import BatchApp
from batch_ai import ProviderType
from batch_ai import Settings
from batch_ai import Target

load_dotenv()

logger = getLogger(__name__)
console = Console()


async def main(paths: list[str]) -> int:
    settings = Settings.from_env(llm_provider=ProviderType.OLLAMA)

    async with await BatchApp.create(settings) as app:
        if not await app.gateway.test_connection():
            console.print(f"[red]Ollama is not reachable at {settings.ollama_endpoint}[/red]")
            return 1

        prompt = app.prompts.get_prompt("code-review")
        if prompt is None:
            console.print(f"[red]No code-review prompt in {settings.prompts_folder}[/red]")
            return 1

        targets = [Target.from_path(p) for p in paths]
        try:
            summary = await app.engine.process(targets, prompt, batch_size=2)
        except BatchAIError as e:
            console.print(f"[red]{e}[/red]")
            return 1

        console.print(Markdown(app.sink.summarize(summary).content))
        console.print(f"[dim]Results saved to {settings.results_folder}[/dim]")
    return 0


if __name__ == "__main__":
    basicConfig(
        level="INFO",
        format="[%(name)s] %(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    sys.exit(asyncio.run(main(sys.argv[1:] or ["src/batch_ai/engine.py"])))
