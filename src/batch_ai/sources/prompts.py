"""
Prompt files: `*.prompt.md` documents with optional frontmatter.

Format:
    ---
    description: Explain code functionality and logic
    author: Jane Doe
    tags: explanation, learning
    model: llama3, mistral
    ---

    Please explain the following code:

    {{FILE_CONTENT}}

The metadata block is optional; without it the whole file is the body.
"""

import asyncio
import logging
from pathlib import Path

from ..types import PromptMetadata
from ..types import PromptOperation

logger = logging.getLogger(__name__)

PROMPT_SUFFIX = ".prompt.md"
FRONTMATTER_DELIMITER = "---"
LIST_KEYS = {"tags", "model"}


def parse_prompt(name: str, text: str, source_path: Path | None = None) -> PromptOperation:
    """
    Parse a prompt file into a PromptOperation.

    Args:
        name: Prompt name (file name without `.prompt.md`)
        text: Raw file content
        source_path: File the prompt came from

    Returns:
        The prompt with frontmatter stripped from its body
    """
    fields: dict[str, str | list[str]] = {}
    body = text

    lines = text.splitlines()
    if lines and lines[0] == FRONTMATTER_DELIMITER:
        end = next((i for i in range(1, len(lines)) if lines[i] == FRONTMATTER_DELIMITER), None)
        if end is not None:
            fields = _parse_frontmatter(lines[1:end])
            body = "\n".join(lines[end + 1 :])

    def scalar(key: str) -> str | None:
        value = fields.get(key)
        return value if isinstance(value, str) and value else None

    def listing(key: str) -> tuple[str, ...]:
        value = fields.get(key)
        return tuple(value) if isinstance(value, list) else ()

    known = {"description", "author", "version", *LIST_KEYS}
    metadata = PromptMetadata(
        author=scalar("author"),
        version=scalar("version"),
        tags=listing("tags"),
        models=listing("model"),
        extra={k: v for k, v in fields.items() if k not in known and isinstance(v, str)},
    )
    return PromptOperation(
        name=name,
        body=body.strip(),
        description=scalar("description"),
        metadata=metadata,
        source_path=source_path,
    )


def _parse_frontmatter(lines: list[str]) -> dict[str, str | list[str]]:
    """Simple `key: value` parsing; `tags` and `model` are comma-separated lists."""
    fields: dict[str, str | list[str]] = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key in LIST_KEYS:
            fields[key] = [item.strip() for item in value.split(",") if item.strip()]
        else:
            fields[key] = value
    return fields


DEFAULT_PROMPTS: dict[str, str] = {
    "code-review": """---
description: Comprehensive code review with suggestions
author: Batch AI Operations
tags: review, quality, best-practices
---

Please perform a thorough code review of the following code:

{{FILE_CONTENT}}

Focus on:
1. Code quality and best practices
2. Potential bugs or issues
3. Performance considerations
4. Security concerns
5. Readability and maintainability

Provide specific, actionable suggestions for improvement.
""",
    "generate-tests": """---
description: Generate comprehensive unit tests
author: Batch AI Operations
tags: testing, unit-tests, quality
---

Generate comprehensive unit tests for the following code:

{{FILE_CONTENT}}

Requirements:
- Cover all functions and methods
- Include edge cases and error scenarios
- Use appropriate testing framework for the language
- Include setup and teardown if needed
- Add descriptive test names and comments

File path: {{FILE_PATH}}
""",
    "documentation": """---
description: Generate detailed documentation
author: Batch AI Operations
tags: documentation, comments, api
---

Generate comprehensive documentation for the following code:

{{FILE_CONTENT}}

Include:
- Function/method descriptions
- Parameter descriptions with types
- Return value descriptions
- Usage examples
- Any important notes or warnings

Format the documentation appropriately for the programming language.
""",
    "refactor": """---
description: Refactor code for better quality
author: Batch AI Operations
tags: refactoring, clean-code, optimization
---

Refactor the following code to improve:

{{FILE_CONTENT}}

Focus on:
1. Code readability and clarity
2. Performance optimization
3. Reducing complexity
4. Following language-specific best practices
5. Maintaining existing functionality

Explain the changes made and why they improve the code.
""",
    "explain-code": """---
description: Explain code functionality and logic
author: Batch AI Operations
tags: explanation, learning, documentation
---

Please explain the following code in detail:

{{FILE_CONTENT}}

Provide:
1. High-level overview of what the code does
2. Explanation of key algorithms or logic
3. Description of important functions/methods
4. Any design patterns used
5. Potential use cases or applications

Make the explanation clear for someone learning this codebase.
""",
}


class PromptSource:
    """
    Loads prompts from a folder of `*.prompt.md` files.

    The list is cached; call refresh() after files change. A missing folder
    is created and seeded with the default prompts.

    Example:
        prompts = PromptSource(Path(".vscode/prompts"))
        await prompts.refresh()
        review = prompts.get_prompt("code-review")
    """

    def __init__(self, folder: Path | None, create_defaults: bool = True):
        """
        Args:
            folder: Prompt folder; None means no prompts
            create_defaults: Seed a missing folder with the default prompts
        """
        self.folder = folder
        self.create_defaults = create_defaults
        self._prompts: list[PromptOperation] = []

    async def refresh(self) -> None:
        """Reload all prompts from disk. Errors are logged and leave the list empty."""
        if self.folder is None:
            self._prompts = []
            return
        try:
            self._prompts = await asyncio.to_thread(self._load)
        except Exception as e:
            logger.error(f"Error loading prompts from {self.folder}: {e}")
            self._prompts = []
        logger.debug(f"Loaded {len(self._prompts)} prompts from {self.folder}")

    def _load(self) -> list[PromptOperation]:
        assert self.folder is not None
        if not self.folder.exists():
            if not self.create_defaults:
                return []
            self._write_defaults()

        prompts = []
        for path in sorted(self.folder.glob(f"*{PROMPT_SUFFIX}")):
            name = path.name[: -len(PROMPT_SUFFIX)]
            prompts.append(parse_prompt(name, path.read_text(encoding="utf-8"), path))
        return prompts

    def _write_defaults(self) -> None:
        assert self.folder is not None
        self.folder.mkdir(parents=True, exist_ok=True)
        for name, content in DEFAULT_PROMPTS.items():
            (self.folder / f"{name}{PROMPT_SUFFIX}").write_text(content, encoding="utf-8")
        logger.info(f"Created default prompt templates in {self.folder}")

    def get_prompts(self) -> list[PromptOperation]:
        """Return the cached prompts."""
        return list(self._prompts)

    def get_prompt(self, name: str) -> PromptOperation | None:
        """Return the prompt with this name, or None."""
        return next((p for p in self._prompts if p.name == name), None)

    async def create_prompt(self, name: str, content: str) -> PromptOperation | None:
        """
        Write a new prompt file and reload.

        Raises:
            ValueError: If no prompt folder is configured
        """
        if self.folder is None:
            raise ValueError("No prompts folder configured")
        path = self.folder / f"{name}{PROMPT_SUFFIX}"

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(write)
        await self.refresh()
        return self.get_prompt(name)
