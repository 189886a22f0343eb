"""
Tasks read from a VS Code style `tasks.json`.

Example file:
    {
        "version": "2.0.0",
        "tasks": [
            {
                "label": "lint",
                "command": "ruff check",
                "detail": "Lint the file",
                "aiPrompt": "Suggest fixes for lint issues in {{FILE_NAME}}:\\n{{FILE_CONTENT}}"
            }
        ]
    }
"""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

from ..types import TaskOperation

logger = logging.getLogger(__name__)

# Whole-line // comments, which tasks.json files commonly carry
_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)


def parse_task(data: dict[str, Any]) -> TaskOperation | None:
    """
    Convert one tasks.json entry. Entries without a command or label are skipped.
    """
    command = data.get("command") or ""
    label = data.get("label")
    if not isinstance(command, str) or not (command or label):
        return None

    args = data.get("args") or []
    return TaskOperation(
        name=label or command,
        command=command,
        prompt_template=data.get("aiPrompt"),
        description=data.get("detail") or data.get("description"),
        arguments=tuple(str(a) for a in args) if isinstance(args, list) else (),
    )


def parse_tasks_file(text: str) -> list[TaskOperation]:
    """Parse the content of a tasks.json file."""
    data = json.loads(_LINE_COMMENT.sub("", text))
    entries = data.get("tasks", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        raise ValueError(f"Expected a list of tasks, got {type(entries).__name__}")
    tasks = []
    for entry in entries:
        if isinstance(entry, dict) and (task := parse_task(entry)):
            tasks.append(task)
    return tasks


class TaskSource:
    """
    Cached task list loaded from a tasks file.

    get_tasks() returns the last loaded list; call refresh() to reload.
    """

    def __init__(self, tasks_file: Path | None):
        self.tasks_file = tasks_file
        self._tasks: list[TaskOperation] = []

    async def refresh(self) -> None:
        """Reload tasks. A missing or unreadable file leaves an empty list."""
        if self.tasks_file is None or not self.tasks_file.exists():
            self._tasks = []
            return
        try:
            text = await asyncio.to_thread(self.tasks_file.read_text, encoding="utf-8")
            self._tasks = parse_tasks_file(text)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading tasks from {self.tasks_file}: {e}")
            self._tasks = []
        logger.debug(f"Loaded {len(self._tasks)} tasks from {self.tasks_file}")

    def get_tasks(self) -> list[TaskOperation]:
        return list(self._tasks)

    def get_task(self, name: str) -> TaskOperation | None:
        """Return the task with this name (label, or command if unlabeled), or None."""
        return next((t for t in self._tasks if t.name == name), None)
