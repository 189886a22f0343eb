"""Where tasks and prompts come from."""

from .prompts import DEFAULT_PROMPTS
from .prompts import PromptSource
from .prompts import parse_prompt
from .tasks import TaskSource
from .tasks import parse_tasks_file

__all__ = [
    "DEFAULT_PROMPTS",
    "PromptSource",
    "TaskSource",
    "parse_prompt",
    "parse_tasks_file",
]
