"""
Prompt template resolution.

Turns an operation plus a target into the prompt text sent to a backend.
"""

import re

from .exceptions import TemplateError
from .types import Operation
from .types import PromptOperation
from .types import Target
from .types import TaskOperation

# {{FILE_CONTENT}}, {{FILE_PATH}}, {{FILE_NAME}}, {{WORKSPACE_PATH}}
_PLACEHOLDER = re.compile(r"\{\{(FILE_CONTENT|FILE_PATH|FILE_NAME|WORKSPACE_PATH)\}\}")


def template_for(operation: Operation, content: str) -> str:
    """
    Pick the raw template for an operation.

    Args:
        operation: Task or prompt to apply
        content: Target content (used by the default task template)

    Returns:
        The template, before placeholder substitution

    Raises:
        TemplateError: If the operation cannot produce a template
    """
    if isinstance(operation, TaskOperation):
        if operation.prompt_template:
            return operation.prompt_template
        if not operation.command:
            raise TemplateError(f"Task '{operation.name}' has neither a command nor a prompt template")
        return f"Execute task: {operation.command}\n\nFile content:\n{content}"

    elif isinstance(operation, PromptOperation):
        if not operation.body.strip():
            raise TemplateError(f"Prompt '{operation.name}' has an empty body")
        return operation.body

    else:
        raise TemplateError(f"Unknown operation type: {type(operation).__name__}")


def resolve(
    operation: Operation,
    target: Target,
    content: str,
    workspace_path: str = "",
) -> str:
    """
    Build the prompt for one target.

    Placeholders are replaced literally, case-sensitively and globally in a
    single pass, so substituted text is never scanned again. Unknown
    placeholders are left as they are.

    Args:
        operation: Task or prompt to apply
        target: The target being processed
        content: Text read from the target
        workspace_path: Root workspace path, or "" if there is none

    Returns:
        Fully substituted prompt text
    """
    template = template_for(operation, content)
    values = {
        "FILE_CONTENT": content,
        "FILE_PATH": str(target.path),
        "FILE_NAME": target.name,
        "WORKSPACE_PATH": workspace_path,
    }
    return _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)
