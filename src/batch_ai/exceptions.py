"""
Custom exceptions for batch_ai.

Run-level errors (ConcurrencyViolationError, NoModelAvailableError) abort a
run before any item is dispatched. Item-level errors (ReadError,
TemplateError, BackendError) are captured into that item's outcome.
"""


class BatchAIError(Exception):
    """Base exception for all batch_ai errors."""

    pass


class ConfigurationError(BatchAIError):
    """Raised when a setting has an invalid value."""

    pass


class ConcurrencyViolationError(BatchAIError):
    """Raised when a run is requested while another run is active."""

    def __init__(self, message: str = "Another batch operation is already in progress"):
        super().__init__(message)


class NoModelAvailableError(BatchAIError):
    """Raised when no backend model can be resolved for a run."""

    pass


class ReadError(BatchAIError):
    """
    Raised when a target's content cannot be read.

    Attributes:
        path: The path that could not be read.
    """

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(message)


class TemplateError(BatchAIError):
    """Raised when an operation definition cannot be turned into a prompt."""

    pass


class BackendError(BatchAIError):
    """
    Transport or API failure reported by a model backend.

    Attributes:
        backend: Name of the backend that failed.
        status: HTTP status code, when the failure came from an HTTP response.
    """

    def __init__(self, message: str, backend: str | None = None, status: int | None = None):
        self.backend = backend
        self.status = status
        super().__init__(message)


class NoMatchingFilesError(BatchAIError):
    """Raised when file patterns resolve to an empty target list."""

    def __init__(self, patterns: list[str]):
        self.patterns = patterns
        super().__init__("No files found matching the specified patterns")


class ItemNotFoundError(BatchAIError):
    """
    Raised when a task or prompt name does not exist in its namespace.

    Attributes:
        kind: "task" or "prompt".
        name: The name that was looked up.
    """

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} not found: {name}")
