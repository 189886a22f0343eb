"""HTTP transport submodule for networked backends."""

from .client import HTTPClient
from .client import HTTPError
from .logger import FileHTTPLogger
from .logger import HTTPLogger

__all__ = [
    "FileHTTPLogger",
    "HTTPClient",
    "HTTPError",
    "HTTPLogger",
]
