"""Model backends and the gateway in front of them."""

from .base import HTTPBackend
from .base import ModelBackend
from .base import ProviderType
from .factory import create_backend
from .gateway import LLMGateway
from .gateway import ModelChooser
from .in_process import InProcessBackend
from .in_process import ModelHandler
from .ollama import OllamaBackend
from .openai import OpenAICompatibleBackend

__all__ = [
    "HTTPBackend",
    "InProcessBackend",
    "LLMGateway",
    "ModelBackend",
    "ModelChooser",
    "ModelHandler",
    "OllamaBackend",
    "OpenAICompatibleBackend",
    "ProviderType",
    "create_backend",
]
