"""Generation backends, one module per provider."""

from .base import DiagramProvider
from .ollama import OllamaProvider
from .lmstudio import LMStudioProvider
from .azure import AzureProvider
from .bedrock import BedrockProvider
from .vertex import VertexProvider

__all__ = [
    "DiagramProvider",
    "OllamaProvider",
    "LMStudioProvider",
    "AzureProvider",
    "BedrockProvider",
    "VertexProvider",
]
