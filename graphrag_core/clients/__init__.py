"""External service clients."""

from .claude import ClaudeClient
from .voyage import VoyageClient

__all__ = [
    "ClaudeClient",
    "VoyageClient",
]
