"""
storyweave HTTP API.

FastAPI app exposing the narrative engine to the game client.
"""

from .server import create_app, NarrativeAPI
from .schemas import (
    MemoryRequest,
    MemoryResponse,
    NarrativeRequest,
    NarrativeSummary,
    SaveResponse,
)

__all__ = [
    "create_app",
    "NarrativeAPI",
    "MemoryRequest",
    "MemoryResponse",
    "NarrativeRequest",
    "NarrativeSummary",
    "SaveResponse",
]
