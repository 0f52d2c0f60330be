"""
Core module initialization.
"""

from ..config import settings
from .llm import LLMManager
from .embedding import EmbeddingManager
from .vector_db import VectorDBManager, create_client
from .database import DatabaseManager

__all__ = [
    "settings",
    "LLMManager",
    "EmbeddingManager",
    "VectorDBManager",
    "DatabaseManager",
    "create_client",
]
