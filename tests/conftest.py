"""
Shared pytest configuration and fixtures.

Adapters are replaced with in-process doubles: a deterministic bag-of-words
embedding model, a prompt-driven fake LLM, an in-memory Chroma client and a
mocked database.
"""

import hashlib
import math
import re
import uuid
from typing import Callable, List
from unittest.mock import AsyncMock, MagicMock

import chromadb
import pytest
from chromadb.config import Settings as ChromaSettings
from langchain_core.runnables import RunnableLambda

from text2sql_rag.core import DatabaseManager, EmbeddingManager, LLMManager, VectorDBManager


EMBEDDING_DIM = 32


# =============================================================================
# Embedding Fixtures
# =============================================================================

class HashingEmbeddingModel:
    """Stands in for SentenceTransformer: same text, same normalized vector."""

    def encode(self, text, convert_to_numpy=True, normalize_embeddings=True):
        vector = [0.0] * EMBEDDING_DIM
        for token in re.findall(r"\w+", text.lower()):
            index = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % EMBEDDING_DIM
            vector[index] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]


@pytest.fixture
def embedding_manager():
    return EmbeddingManager(model=HashingEmbeddingModel())


# =============================================================================
# LLM Fixtures
# =============================================================================

@pytest.fixture
def make_llm():
    """
    Build an LLMManager whose model answers through `responder(prompt)`.

    Every prompt is recorded on the returned manager as `prompts`.
    """

    def factory(responder: Callable[[str], str]) -> LLMManager:
        prompts: List[str] = []

        def respond(prompt) -> str:
            text = prompt if isinstance(prompt, str) else str(prompt)
            prompts.append(text)
            return responder(text)

        manager = LLMManager(llm=RunnableLambda(respond))
        manager.prompts = prompts
        return manager

    return factory


# =============================================================================
# Vector Store Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def vector_client():
    return chromadb.EphemeralClient(
        settings=ChromaSettings(anonymized_telemetry=False, allow_reset=True)
    )


@pytest.fixture
def make_index(vector_client):
    """Create an empty index backed by a uniquely named collection."""

    def factory(prefix: str = "index") -> VectorDBManager:
        return VectorDBManager(f"{prefix}_{uuid.uuid4().hex[:12]}", vector_client)

    return factory


@pytest.fixture
def table_index(make_index):
    return make_index("tables")


@pytest.fixture
def query_index(make_index):
    return make_index("intents")


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def mock_database():
    """Mock database adapter: no rows, every dry run succeeds."""
    database = MagicMock(spec=DatabaseManager)
    database.fetch_all = AsyncMock(return_value=[])
    database.explain = AsyncMock(return_value=None)
    database.dispose = AsyncMock(return_value=None)
    return database
