import asyncio
import logging
from typing import List, Optional
from sentence_transformers import SentenceTransformer

from ..config import settings


class EmbeddingManager:
    """Manages text embeddings for the RAG system."""
    
    def __init__(self, model: Optional[SentenceTransformer] = None):
        """
        Initialize the embedding manager.
        
        Args:
            model: Preloaded sentence transformer (loaded from settings if None)
        """
        self.logger = logging.getLogger(__name__)
        self.model = model if model is not None else self._initialize_model()
    
    def _initialize_model(self) -> SentenceTransformer:
        """Initialize the sentence transformer model."""
        try:
            model = SentenceTransformer(
                settings.embedding_model_name,
                device=settings.embedding_device
            )
            self.logger.info(f"Embedding model loaded: {settings.embedding_model_name}")
            return model
        except Exception as e:
            self.logger.error(f"Failed to load embedding model: {e}")
            raise
    
    def _encode(self, text: str) -> List[float]:
        embedding = self.model.encode(
            text,
            convert_to_numpy=True,
            normalize_embeddings=True
        )
        return [float(v) for v in embedding]
    
    async def embed_query(self, text: str) -> List[float]:
        """
        Generate the embedding for a single text.
        
        Encoding runs in a worker thread so the event loop keeps serving
        other pipeline invocations.
        
        Args:
            text: Text to embed
        
        Returns:
            Normalized embedding vector
        """
        try:
            return await asyncio.to_thread(self._encode, text)
        except Exception as e:
            self.logger.error(f"Error generating embedding: {e}")
            raise
