import asyncio
import logging
from typing import Optional

from ..config import settings
from ..core import EmbeddingManager, VectorDBManager
from ..models import RetrievalResult


class RAGRetriever:
    """Retrieves candidate tables and similar historical queries for a question."""
    
    def __init__(
        self,
        embedding_manager: EmbeddingManager,
        table_index: VectorDBManager,
        query_index: VectorDBManager,
        table_top_k: Optional[int] = None,
        query_top_k: Optional[int] = None
    ):
        """
        Initialize RAG retriever.
        
        Args:
            embedding_manager: Embeds the question
            table_index: Index with one record per table
            query_index: Index with one record per query intent
            table_top_k: Number of tables to retrieve
            query_top_k: Number of query intents to retrieve
        """
        self.logger = logging.getLogger(__name__)
        self.embedding_manager = embedding_manager
        self.table_index = table_index
        self.query_index = query_index
        self.table_top_k = table_top_k or settings.table_top_k
        self.query_top_k = query_top_k or settings.query_top_k
    
    async def retrieve(self, question: str) -> RetrievalResult:
        """
        Embed the question and query both indexes.
        
        Embedding and vector store errors propagate unchanged.
        
        Args:
            question: User's natural language question
        
        Returns:
            Retrieved tables and query intents
        """
        embedding = await self.embedding_manager.embed_query(question)
        
        tables, intents = await asyncio.gather(
            self.table_index.query(embedding, self.table_top_k),
            self.query_index.query(embedding, self.query_top_k),
        )
        
        result = RetrievalResult(embedding=embedding, tables=tables, intents=intents)
        self.logger.info(
            f"Retrieved {len(tables)} tables {result.table_names} "
            f"and {len(intents)} query intents"
        )
        return result
