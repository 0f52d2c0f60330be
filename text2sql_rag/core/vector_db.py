import asyncio
import logging
from typing import List, Dict, Any, Optional
import chromadb
from chromadb.api import ClientAPI
from chromadb.config import Settings as ChromaSettings

from ..config import settings
from ..models import RetrievalMatch


def create_client(path: Optional[str] = None) -> ClientAPI:
    """Create the persistent ChromaDB client shared by all indexes."""
    path = path or settings.vector_db_path
    client = chromadb.PersistentClient(
        path=path,
        settings=ChromaSettings(
            anonymized_telemetry=False,
            allow_reset=True
        )
    )
    logging.getLogger(__name__).info(f"ChromaDB client initialized at: {path}")
    return client


class VectorDBManager:
    """
    One logical vector index (a Chroma collection) with upsert-by-id and
    nearest-neighbour lookup.
    """
    
    def __init__(
        self,
        collection_name: str,
        client: Optional[ClientAPI] = None,
        description: str = ""
    ):
        """
        Initialize the vector index.
        
        Args:
            collection_name: Name of the collection backing this index
            client: ChromaDB client (a persistent client from settings if None)
            description: Human readable collection description
        """
        self.logger = logging.getLogger(__name__)
        self.collection_name = collection_name
        self.description = description
        self.client = client if client is not None else create_client()
        self.collection = self._get_or_create_collection()
    
    def _get_or_create_collection(self):
        """Get or create the collection, using cosine distance."""
        try:
            collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={
                    "hnsw:space": "cosine",
                    "description": self.description or self.collection_name,
                    "created_by": "text2sql_rag"
                }
            )
            self.logger.info(f"Collection ready: {self.collection_name}")
            return collection
        except Exception as e:
            self.logger.error(f"Failed to get/create collection {self.collection_name}: {e}")
            raise
    
    async def upsert(
        self,
        doc_id: str,
        vector: List[float],
        metadata: Dict[str, Any],
        document: Optional[str] = None
    ) -> None:
        """
        Insert or overwrite a single record.
        
        Args:
            doc_id: Stable record id
            vector: Embedding vector
            metadata: Metadata stored next to the vector
            document: Optional raw text stored with the record
        """
        kwargs = {
            "ids": [doc_id],
            "embeddings": [vector],
            "metadatas": [metadata],
        }
        if document is not None:
            kwargs["documents"] = [document]
        
        try:
            await asyncio.to_thread(self.collection.upsert, **kwargs)
            self.logger.debug(f"Upserted {doc_id} into {self.collection_name}")
        except Exception as e:
            self.logger.error(f"Error upserting {doc_id} into {self.collection_name}: {e}")
            raise
    
    async def query(self, vector: List[float], top_k: int) -> List[RetrievalMatch]:
        """
        Find the records nearest to a vector.
        
        Args:
            vector: Query embedding
            top_k: Maximum number of matches
        
        Returns:
            Matches ordered by descending similarity
        """
        try:
            count = await asyncio.to_thread(self.collection.count)
            n_results = min(top_k, count)
            if n_results == 0:
                return []
            
            results = await asyncio.to_thread(
                self.collection.query,
                query_embeddings=[vector],
                n_results=n_results,
                include=["metadatas", "distances"]
            )
            
            matches = [
                RetrievalMatch(metadata=dict(metadata or {}), score=1.0 - float(distance))
                for metadata, distance in zip(results["metadatas"][0], results["distances"][0])
            ]
            matches.sort(key=lambda m: m.score, reverse=True)
            
            self.logger.info(f"Found {len(matches)} matches in {self.collection_name}")
            return matches
        except Exception as e:
            self.logger.error(f"Error querying {self.collection_name}: {e}")
            raise
    
    def get_record(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a specific record by ID.
        
        Args:
            doc_id: Record ID
        
        Returns:
            Record data or None if not found
        """
        try:
            results = self.collection.get(ids=[doc_id], include=["metadatas"])
            if results["ids"]:
                return {"id": results["ids"][0], "metadata": results["metadatas"][0]}
            return None
        except Exception as e:
            self.logger.error(f"Error retrieving record {doc_id}: {e}")
            return None
    
    def list_records(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """
        List records in the collection.
        
        Args:
            limit: Maximum number of records to return
        
        Returns:
            List of {id, metadata} dictionaries
        """
        try:
            results = self.collection.get(limit=limit, include=["metadatas"])
            return [
                {"id": doc_id, "metadata": metadata}
                for doc_id, metadata in zip(results["ids"], results["metadatas"])
            ]
        except Exception as e:
            self.logger.error(f"Error listing records: {e}")
            return []
    
    def count(self) -> int:
        """Get the total number of records in the collection."""
        try:
            return self.collection.count()
        except Exception as e:
            self.logger.error(f"Error counting records: {e}")
            return 0
