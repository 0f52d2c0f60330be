"""
Text2SQL: Main orchestrator for the RAG-based Text-to-SQL system.
"""

import logging
from typing import Dict, List, Any, Optional
from datetime import datetime

from chromadb.api import ClientAPI

from .config import settings
from .core import LLMManager, EmbeddingManager, VectorDBManager, DatabaseManager, create_client
from .exceptions import GenerationFormatError, InsufficientContextError, SQLValidationError
from .models import GenerationResult, ResponseState, SyncResult, ValidationOutcome
from .offline import SchemaSync, QueryLogSync
from .online import (
    PromptBuilder,
    RAGRetriever,
    TableSelector,
    SQLGenerator,
    ResponseParser,
    SQLValidator,
)


class Text2SQL:
    """Main Text2SQL orchestrator."""
    
    def __init__(
        self,
        database: Optional[DatabaseManager] = None,
        llm_manager: Optional[LLMManager] = None,
        embedding_manager: Optional[EmbeddingManager] = None,
        table_index: Optional[VectorDBManager] = None,
        query_index: Optional[VectorDBManager] = None,
        vector_client: Optional[ClientAPI] = None
    ):
        """
        Initialize Text2SQL system.
        
        Any adapter not given is built from settings.
        
        Args:
            database: Target database adapter
            llm_manager: Language model adapter
            embedding_manager: Embedding adapter
            table_index: Vector index of table descriptions
            query_index: Vector index of query intents
            vector_client: ChromaDB client used to build missing indexes
        """
        self.logger = logging.getLogger(__name__)
        
        self.database = database or DatabaseManager()
        self.llm_manager = llm_manager or LLMManager()
        self.embedding_manager = embedding_manager or EmbeddingManager()
        
        if table_index is None or query_index is None:
            vector_client = vector_client or create_client()
        self.table_index = table_index or VectorDBManager(
            settings.table_index_name, vector_client, "One record per relational table"
        )
        self.query_index = query_index or VectorDBManager(
            settings.query_index_name, vector_client, "One record per observed query pattern"
        )
        
        # Online processing
        self.prompt_builder = PromptBuilder()
        self.rag_retriever = RAGRetriever(self.embedding_manager, self.table_index, self.query_index)
        self.table_selector = TableSelector(self.llm_manager, self.prompt_builder)
        self.sql_generator = SQLGenerator(self.llm_manager, self.prompt_builder)
        self.response_parser = ResponseParser()
        self.sql_validator = SQLValidator(self.database)
        
        # Offline processing
        self.schema_sync = SchemaSync(
            self.database, self.llm_manager, self.embedding_manager, self.table_index,
            prompt_builder=self.prompt_builder
        )
        self.query_log_sync = QueryLogSync(
            self.database, self.llm_manager, self.embedding_manager, self.query_index,
            prompt_builder=self.prompt_builder
        )
    
    async def generate_sql(self, question: str) -> GenerationResult:
        """
        Convert a natural language question to a validated SQL query.
        
        Args:
            question: Natural language question
        
        Returns:
            GenerationResult holding the validated query
        
        Raises:
            GenerationFormatError: the model response carried no marker
            InsufficientContextError: the model explained it could not answer
            SQLValidationError: the query failed validation
        """
        self.logger.info(f"Starting SQL generation process (question length {len(question)})")
        
        # 1. Retrieve candidate tables and similar queries
        retrieval = await self.rag_retriever.retrieve(question)
        
        # 2. Narrow tables with the model
        selected = await self.table_selector.select(question, retrieval.tables, retrieval.intents)
        
        # 3. Generate tagged SQL response
        response = await self.sql_generator.generate(
            question, retrieval.tables, selected, retrieval.intents
        )
        
        # 4. Parse response
        parsed = self.response_parser.parse(response)
        if parsed.state is ResponseState.EXPLANATION_FOUND:
            raise InsufficientContextError(parsed.payload)
        if parsed.state is not ResponseState.QUERY_FOUND:
            raise GenerationFormatError(response)
        
        # 5. Validate before returning anything
        sql = parsed.payload
        outcome = await self.sql_validator.validate(sql)
        if not outcome.valid:
            self.logger.error(f"Generated SQL failed validation: {outcome.error} ({sql[:100]}...)")
            raise SQLValidationError(outcome.error, sql)
        
        self.logger.info("SQL validation passed successfully")
        return GenerationResult(
            question=question,
            sql=sql,
            selected_tables=selected,
            retrieved_tables=retrieval.table_names,
            retrieved_intents=[m.metadata.get("summary", "") for m in retrieval.intents],
        )
    
    async def validate_sql(self, sql: str) -> ValidationOutcome:
        """Run the validator on a hand-written query."""
        return await self.sql_validator.validate(sql)
    
    async def sync_schema(self, metadata_path: Optional[str] = None) -> SyncResult:
        """
        Refresh the table index from the live schema.
        
        Args:
            metadata_path: Curated table metadata file (uses settings if None)
        """
        return await self.schema_sync.run(metadata_path)
    
    async def sync_query_logs(self, limit: Optional[int] = None) -> SyncResult:
        """
        Refresh the query-intent index from execution statistics.
        
        Args:
            limit: Number of top queries to fetch (uses settings if None)
        """
        return await self.query_log_sync.run(limit)
    
    def list_tables(self) -> List[Dict[str, Any]]:
        """List table records stored in the table index."""
        records = self.table_index.list_records()
        return sorted((r["metadata"] for r in records), key=lambda m: m.get("name", ""))
    
    def get_table_info(self, table_name: str) -> Optional[Dict[str, Any]]:
        """Get the stored record for one table, or None if it is not indexed."""
        record = self.table_index.get_record(table_name)
        return record["metadata"] if record else None
    
    def get_stats(self) -> Dict[str, Any]:
        """Get system statistics."""
        return {
            'table_index_size': self.table_index.count(),
            'query_index_size': self.query_index.count(),
            'last_updated': datetime.now().isoformat(),
            'sql_dialect': settings.sql_dialect,
            'llm_model': settings.llm_model_name,
            'embedding_model': settings.embedding_model_name
        }
    
    async def close(self) -> None:
        """Release pooled database connections."""
        await self.database.dispose()
