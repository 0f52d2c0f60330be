import asyncio
import logging
import re
from datetime import datetime
from typing import List, Optional

from ..config import settings
from ..core import DatabaseManager, EmbeddingManager, LLMManager, VectorDBManager
from ..models import QueryIntentRecord, SyncResult
from ..online.prompt_builder import PromptBuilder


TOP_QUERIES_SQL = """
SELECT query, SUM(calls) AS total_calls
FROM pg_stat_statements
WHERE query LIKE 'SELECT%'
GROUP BY queryid, query
ORDER BY total_calls DESC
LIMIT :limit
"""

# Order matters: quoted literals first so a digit inside a string is not
# replaced on its own.
SANITIZE_RULES = [
    (re.compile(r"WHERE\s+\S+\s*=\s*'.*?'"), "WHERE column = 'value'"),
    (re.compile(r"AND\s+\S+\s*=\s*'.*?'"), "AND column = 'value'"),
    (re.compile(r"WHERE\s+\S+\s*=\s*\d+"), "WHERE column = 123"),
    (re.compile(r"AND\s+\S+\s*=\s*\d+"), "AND column = 123"),
]


def sanitize_query(query: str) -> str:
    """Replace equality literals in WHERE/AND clauses with fixed placeholders."""
    for pattern, placeholder in SANITIZE_RULES:
        query = pattern.sub(placeholder, query)
    return query


class QueryLogSync:
    """Feeds frequently executed queries into the query-intent index."""
    
    job_name = "query_log_sync"
    
    def __init__(
        self,
        database: DatabaseManager,
        llm_manager: LLMManager,
        embedding_manager: EmbeddingManager,
        query_index: VectorDBManager,
        limit: Optional[int] = None,
        prompt_builder: Optional[PromptBuilder] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.database = database
        self.llm_manager = llm_manager
        self.embedding_manager = embedding_manager
        self.query_index = query_index
        self.limit = limit or settings.query_log_limit
        self.prompt_builder = prompt_builder or PromptBuilder()
    
    async def run(self, limit: Optional[int] = None) -> SyncResult:
        """
        Run one full sync.
        
        Args:
            limit: Number of top queries to fetch for this run only
        
        Never raises. Failures are logged and reported in the result; intents
        upserted before a failure stay in the index.
        """
        result = SyncResult(job=self.job_name)
        self.logger.info("Starting query log sync job")
        
        try:
            queries = await self.fetch_top_queries(limit)
            sanitized = self.sanitize_queries(queries)
            result.processed = len(sanitized)
            
            intents = await self.summarize_queries(sanitized)
            
            self.logger.info(f"Embedding and storing {len(intents)} query intents")
            for intent in intents:
                vector = await self.embedding_manager.embed_query(intent.summary)
                await self.query_index.upsert(
                    intent.id, vector, intent.to_metadata(), document=intent.summary
                )
                result.upserted += 1
            
            result.success = True
            self.logger.info(f"Query log sync job completed successfully: {result.upserted} intents")
        except Exception as e:
            result.error = str(e)
            self.logger.exception(f"Query log sync job failed: {e}")
        finally:
            result.finished_at = datetime.now()
        
        return result
    
    async def fetch_top_queries(self, limit: Optional[int] = None) -> List[str]:
        """Fetch the most frequently executed SELECT queries."""
        self.logger.info("Fetching frequent queries from pg_stat_statements")
        rows = await self.database.fetch_all(TOP_QUERIES_SQL, {"limit": limit or self.limit})
        return [row["query"] for row in rows]
    
    def sanitize_queries(self, queries: List[str]) -> List[str]:
        """
        Sanitize queries and drop duplicates that collapse to the same text.
        
        Returns:
            Distinct sanitized queries in first-seen order
        """
        sanitized = list(dict.fromkeys(sanitize_query(q) for q in queries))
        self.logger.info(f"Sanitized {len(queries)} queries into {len(sanitized)} patterns")
        return sanitized
    
    async def summarize_queries(self, queries: List[str]) -> List[QueryIntentRecord]:
        """Describe the business purpose of every query, concurrently."""
        self.logger.info(f"Generating AI summaries for {len(queries)} queries")
        
        async def summarize(query: str) -> QueryIntentRecord:
            prompt = self.prompt_builder.build_query_summary_prompt(query)
            summary = await self.llm_manager.summarize(prompt)
            return QueryIntentRecord(sanitized_query=query, summary=summary)
        
        return list(await asyncio.gather(*(summarize(q) for q in queries)))
