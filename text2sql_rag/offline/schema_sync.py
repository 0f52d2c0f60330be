import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any, Optional

from ..config import settings
from ..core import DatabaseManager, EmbeddingManager, LLMManager, VectorDBManager
from ..models import TableDescriptor, SyncResult, DEFAULT_TIER
from ..online.prompt_builder import PromptBuilder


INTROSPECTION_SQL = """
SELECT t.table_name, c.column_name, c.data_type
FROM information_schema.tables t
JOIN information_schema.columns c
  ON t.table_name = c.table_name AND t.table_schema = c.table_schema
WHERE t.table_schema = :schema AND t.table_type = 'BASE TABLE'
ORDER BY t.table_name, c.ordinal_position
"""

# Curated keys that map onto TableDescriptor fields under a different name.
CURATED_FIELD_ALIASES = {"schema": "schema_text"}


def load_table_metadata(file_path: str) -> Dict[str, Dict[str, Any]]:
    """
    Load curated per-table metadata from a JSON file.
    
    Args:
        file_path: Path to a JSON object keyed by table name
    
    Returns:
        Curated metadata, empty when the file does not exist
    """
    logger = logging.getLogger(__name__)
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Table metadata file not found: {file_path}")
        return {}
    
    with open(path, "r", encoding="utf-8") as f:
        metadata = json.load(f)
    if not isinstance(metadata, dict):
        raise ValueError(f"Table metadata in {file_path} must be a JSON object keyed by table name")
    
    logger.info(f"Loaded curated metadata for {len(metadata)} tables from {file_path}")
    return metadata


def merge_table_metadata(table: TableDescriptor, curated: Optional[Dict[str, Any]]) -> TableDescriptor:
    """
    Overlay curated metadata on an introspected table.
    
    Curated values always win. Tier and domain fall back to IRON when
    neither source sets them.
    """
    fields = table.model_dump()
    for key, value in (curated or {}).items():
        key = CURATED_FIELD_ALIASES.get(key, key)
        if key in fields and key != "name" and value is not None:
            fields[key] = value
    
    fields["tier"] = fields.get("tier") or DEFAULT_TIER
    fields["domain"] = fields.get("domain") or DEFAULT_TIER
    return TableDescriptor(**fields)


class SchemaSync:
    """Keeps the table index in step with the live database schema."""
    
    job_name = "schema_sync"
    
    def __init__(
        self,
        database: DatabaseManager,
        llm_manager: LLMManager,
        embedding_manager: EmbeddingManager,
        table_index: VectorDBManager,
        metadata_path: Optional[str] = None,
        prompt_builder: Optional[PromptBuilder] = None
    ):
        """
        Initialize the schema synchronizer.
        
        Args:
            database: Database to introspect
            llm_manager: Writes table summaries
            embedding_manager: Embeds table summaries
            table_index: Index receiving one record per table
            metadata_path: Curated table metadata JSON (uses settings if None)
            prompt_builder: Builds the summary prompt
        """
        self.logger = logging.getLogger(__name__)
        self.database = database
        self.llm_manager = llm_manager
        self.embedding_manager = embedding_manager
        self.table_index = table_index
        self.metadata_path = metadata_path or settings.table_metadata_path
        self.prompt_builder = prompt_builder or PromptBuilder()
    
    async def run(self, metadata_path: Optional[str] = None) -> SyncResult:
        """
        Run one full sync.
        
        Args:
            metadata_path: Curated table metadata file for this run only
        
        Never raises. Failures are logged and reported in the result; tables
        upserted before a failure stay in the index.
        """
        result = SyncResult(job=self.job_name)
        self.logger.info("Starting database schema sync job")
        
        try:
            tables = await self.introspect_tables()
            result.processed = len(tables)
            
            tables = await self.summarize_tables(tables)
            
            curated = load_table_metadata(metadata_path or self.metadata_path)
            tables = [merge_table_metadata(t, curated.get(t.name)) for t in tables]
            self.logger.info(
                f"Enriched {len(tables)} tables with metadata for {len(curated)} curated tables"
            )
            
            async for _ in self._upsert_tables(tables):
                result.upserted += 1
            
            result.success = True
            self.logger.info(f"Schema sync job completed successfully: {result.upserted} tables")
        except Exception as e:
            result.error = str(e)
            self.logger.exception(f"Schema sync job failed: {e}")
        finally:
            result.finished_at = datetime.now()
        
        return result
    
    async def introspect_tables(self) -> List[TableDescriptor]:
        """
        Read base tables and their ordered columns.
        
        Returns:
            One descriptor per table with its column schema string
        """
        rows = await self.database.fetch_all(INTROSPECTION_SQL, {"schema": settings.db_schema})
        
        columns: Dict[str, List[str]] = {}
        for row in rows:
            columns.setdefault(row["table_name"], []).append(
                f"{row['column_name']} {row['data_type']}"
            )
        
        tables = [
            TableDescriptor(name=name, schema_text=", ".join(cols))
            for name, cols in columns.items()
        ]
        self.logger.info(f"Database schema inspection found {len(tables)} tables: {list(columns)}")
        return tables
    
    async def summarize_tables(self, tables: List[TableDescriptor]) -> List[TableDescriptor]:
        """Ask the model for a one-sentence summary of every table, concurrently."""
        self.logger.info(f"Generating AI summaries for {len(tables)} tables")
        
        async def summarize(table: TableDescriptor) -> TableDescriptor:
            prompt = self.prompt_builder.build_table_summary_prompt(table.name, table.schema_text)
            summary = await self.llm_manager.summarize(prompt)
            return table.model_copy(update={"summary": summary})
        
        return list(await asyncio.gather(*(summarize(t) for t in tables)))
    
    async def _upsert_tables(self, tables: List[TableDescriptor]):
        """Embed and upsert tables one at a time, yielding each stored name."""
        for table in tables:
            vector = await self.embedding_manager.embed_query(table.summary)
            metadata = table.to_metadata()
            await self.table_index.upsert(table.name, vector, metadata, document=table.summary)
            self.logger.debug(
                f"Upserted table {table.name} (tier={metadata['tier']}, domain={metadata['domain']})"
            )
            yield table.name
