import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from ..config import settings


class DatabaseManager:
    """Pooled, read-only access to the target PostgreSQL database."""
    
    def __init__(self, engine: Optional[AsyncEngine] = None, database_url: Optional[str] = None):
        """
        Initialize the database manager.
        
        Args:
            engine: Existing async engine (created from database_url if None)
            database_url: Database connection URL (uses settings if None)
        """
        self.logger = logging.getLogger(__name__)
        self.engine = engine if engine is not None else self._create_engine(database_url)
    
    def _create_engine(self, database_url: Optional[str]) -> AsyncEngine:
        if database_url is None:
            database_url = settings.database_url
        try:
            engine = create_async_engine(
                database_url,
                pool_size=settings.db_pool_size,
                pool_pre_ping=True,
            )
            host = database_url.split("@")[1] if "@" in database_url else database_url
            self.logger.info(f"Database engine created for: {host}")
            return engine
        except Exception as e:
            self.logger.error(f"Failed to create database engine: {e}")
            raise
    
    @asynccontextmanager
    async def connection(self, timeout: Optional[int] = None) -> AsyncIterator[AsyncConnection]:
        """
        Check out a pooled connection for the duration of the block.
        
        The connection goes back to the pool on every exit path. A
        statement timeout in seconds is applied when given.
        """
        async with self.engine.connect() as conn:
            if timeout:
                await conn.execute(text(f"SET statement_timeout TO {int(timeout) * 1000}"))
            yield conn
    
    async def fetch_all(
        self,
        sql: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Run a read query and return rows as dictionaries.
        
        Args:
            sql: SQL text with named bind parameters
            params: Bind parameter values
        
        Returns:
            List of row dictionaries
        """
        async with self.connection(timeout=settings.sql_timeout) as conn:
            result = await conn.execute(text(sql), params or {})
            return [dict(row) for row in result.mappings().all()]
    
    async def explain(self, sql: str) -> None:
        """
        Plan the query without executing it.
        
        Raises the driver error when the query does not plan against the
        live schema.
        """
        async with self.connection(timeout=settings.sql_timeout) as conn:
            await conn.exec_driver_sql(f"EXPLAIN {sql}")
    
    async def dispose(self) -> None:
        await self.engine.dispose()
