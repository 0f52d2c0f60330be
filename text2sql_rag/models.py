"""
Data models shared by the online pipeline and the offline sync jobs.
"""

import hashlib
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


DEFAULT_TIER = "IRON"


class TableDescriptor(BaseModel):
    """One relational table as stored in the table index."""
    
    name: str
    schema_text: str
    summary: str = ""
    tier: Optional[str] = None
    domain: Optional[str] = None
    
    def to_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "summary": self.summary,
            "schema": self.schema_text,
            "tier": self.tier or DEFAULT_TIER,
            "domain": self.domain or DEFAULT_TIER,
        }


class QueryIntentRecord(BaseModel):
    """A sanitized historical query and its business-purpose summary."""
    
    sanitized_query: str
    summary: str = ""
    
    @property
    def id(self) -> str:
        return hashlib.md5(self.sanitized_query.encode("utf-8")).hexdigest()
    
    def to_metadata(self) -> Dict[str, Any]:
        return {"summary": self.summary, "query": self.sanitized_query}


class RetrievalMatch(BaseModel):
    metadata: Dict[str, Any] = Field(default_factory=dict)
    score: float


class RetrievalResult(BaseModel):
    embedding: List[float]
    tables: List[RetrievalMatch] = Field(default_factory=list)
    intents: List[RetrievalMatch] = Field(default_factory=list)
    
    @property
    def table_names(self) -> List[str]:
        return [m.metadata.get("name", "") for m in self.tables]


class ResponseState(str, Enum):
    AWAITING = "awaiting"
    QUERY_FOUND = "query_found"
    EXPLANATION_FOUND = "explanation_found"
    MALFORMED = "malformed"


class ParsedResponse(BaseModel):
    """Structured form of a tagged generation response."""
    
    state: ResponseState
    payload: str = ""
    raw_text: str = ""


class ValidationOutcome(BaseModel):
    valid: bool
    error: Optional[str] = None


class GenerationResult(BaseModel):
    """A validated query plus the context it was generated from."""
    
    question: str
    sql: str
    selected_tables: List[str] = Field(default_factory=list)
    retrieved_tables: List[str] = Field(default_factory=list)
    retrieved_intents: List[str] = Field(default_factory=list)


class SyncResult(BaseModel):
    """Outcome of one sync job run, reported to the scheduler."""
    
    job: str
    success: bool = False
    processed: int = 0
    upserted: int = 0
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
