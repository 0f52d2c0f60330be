"""
Offline processing module initialization.
"""

from .schema_sync import SchemaSync, load_table_metadata, merge_table_metadata
from .query_log_sync import QueryLogSync, sanitize_query

__all__ = [
    "SchemaSync",
    "QueryLogSync",
    "load_table_metadata",
    "merge_table_metadata",
    "sanitize_query",
]
