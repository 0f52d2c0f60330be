"""
Online processing module initialization.
"""

from .prompt_builder import PromptBuilder
from .rag_retriever import RAGRetriever
from .table_selector import TableSelector
from .sql_generator import SQLGenerator
from .response_parser import ResponseParser
from .sql_validator import SQLValidator

__all__ = [
    "PromptBuilder",
    "RAGRetriever",
    "TableSelector",
    "SQLGenerator",
    "ResponseParser",
    "SQLValidator",
]
