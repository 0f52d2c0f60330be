"""
Text2SQL RAG: natural language to validated, read-only SQL.

Online processing retrieves table descriptions and historical query intents,
lets the model pick tables and write a tagged query, then validates it with a
keyword gate, a statement check and a dry run. Offline processing keeps the
two vector indexes in step with the database schema and its query log.
"""

__version__ = "0.1.0"

from .text2sql import Text2SQL

__all__ = ["Text2SQL", "__version__"]
