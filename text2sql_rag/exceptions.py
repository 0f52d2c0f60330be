"""
Errors raised by the SQL generation pipeline.

Retrieval errors (embedding model or vector store) are not wrapped and reach
the caller as raised by the underlying client.
"""

from typing import Optional


class Text2SQLError(Exception):
    """Base class for pipeline failures reported to the caller."""


class GenerationFormatError(Text2SQLError):
    """The model response carried neither response marker."""
    
    def __init__(self, raw_text: str):
        self.raw_text = raw_text
        super().__init__(
            "Model response did not start with <@query@> or <@explanation@>"
        )


class InsufficientContextError(Text2SQLError):
    """The model explained why it could not write a query."""
    
    def __init__(self, explanation: str):
        self.explanation = explanation
        super().__init__(f"Could not generate SQL: {explanation}")


class SQLValidationError(Text2SQLError):
    """A generated query was rejected by the validator."""
    
    def __init__(self, message: Optional[str], sql: str):
        self.sql = sql
        self.reason = message or "unknown validation error"
        super().__init__(f"Generated SQL is invalid: {self.reason}")
