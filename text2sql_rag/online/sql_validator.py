import logging
import re
from typing import Optional, Tuple
import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from ..config import settings
from ..core import DatabaseManager
from ..models import ValidationOutcome


FORBIDDEN_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "drop",
    "create",
    "alter",
    "truncate",
    "grant",
    "revoke",
)

READ_STATEMENTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)
WRITE_EXPRESSIONS = (exp.Insert, exp.Update, exp.Delete, exp.Drop, exp.Create, exp.Merge, exp.Into)

SQLGLOT_DIALECTS = {
    "postgresql": "postgres",
    "postgres": "postgres",
    "prestosql": "presto",
    "presto": "presto",
    "trino": "trino",
    "mysql": "mysql",
}

WHITESPACE_PATTERN = re.compile(r"\s+")


class SQLValidator:
    """Validates generated SQL before it is handed back to the caller."""
    
    def __init__(self, database: DatabaseManager, dialect: Optional[str] = None):
        """
        Initialize SQL validator.
        
        Args:
            database: Database used for the dry run
            dialect: SQL dialect name used for statement parsing
        """
        self.logger = logging.getLogger(__name__)
        self.database = database
        dialect = dialect or settings.sql_dialect
        self.dialect = SQLGLOT_DIALECTS.get(dialect.lower())
    
    async def validate(self, sql: str) -> ValidationOutcome:
        """
        Run every validation gate in order, stopping at the first rejection.
        
        Args:
            sql: Candidate SQL query
        
        Returns:
            ValidationOutcome
        """
        for gate in (self.check_keywords, self.check_statement_type):
            is_valid, error = gate(sql)
            if not is_valid:
                self.logger.warning(f"SQL rejected: {error} ({sql[:100]}...)")
                return ValidationOutcome(valid=False, error=error)
        
        is_valid, error = await self.dry_run(sql)
        if not is_valid:
            return ValidationOutcome(valid=False, error=error)
        
        self.logger.info("SQL validation passed")
        return ValidationOutcome(valid=True)
    
    def check_keywords(self, sql: str) -> Tuple[bool, Optional[str]]:
        """
        Reject queries containing a write-operation keyword as a separate word.
        
        Args:
            sql: SQL query to check
        
        Returns:
            Tuple of (is_valid, error_message)
        """
        normalized = f" {WHITESPACE_PATTERN.sub(' ', sql.lower())} "
        for keyword in FORBIDDEN_KEYWORDS:
            if f" {keyword} " in normalized:
                return False, f"Query contains a forbidden write-operation keyword: {keyword}"
        return True, None
    
    def check_statement_type(self, sql: str) -> Tuple[bool, Optional[str]]:
        """
        Parse the SQL and require exactly one read statement.
        
        Args:
            sql: SQL query to check
        
        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            statements = [s for s in sqlglot.parse(sql, dialect=self.dialect) if s is not None]
        except SqlglotError as e:
            return False, f"SQL syntax error: {e}"
        
        if len(statements) != 1:
            return False, f"Expected a single statement, found {len(statements)}"
        
        statement = statements[0]
        if not isinstance(statement, READ_STATEMENTS):
            return False, f"Only read queries are allowed, got {statement.key.upper()}"
        if statement.find(*WRITE_EXPRESSIONS):
            return False, "Query contains a data-modifying clause"
        
        return True, None
    
    async def dry_run(self, sql: str) -> Tuple[bool, Optional[str]]:
        """
        Plan the query against the live database without executing it.
        
        Args:
            sql: SQL query to dry run
        
        Returns:
            Tuple of (success, error_message)
        """
        try:
            await self.database.explain(sql)
            self.logger.debug("SQL dry run successful")
            return True, None
        except Exception as e:
            error_msg = str(getattr(e, "orig", None) or e)
            self.logger.error(f"SQL dry run failed: {error_msg} ({sql[:100]}...)")
            return False, error_msg
