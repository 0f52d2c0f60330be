import json
import logging
from typing import Dict, List, Any, Optional
from langchain_core.prompts import PromptTemplate

from ..config import settings
from ..models import RetrievalMatch


QUERY_MARKER = "<@query@>"
EXPLANATION_MARKER = "<@explanation@>"


RERANK_TEMPLATE = PromptTemplate.from_template(
    """Based on the user's question, which of the following tables are the most relevant and necessary to answer it?
Select the smallest set of tables that is sufficient to answer the question.

Use the 'tier' as a strong indicator of table quality and priority. The hierarchy is: GOLD (highest) > SILVER > BRONZE > IRON (lowest).
Strongly prefer higher-tier tables over lower-tier ones. Avoid using IRON tier tables if a better alternative exists, as they are likely deprecated or empty.

User Question: "{question}"

Tables:
{tables}
{intents}
Return ONLY a comma-separated list of the selected table names, with no other text. For example: users,transactions"""
)


GENERATION_TEMPLATE = PromptTemplate.from_template(
    """You are an expert {dialect} writer. Your task is to write a single, correct and efficient read-only {dialect} query that answers the user's question using ONLY the provided table schemas.

CRITICAL RULE: You MUST wrap all table and column names in double quotes (") to preserve their exact case. For example, a query involving the 'users' table and the 'createdAt' column should be written as SELECT "createdAt" FROM "users".

User Question: "{question}"

Table Schemas:
---
{schemas}
---
{examples}
RESPONSE FORMAT: Your response MUST start with exactly one of these two markers:
- {query_marker} followed by the SQL query and nothing else, if the tables are sufficient to answer the question.
- {explanation_marker} followed by a short explanation, if the tables are NOT sufficient to answer the question.
Do not add any text before the marker."""
)


TABLE_SUMMARY_TEMPLATE = PromptTemplate.from_template(
    'Based on the table name "{name}" and columns "{schema}", generate a concise, '
    "one-sentence summary of its business purpose for a semantic search system."
)


QUERY_SUMMARY_TEMPLATE = PromptTemplate.from_template(
    """You are an expert data analyst. Analyze the following SQL query and describe its business purpose in one clear sentence. Focus on what the query achieves, not just a literal description.

SQL Query:
```sql
{query}
```

Example: For 'SELECT "product_name", SUM("amount") FROM "transactions" GROUP BY "product_name"', a good summary is "Calculates the total sales revenue for each product."

Your Summary:"""
)


class PromptBuilder:
    """Builds the prompts used by the generation pipeline and the sync jobs."""
    
    def __init__(self, dialect: Optional[str] = None):
        """
        Initialize prompt builder.
        
        Args:
            dialect: SQL dialect named in the generation prompt
        """
        self.logger = logging.getLogger(__name__)
        self.dialect = dialect or settings.sql_dialect
    
    def build_rerank_prompt(
        self,
        question: str,
        tables: List[Dict[str, Any]],
        intents: Optional[List[RetrievalMatch]] = None
    ) -> str:
        """
        Build the prompt asking the model to narrow the retrieved tables.
        
        Args:
            question: User's natural language question
            tables: Retrieved table metadata (name, tier, domain, summary, schema)
            intents: Retrieved query intents used as secondary context
        
        Returns:
            Prompt string
        """
        prompt = RERANK_TEMPLATE.format(
            question=question,
            tables=json.dumps(tables, indent=2, ensure_ascii=False),
            intents=self._build_intent_context(intents),
        )
        self.logger.debug(f"Built re-rank prompt with {len(prompt)} characters")
        return prompt
    
    def build_generation_prompt(
        self,
        question: str,
        tables: List[Dict[str, Any]],
        intents: Optional[List[RetrievalMatch]] = None
    ) -> str:
        """
        Build the tagged-response SQL generation prompt.
        
        Args:
            question: User's natural language question
            tables: Metadata of the selected tables
            intents: Similar historical queries shown as examples
        
        Returns:
            Prompt string
        """
        schemas = "\n\n".join(
            f"Table Name: {t.get('name')}\nColumns: {t.get('schema')}" for t in tables
        )
        prompt = GENERATION_TEMPLATE.format(
            dialect=self.dialect,
            question=question,
            schemas=schemas,
            examples=self._build_examples(intents),
            query_marker=QUERY_MARKER,
            explanation_marker=EXPLANATION_MARKER,
        )
        self.logger.debug(f"Built generation prompt with {len(prompt)} characters")
        return prompt
    
    def build_table_summary_prompt(self, name: str, schema_text: str) -> str:
        return TABLE_SUMMARY_TEMPLATE.format(name=name, schema=schema_text)
    
    def build_query_summary_prompt(self, query: str) -> str:
        return QUERY_SUMMARY_TEMPLATE.format(query=query)
    
    def _build_intent_context(self, intents: Optional[List[RetrievalMatch]]) -> str:
        if not intents:
            return ""
        lines = ["\nSimilar questions asked before and the queries that answered them:"]
        for match in intents:
            lines.append(f"- {match.metadata.get('summary', '')}")
            lines.append(f"  {match.metadata.get('query', '')}")
        return "\n".join(lines) + "\n"
    
    def _build_examples(self, intents: Optional[List[RetrievalMatch]]) -> str:
        if not intents:
            return ""
        examples = ["\nExamples of similar queries used in this database:"]
        for i, match in enumerate(intents, 1):
            examples.append(f"\nExample {i}: {match.metadata.get('summary', '')}")
            examples.append(f"```sql\n{match.metadata.get('query', '')}\n```")
        return "\n".join(examples) + "\n"
