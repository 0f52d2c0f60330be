import logging
from typing import List, Optional

from ..core import LLMManager
from ..models import RetrievalMatch
from .prompt_builder import PromptBuilder


RERANK_FIELDS = ("name", "tier", "domain", "summary", "schema")


def parse_table_list(response: str) -> List[str]:
    """Split a comma-separated model answer into table names."""
    names = []
    for part in response.split(","):
        name = part.strip().strip("`\"'").strip()
        if name:
            names.append(name)
    return names


class TableSelector:
    """Asks the model to narrow retrieved tables to the minimal relevant set."""
    
    def __init__(self, llm_manager: LLMManager, prompt_builder: Optional[PromptBuilder] = None):
        self.logger = logging.getLogger(__name__)
        self.llm_manager = llm_manager
        self.prompt_builder = prompt_builder or PromptBuilder()
    
    async def select(
        self,
        question: str,
        tables: List[RetrievalMatch],
        intents: Optional[List[RetrievalMatch]] = None
    ) -> List[str]:
        """
        Select the tables needed to answer the question.
        
        Names the model returns that are not among the retrieved tables are
        dropped. The result may be empty.
        
        Args:
            question: User's natural language question
            tables: Retrieved table matches
            intents: Retrieved query intents for secondary context
        
        Returns:
            Selected table names in the model's order
        """
        candidates = [
            {field: match.metadata.get(field) for field in RERANK_FIELDS}
            for match in tables
        ]
        prompt = self.prompt_builder.build_rerank_prompt(question, candidates, intents)
        response = await self.llm_manager.invoke(prompt)
        
        proposed = parse_table_list(response)
        known = {c["name"] for c in candidates}
        selected = []
        for name in proposed:
            if name in known and name not in selected:
                selected.append(name)
        
        unknown = [name for name in proposed if name not in known]
        if unknown:
            self.logger.warning(f"Model selected tables that were not retrieved: {unknown}")
        if not selected:
            self.logger.warning(f"No retrieved table was selected from response: {response[:200]!r}")
        
        self.logger.info(f"LLM selected tables for SQL generation: {selected}")
        return selected
