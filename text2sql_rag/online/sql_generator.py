import logging
from typing import List, Optional

from ..core import LLMManager
from ..models import RetrievalMatch
from .prompt_builder import PromptBuilder


class SQLGenerator:
    """Produces a tagged SQL response restricted to the selected tables."""
    
    def __init__(self, llm_manager: LLMManager, prompt_builder: Optional[PromptBuilder] = None):
        self.logger = logging.getLogger(__name__)
        self.llm_manager = llm_manager
        self.prompt_builder = prompt_builder or PromptBuilder()
    
    async def generate(
        self,
        question: str,
        tables: List[RetrievalMatch],
        selected: List[str],
        intents: Optional[List[RetrievalMatch]] = None
    ) -> str:
        """
        Generate the raw tagged response.
        
        Retrieved tables that were not selected are left out of the prompt.
        
        Args:
            question: User's natural language question
            tables: Retrieved table matches
            selected: Table names chosen by the re-rank stage
            intents: Similar historical queries used as examples
        
        Returns:
            Raw model text, to be parsed by ResponseParser
        """
        schemas = [m.metadata for m in tables if m.metadata.get("name") in selected]
        prompt = self.prompt_builder.build_generation_prompt(question, schemas, intents)
        
        response = await self.llm_manager.invoke(prompt)
        self.logger.info(f"SQL generation completed, response length {len(response)}")
        self.logger.debug(f"Generation response: {response}")
        return response
