import logging
from typing import Optional
from langchain_community.llms import Ollama
from langchain_core.runnables import Runnable
from langchain_core.output_parsers import StrOutputParser

from ..config import settings


class LLMManager:
    """Manages LLM interactions. Every call is independent of the previous one."""
    
    def __init__(self, llm: Optional[Runnable] = None):
        """
        Initialize the LLM manager.
        
        Args:
            llm: Language model to use (an Ollama model from settings if None)
        """
        self.logger = logging.getLogger(__name__)
        self.llm = llm if llm is not None else self._initialize_llm()
        self.output_parser = StrOutputParser()
        self.chain = self.llm | self.output_parser
    
    def _initialize_llm(self) -> Ollama:
        """Initialize the Ollama LLM."""
        try:
            llm = Ollama(
                model=settings.llm_model_name,
                base_url=settings.llm_base_url,
                temperature=settings.llm_temperature,
                num_predict=settings.llm_max_tokens,
                timeout=settings.llm_timeout,
            )
            self.logger.info(f"LLM initialized with model: {settings.llm_model_name}")
            return llm
        except Exception as e:
            self.logger.error(f"Failed to initialize LLM: {e}")
            raise
    
    async def invoke(self, prompt: str) -> str:
        """
        Send a prompt to the model and return the completion text.
        
        Args:
            prompt: Complete prompt string
        
        Returns:
            Model completion
        """
        self.logger.debug(f"LLM prompt ({len(prompt)} chars): {prompt[:200]}")
        try:
            return await self.chain.ainvoke(prompt)
        except Exception as e:
            self.logger.error(f"Error invoking LLM: {e}")
            raise
    
    async def summarize(self, prompt: str) -> str:
        """Invoke the model for a one-sentence summary and strip surrounding whitespace."""
        summary = await self.invoke(prompt)
        return summary.strip()
