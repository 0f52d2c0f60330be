import logging
import re

from ..models import ParsedResponse, ResponseState
from .prompt_builder import QUERY_MARKER, EXPLANATION_MARKER


CODE_FENCE_PATTERN = re.compile(r"```(?:sql)?", re.IGNORECASE)


class ResponseParser:
    """Turns a tagged model response into a query or an explanation."""
    
    def __init__(self):
        self.logger = logging.getLogger(__name__)
    
    def parse(self, raw_text: str) -> ParsedResponse:
        """
        Parse the generation response.
        
        A query marker anywhere in the text wins over an explanation marker.
        The payload is everything after the first occurrence of the marker.
        
        Args:
            raw_text: Raw model output
        
        Returns:
            ParsedResponse in a terminal state
        """
        state = ResponseState.AWAITING
        payload = ""
        
        query_pos = raw_text.find(QUERY_MARKER)
        explanation_pos = raw_text.find(EXPLANATION_MARKER)
        
        if query_pos != -1:
            payload = self._clean_query(raw_text[query_pos + len(QUERY_MARKER):])
            state = ResponseState.QUERY_FOUND if payload else ResponseState.MALFORMED
        elif explanation_pos != -1:
            payload = raw_text[explanation_pos + len(EXPLANATION_MARKER):].strip()
            state = ResponseState.EXPLANATION_FOUND
        else:
            state = ResponseState.MALFORMED
        
        if state is ResponseState.MALFORMED:
            self.logger.warning(f"Malformed generation response: {raw_text[:200]!r}")
        else:
            self.logger.debug(f"Parsed generation response as {state.value}")
        
        return ParsedResponse(state=state, payload=payload, raw_text=raw_text)
    
    def _clean_query(self, text: str) -> str:
        """Strip Markdown code fences the model sometimes adds around SQL."""
        return CODE_FENCE_PATTERN.sub("", text).strip()
