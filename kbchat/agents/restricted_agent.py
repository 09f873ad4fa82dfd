"""Restricted Agent: fixed refusal for topics outside the knowledge base."""
from .base_agent import BaseAgent, Turn
from ..nlu.rules import RESTRICTED_MESSAGE
from ..schemas.io_models import SearchResult


class RestrictedAgent(BaseAgent):
    name = "restricted"

    def handle(self, turn: Turn) -> SearchResult:
        return self._result("restricted", RESTRICTED_MESSAGE, score=0.0, language=turn.language)
