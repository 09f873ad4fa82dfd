"""BaseAgent interface for all agents, plus the per-request turn state."""
import time
from abc import ABC, abstractmethod
from typing import Optional

from ..schemas.io_models import ChatSession, SearchResult
from ..utils.logger import get_logger

logger = get_logger()


class Turn:
    """One inbound query as it moves through the pipeline."""

    def __init__(self, tenant_id: str, session: ChatSession, query: str, language: str = "en",
                 deadline_seconds: Optional[float] = None, clock=time.monotonic):
        self.tenant_id = tenant_id
        self.session = session
        self.query = query
        self.language = language
        self.refined_query = query
        self.matched_question: Optional[str] = None
        self._clock = clock
        self._deadline = clock() + deadline_seconds if deadline_seconds else None

    def expired(self) -> bool:
        """True once the request deadline has passed; best-effort steps stop then."""
        return self._deadline is not None and self._clock() >= self._deadline


class BaseAgent(ABC):
    name: str = "base"

    @abstractmethod
    def handle(self, turn: Turn) -> SearchResult:
        """Return the response for this turn."""
        ...

    def _result(self, type: str, answer: str, **extras) -> SearchResult:
        logger.info(f"[AGENT] {self.name} -> {type}")
        return SearchResult(type=type, answer=answer, **extras)
