"""Controller / Orchestrator for the semantic-search pipeline.

Triage → agent (greeting, restricted, contact or knowledge) → persist the
turn to the chat session. Nothing is written before the final save.
"""
from typing import Dict, Optional

from .config import Config
from .postprocess import Postprocessor
from .prompt_builder import PromptBuilder
from .retrieval import RetrievalEngine
from .session import SessionManager
from ..agents.base_agent import BaseAgent, Turn
from ..agents.contact_agent import ContactAgent
from ..agents.greeting_agent import GreetingAgent
from ..agents.knowledge_agent import KnowledgeAgent
from ..agents.restricted_agent import RestrictedAgent
from ..nlu.intent_model import IntentClassifier
from ..schemas.io_models import ChatMessage, SearchResult
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger()


class Controller:
    def __init__(self, gateway, store, sessions: SessionManager,
                 retrieval: Optional[RetrievalEngine] = None,
                 postprocessor: Optional[Postprocessor] = None,
                 deadline_seconds: Optional[float] = None):
        self.gateway = gateway
        self.store = store
        self.sessions = sessions
        self.prompts = PromptBuilder()
        self.classifier = IntentClassifier(gateway, self.prompts, Config.SHORT_QUERY_TOKENS)
        self.deadline_seconds = Config.REQUEST_DEADLINE_SECONDS if deadline_seconds is None else deadline_seconds
        self.agents: Dict[str, BaseAgent] = {
            "greeting": GreetingAgent(gateway, self.prompts),
            "restricted": RestrictedAgent(),
            "contact": ContactAgent(gateway, store),
            "retrieval": KnowledgeAgent(
                gateway, store, sessions,
                retrieval=retrieval or RetrievalEngine(),
                postprocessor=postprocessor or Postprocessor(gateway, self.prompts),
                prompts=self.prompts,
            ),
        }

    def handle_query(self, tenant_id: str, session_id: str, query: str) -> SearchResult:
        """
        Answer one user query for a tenant and record it in the session.

        Args:
            tenant_id: Tenant whose corpus is searched
            session_id: Conversation identifier chosen by the widget
            query: Raw user text

        Returns:
            SearchResult describing the response variant
        """
        logger.info("--- New Semantic Search Request ---")
        logger.info(f"[WORKFLOW] 1. Received query '{preview(query)}' for client {tenant_id}")
        query = query.strip()
        session = self.sessions.get_or_create(tenant_id, session_id, persist=False)
        language = self.gateway.detect_language(query)
        turn = Turn(tenant_id, session, query, language, self.deadline_seconds)

        intent = self.classifier.triage(query)
        logger.info(f"[WORKFLOW] 2. Intent: {intent} language={language}")

        agent = self.agents[intent.route]
        if intent.route == "contact":
            result = agent.handle(turn, contact_type=intent.contact_type)
        else:
            result = agent.handle(turn)

        self._record(turn, result)
        logger.info(f"[WORKFLOW] 6. Responded with type={result.type} score={result.score:.4f}")
        logger.info("--- Search Request Finished ---")
        return result

    def _record(self, turn: Turn, result: SearchResult) -> None:
        confidence = result.confidence or ("high" if result.score >= Config.CONFIDENCE_THRESHOLD else "low")
        message = ChatMessage(
            query=turn.query,
            refined_query=turn.refined_query,
            response=result.answer,
            confidence=confidence,
            score=result.score,
            language=turn.language,
            matched_question=turn.matched_question,
        )
        self.sessions.add_message(turn.session, message)

    def priority_questions(self, tenant_id: str, limit: int = 3):
        return self.store.priority_questions(tenant_id, limit)
