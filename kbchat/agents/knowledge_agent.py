"""Knowledge Agent: semantic retrieval over the tenant's Q&A corpus.

Builds the context-aware query, embeds it, ranks the corpus and either
refines an answer or falls back to suggestions.
"""
from .base_agent import BaseAgent, Turn
from ..app.errors import EmbeddingError
from ..app.postprocess import Postprocessor
from ..app.prompt_builder import PromptBuilder
from ..app.retrieval import RetrievalEngine
from ..nlu.intent_model import IntentClassifier
from ..schemas.io_models import SearchResult
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger()

NO_DATA_MESSAGE = ("I'm sorry, I couldn't find a relevant answer in our knowledge base. "
                   "Please make sure some Q&A documents have been uploaded and processed.")
SUGGESTIONS_MESSAGE = ("I couldn't find a direct answer in our knowledge base. "
                       "Perhaps one of these related questions will help?")


class KnowledgeAgent(BaseAgent):
    name = "knowledge"

    def __init__(self, gateway, store, sessions, retrieval: RetrievalEngine = None,
                 postprocessor: Postprocessor = None, prompts: PromptBuilder = None):
        self.gateway = gateway
        self.store = store
        self.sessions = sessions
        self.prompts = prompts or PromptBuilder()
        self.retrieval = retrieval or RetrievalEngine()
        self.postprocessor = postprocessor or Postprocessor(gateway, self.prompts)

    def handle(self, turn: Turn) -> SearchResult:
        pairs = self.store.completed_pairs(turn.tenant_id, with_embeddings=True)
        logger.info(f"[WORKFLOW] 3. Found {len(pairs)} Q&A pairs with embeddings for client {turn.tenant_id}")
        if not pairs:
            return self._result("no_data", self.gateway.translate(NO_DATA_MESSAGE, turn.language),
                                score=0.0, language=turn.language)

        direct = IntentClassifier.find_direct_match(turn.query, pairs)
        if direct is not None:
            logger.info(f"[WORKFLOW] 3a. Direct question match '{preview(direct.question)}', skipping rewrite")
            turn.refined_query = turn.query
        elif not turn.expired():
            turn.refined_query = self.sessions.build_context_aware_query(
                turn.query, turn.session, self.gateway, self.prompts)

        query_embedding = self.gateway.embed(turn.refined_query)
        if query_embedding is None:
            raise EmbeddingError(f"Failed to generate query embedding for '{preview(turn.refined_query)}'")
        logger.info("[WORKFLOW] 4. Generated query embedding")

        decision = self.retrieval.decide(query_embedding, pairs)
        if decision.answerable:
            logger.info(f"[WORKFLOW] 5. Best score {decision.best_score:.4f} meets threshold, answering")
            return self._answer(turn, decision)

        logger.info(f"[WORKFLOW] 5. Best score {decision.best_score:.4f} below threshold, suggesting")
        return self._suggest(turn, decision)

    def _answer(self, turn: Turn, decision) -> SearchResult:
        outcome = self.postprocessor.refine(turn.refined_query, decision.matches, turn.expired)
        turn.matched_question = outcome.match.question

        answer = self.gateway.translate(outcome.answer, turn.language)
        follow_ups = outcome.follow_up_questions
        if follow_ups and not turn.expired():
            follow_ups = [self.gateway.translate(q, turn.language) for q in follow_ups]

        return self._result(
            outcome.response_type,
            answer,
            score=outcome.match.score,
            confidence=self.retrieval.evaluate_confidence(outcome.match.score),
            language=turn.language,
            matched_question=outcome.match.question,
            completeness_score=round(outcome.completeness_score, 2),
            follow_up_questions=follow_ups or None,
            source_count=outcome.source_count,
        )

    def _suggest(self, turn: Turn, decision) -> SearchResult:
        suggestions = self.retrieval.build_suggestions(decision.matches)
        for s in suggestions:
            s.question = self.gateway.translate(s.question, turn.language)
        return self._result(
            "suggestions",
            self.gateway.translate(SUGGESTIONS_MESSAGE, turn.language),
            score=decision.best_score,
            confidence="low",
            language=turn.language,
            suggestions=suggestions,
        )
