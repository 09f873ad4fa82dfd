#!/usr/bin/env python3
"""
Retrieval module for the knowledge-base chatbot.

Brute-force cosine ranking of a query embedding against a tenant's Q&A
corpus, plus the confidence policy that decides between answering and
suggesting.
"""

from typing import List, Optional, Sequence

from .config import Config
from ..schemas.io_models import MatchResult, QAPair, Suggestion
from ..utils.logger import get_logger
from ..utils.security import preview
from ..utils.vector import cosine_similarity

logger = get_logger("retrieval")


class RetrievalDecision:
    """Outcome of ranking one query against a corpus."""

    def __init__(self, matches: List[MatchResult], confidence: str, answerable: bool):
        self.matches = matches
        self.confidence = confidence
        self.answerable = answerable

    @property
    def best(self) -> Optional[MatchResult]:
        return self.matches[0] if self.matches else None

    @property
    def best_score(self) -> float:
        return self.best.score if self.best else 0.0


class RetrievalEngine:
    """Ranks Q&A pairs and applies the confidence policy.

    Policy: a best score at or above ``threshold`` is ``high`` confidence and
    answered directly; anything below is ``low`` and becomes suggestions.
    """

    def __init__(self, threshold: Optional[float] = None, top_k: Optional[int] = None):
        self.threshold = Config.CONFIDENCE_THRESHOLD if threshold is None else threshold
        self.top_k = top_k or Config.TOP_K

    def rank(self, query_embedding: Sequence[float], pairs: List[QAPair]) -> List[MatchResult]:
        """
        Score every pair that carries an embedding.

        Args:
            query_embedding: Embedding of the (refined) query
            pairs: Corpus in stable corpus order

        Returns:
            All matches sorted by descending score; equal scores keep corpus order
        """
        comparisons = [
            MatchResult(
                question=pair.question,
                answer=pair.answer,
                category=pair.category,
                index=i,
                score=cosine_similarity(query_embedding, pair.embedding),
            )
            for i, pair in enumerate(pairs)
            if pair.embedding
        ]
        # list.sort is stable, so ties stay in corpus order
        comparisons.sort(key=lambda m: m.score, reverse=True)
        logger.info(f"Performed {len(comparisons)} vector comparisons")
        return comparisons

    def evaluate_confidence(self, score: float) -> str:
        return "high" if score >= self.threshold else "low"

    def decide(self, query_embedding: Sequence[float], pairs: List[QAPair]) -> RetrievalDecision:
        """Rank, keep the top candidates and classify the best score."""
        top = self.rank(query_embedding, pairs)[:self.top_k]
        for i, match in enumerate(top, 1):
            logger.info(f"  {i}. Score: {match.score:.4f} | Question: {preview(match.question)}")
        best_score = top[0].score if top else 0.0
        confidence = self.evaluate_confidence(best_score)
        return RetrievalDecision(top, confidence, answerable=bool(top) and confidence == "high")

    @staticmethod
    def relevance_reason(score: float) -> str:
        if score >= Config.CLOSELY_RELATED_SCORE:
            return "closely related"
        if score >= Config.SOMEWHAT_RELATED_SCORE:
            return "somewhat related"
        return "potentially relevant"

    def build_suggestions(self, matches: List[MatchResult]) -> List[Suggestion]:
        return [
            Suggestion(
                id=i,
                question=m.question,
                score=round(m.score, 4),
                relevance_reason=self.relevance_reason(m.score),
            )
            for i, m in enumerate(matches[:self.top_k], 1)
        ]
