#!/usr/bin/env python3
"""
Postprocessing module for the knowledge-base chatbot.

Turns the ranked matches of an answerable query into the final answer:
specific-vs-general disambiguation, synthesis, cleanup, completeness scoring
with enrichment, and follow-up questions. Every model-backed step is
best-effort and falls back to the value computed before it.
"""

import re
from typing import Callable, List, Optional, Tuple

from .config import Config
from .prompt_builder import PromptBuilder
from ..nlu.llm_router import classify_with_fallback, parse_score
from ..nlu.rules import ANSWER_LABEL_RE, INLINE_ANSWER_LABEL_RE, QUESTION_LABEL_RE
from ..schemas.io_models import MatchResult
from ..utils.logger import get_logger

logger = get_logger("postprocess")

SPECIFIC_RE = re.compile(r"SPECIFIC\s*[:\-]?\s*(\d+)", re.IGNORECASE)
GENERAL_RE = re.compile(r"\bGENERAL\b", re.IGNORECASE)
FOLLOW_UP_PREFIX_RE = re.compile(r"^\s*(?:\d+\s*[.):-]|[-*•]|Q\d*\s*[:.])\s*", re.IGNORECASE)


class AnswerOutcome:
    """Final answer plus the bookkeeping the response and session need."""

    def __init__(self, answer: str, match: MatchResult, response_type: str = "answer",
                 source_count: Optional[int] = None):
        self.answer = answer
        self.match = match
        self.response_type = response_type
        self.source_count = source_count
        self.completeness_score = 1.0
        self.follow_up_questions: List[str] = []


class Postprocessor:
    """Postprocesses matched answers for the knowledge-base chatbot."""

    def __init__(self, gateway, prompts: Optional[PromptBuilder] = None,
                 disambiguation_floor: Optional[float] = None,
                 completeness_threshold: Optional[float] = None,
                 accept_if_longer: Optional[bool] = None):
        self.gateway = gateway
        self.prompts = prompts or PromptBuilder()
        self.disambiguation_floor = (Config.DISAMBIGUATION_FLOOR if disambiguation_floor is None
                                     else disambiguation_floor)
        self.completeness_threshold = (Config.COMPLETENESS_THRESHOLD if completeness_threshold is None
                                       else completeness_threshold)
        self.accept_if_longer = Config.ENRICH_ACCEPT_IF_LONGER if accept_if_longer is None else accept_if_longer

    # ---- text cleanup -----------------------------------------------------

    @staticmethod
    def strip_markup(text: str) -> str:
        """Remove markdown emphasis, headers, bullets and code ticks."""
        if not text:
            return ""
        text = re.sub(r"^\s{0,3}#{1,6}\s*", "", text, flags=re.MULTILINE)
        text = re.sub(r"^\s*(?:[-*•+]|\d+[.)])\s+", "", text, flags=re.MULTILINE)
        text = re.sub(r"__(.+?)__", r"\1", text)
        text = re.sub(r"\*+|`+", "", text)
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n{2,}", "\n", text)
        return text.strip()

    @staticmethod
    def clean_answer(text: str) -> str:
        """Drop a leading "Q:" / "Question:" artifact, keeping only the answer part."""
        text = (text or "").strip()
        if QUESTION_LABEL_RE.match(text):
            parts = ANSWER_LABEL_RE.split(text, maxsplit=1)
            if len(parts) != 2:
                parts = INLINE_ANSWER_LABEL_RE.split(text, maxsplit=1)
            text = parts[1] if len(parts) == 2 else QUESTION_LABEL_RE.sub("", text, count=1)
        else:
            text = re.sub(r"^\s*(?:A|Answer)\s*:\s*", "", text, flags=re.IGNORECASE)
        return text.strip()

    # ---- steps ------------------------------------------------------------

    def qualifying(self, matches: List[MatchResult]) -> List[MatchResult]:
        return [m for m in matches if m.score >= self.disambiguation_floor]

    def disambiguate(self, query: str, candidates: List[MatchResult]) -> Optional[Tuple[str, Optional[int]]]:
        """
        Ask whether the user wants one specific candidate or an overview.

        Returns:
            ("specific", index into candidates), ("general", None), or None when
            there are fewer than two candidates or the reply cannot be parsed
        """
        if len(candidates) < 2:
            return None

        def _parse(raw: str):
            m = SPECIFIC_RE.search(raw)
            if m:
                index = int(m.group(1)) - 1
                return ("specific", index) if 0 <= index < len(candidates) else None
            if GENERAL_RE.search(raw):
                return ("general", None)
            return None

        return classify_with_fallback(
            self.gateway, self.prompts.specific_or_general(query, [c.question for c in candidates]),
            _parse, lambda: None, label="specific_or_general",
        )

    def synthesize(self, query: str, candidates: List[MatchResult]) -> Optional[str]:
        answers = [self.clean_answer(c.answer) for c in candidates]
        try:
            combined = self.gateway.generate_text(self.prompts.synthesize(query, answers))
        except Exception as e:
            logger.warning(f"Synthesis failed, falling back to the top answer: {e}")
            return None
        combined = self.strip_markup(combined)
        return combined or None

    def format_single(self, query: str, answer: str, extract: bool = True) -> str:
        cleaned = self.strip_markup(self.clean_answer(answer))
        if not extract or not Config.DIRECT_ANSWER_EXTRACTION:
            return cleaned
        try:
            direct = self.strip_markup(self.gateway.generate_text(self.prompts.direct_answer(query, cleaned)))
        except Exception as e:
            logger.info(f"Direct answer extraction skipped: {e}")
            return cleaned
        # Only accept extractions that actually shorten the answer
        if direct and len(direct) < len(cleaned):
            return direct
        return cleaned

    def score_completeness(self, query: str, answer: str) -> Optional[float]:
        return classify_with_fallback(
            self.gateway, self.prompts.completeness(query, answer), parse_score,
            lambda: None, label="completeness",
        )

    def enrich(self, query: str, answer: str, context: List[str]) -> str:
        try:
            enriched = self.strip_markup(self.gateway.generate_text(self.prompts.enrich(query, answer, context)))
        except Exception as e:
            logger.warning(f"Enrichment failed, keeping answer: {e}")
            return answer
        if not enriched:
            return answer
        # Length is a weak proxy for "added information"
        if self.accept_if_longer and len(enriched) <= len(answer):
            return answer
        return enriched

    def follow_ups(self, query: str, answer: str, count: Optional[int] = None) -> List[str]:
        count = count or Config.FOLLOW_UP_COUNT
        try:
            raw = self.gateway.generate_text(self.prompts.follow_ups(query, answer, count))
        except Exception as e:
            logger.info(f"Follow-up generation failed: {e}")
            return []
        questions = []
        for line in raw.splitlines():
            listed = FOLLOW_UP_PREFIX_RE.match(line) is not None
            line = self.strip_markup(FOLLOW_UP_PREFIX_RE.sub("", line)).strip()
            # Preambles like "Here are three questions:" are neither listed nor questions
            if line and (listed or line.endswith("?")):
                questions.append(line)
        return questions[:count]

    # ---- pipeline ---------------------------------------------------------

    def refine(self, query: str, matches: List[MatchResult],
               expired: Callable[[], bool] = lambda: False) -> AnswerOutcome:
        """
        Build the final answer from the ranked candidates of an answerable query.

        Args:
            query: Query the candidates were matched against
            matches: Top candidates, best first (at least one)
            expired: returns True once the request deadline has passed;
                remaining best-effort steps are skipped from then on

        Returns:
            AnswerOutcome with answer text, selected match and quality signals
        """
        top = matches[0]
        candidates = self.qualifying(matches)
        outcome = None

        decision = None if expired() else self.disambiguate(query, candidates)
        if decision and decision[0] == "specific":
            chosen = candidates[decision[1]]
            logger.info(f"[POSTPROCESS] Specific intent -> '{chosen.question}'")
            outcome = AnswerOutcome(self.format_single(query, chosen.answer, extract=not expired()), chosen)
        elif decision and decision[0] == "general":
            combined = self.synthesize(query, candidates)
            if combined:
                logger.info(f"[POSTPROCESS] General intent -> synthesized {len(candidates)} answers")
                outcome = AnswerOutcome(combined, top, "synthesized_answer", len(candidates))

        if outcome is None:
            outcome = AnswerOutcome(self.format_single(query, top.answer, extract=not expired()), top)

        if not expired():
            score = self.score_completeness(query, outcome.answer)
            if score is not None:
                outcome.completeness_score = score
                if score < self.completeness_threshold and not expired():
                    context = [self.clean_answer(m.answer) for m in matches[1:]]
                    outcome.answer = self.enrich(query, outcome.answer, context)

        if not expired():
            outcome.follow_up_questions = self.follow_ups(query, outcome.answer)

        return outcome
