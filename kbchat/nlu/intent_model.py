"""Multi-stage query triage.

Stages run in a fixed order and the first one that fires decides the route:
greeting, restricted topic, contact request, short-query label. Anything else
goes on to retrieval.
"""
from typing import List, Optional

from .llm_router import classify_with_fallback, parse_choice, parse_yes_no
from .rules import (CONTACT_TYPES, SHORT_QUERY_LABELS, contact_type_from_keywords,
                    is_greeting, restricted_topic, short_query_label)
from ..app.prompt_builder import PromptBuilder
from ..schemas.io_models import QAPair
from ..utils.logger import get_logger

logger = get_logger()

SHORT_LABEL_CONTACT_TYPES = {"contact_email": "email", "contact_phone": "phone"}


class QueryIntent:
    def __init__(self, route: str, contact_type: Optional[str] = None, topic: Optional[str] = None,
                 label: Optional[str] = None):
        self.route = route  # greeting | restricted | contact | retrieval
        self.contact_type = contact_type
        self.topic = topic
        self.label = label

    def __repr__(self):
        return f"QueryIntent(route={self.route!r}, contact_type={self.contact_type!r}, topic={self.topic!r})"


class IntentClassifier:
    def __init__(self, gateway, prompts: Optional[PromptBuilder] = None, short_query_tokens: int = 4):
        self.gateway = gateway
        self.prompts = prompts or PromptBuilder()
        self.short_query_tokens = short_query_tokens

    def is_greeting(self, query: str) -> bool:
        # Known greetings never depend on the model's verdict
        if is_greeting(query):
            return True
        return classify_with_fallback(
            self.gateway, self.prompts.greeting_check(query), parse_yes_no,
            lambda: is_greeting(query), label="greeting",
        )

    def restricted_topic(self, query: str) -> Optional[str]:
        return restricted_topic(query)

    def contact_type(self, query: str) -> str:
        return classify_with_fallback(
            self.gateway, self.prompts.contact_intent(query), parse_choice(CONTACT_TYPES),
            lambda: contact_type_from_keywords(query), label="contact",
        )

    def short_query_label(self, query: str) -> str:
        return classify_with_fallback(
            self.gateway, self.prompts.short_query_label(query), parse_choice(SHORT_QUERY_LABELS),
            lambda: short_query_label(query), label="short_query",
        )

    def is_short(self, query: str) -> bool:
        return len(query.split()) <= self.short_query_tokens

    def triage(self, query: str) -> QueryIntent:
        """Run the stages in order; the first one that fires wins."""
        if self.is_greeting(query):
            return QueryIntent("greeting")

        topic = self.restricted_topic(query)
        if topic:
            return QueryIntent("restricted", topic=topic)

        contact = self.contact_type(query)
        if contact != "none":
            return QueryIntent("contact", contact_type=contact)

        if self.is_short(query):
            label = self.short_query_label(query)
            logger.info(f"[INTENT] Short query label: {label}")
            if label in SHORT_LABEL_CONTACT_TYPES:
                return QueryIntent("contact", contact_type=SHORT_LABEL_CONTACT_TYPES[label], label=label)
            return QueryIntent("retrieval", label=label)

        return QueryIntent("retrieval")

    @staticmethod
    def find_direct_match(query: str, pairs: List[QAPair]) -> Optional[QAPair]:
        """First pair whose question equals or contains the query, ignoring case."""
        q = query.strip().lower()
        if not q:
            return None
        for pair in pairs:
            question = pair.question.strip().lower()
            if question == q or q in question:
                return pair
        return None
