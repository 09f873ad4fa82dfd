"""Contact Agent: looks up stored contact details by question pattern.

No embeddings are involved; the first completed pair whose question matches
the contact type's patterns wins.
"""
from typing import List, Optional

from .base_agent import BaseAgent, Turn
from ..nlu.rules import question_matches_contact
from ..schemas.io_models import QAPair, SearchResult

CONTACT_RESULT_TYPES = {"email": "contact_email", "phone": "contact_phone", "general": "general"}

NOT_FOUND_MESSAGES = {
    "email": "I'm sorry, I couldn't find an email address in our knowledge base.",
    "phone": "I'm sorry, I couldn't find a phone number in our knowledge base.",
    "general": "I'm sorry, I couldn't find contact details in our knowledge base.",
}


class ContactAgent(BaseAgent):
    name = "contact"

    def __init__(self, gateway, store):
        self.gateway = gateway
        self.store = store

    @staticmethod
    def find_contact(pairs: List[QAPair], contact_type: str) -> Optional[QAPair]:
        for pair in pairs:
            if question_matches_contact(pair.question, contact_type):
                return pair
        return None

    def handle(self, turn: Turn, contact_type: str = "general") -> SearchResult:
        pairs = self.store.completed_pairs(turn.tenant_id)
        match = self.find_contact(pairs, contact_type)
        if match is None:
            message = NOT_FOUND_MESSAGES.get(contact_type, NOT_FOUND_MESSAGES["general"])
            return self._result("no_data", self.gateway.translate(message, turn.language),
                                score=0.0, language=turn.language)

        turn.matched_question = match.question
        return self._result(
            CONTACT_RESULT_TYPES.get(contact_type, "general"),
            self.gateway.translate(match.answer, turn.language),
            score=1.0, confidence="high", language=turn.language, matched_question=match.question,
        )
