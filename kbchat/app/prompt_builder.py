#!/usr/bin/env python3
"""
Prompt builder module for the knowledge-base chatbot.

Every prompt sent to the generation model is built here so the wording of
the classification, rewriting and answer-quality steps stays in one place.
"""

from typing import Dict, List

from .config import Config


class PromptBuilder:
    """Builds prompts for the LLM sub-tasks of the retrieval pipeline."""

    def __init__(self, languages: Dict[str, str] = None):
        """Initialize the prompt builder."""
        self.languages = languages or Config.SUPPORTED_LANGUAGES
        self.assistant_role = (
            "You are a knowledge-base assistant for a business website. "
            "You only answer from the business's stored questions and answers."
        )

    def language_name(self, code: str) -> str:
        return self.languages.get(code, "English")

    # ---- triage -----------------------------------------------------------

    def greeting_check(self, query: str) -> str:
        return f"""Is the following message only a greeting or pleasantry (for example "hi", "hello", "good morning", "namaste"), with no actual question?

Message: "{query}"

Answer with exactly one word: yes or no."""

    def greeting_reply(self, query: str, language: str) -> str:
        return f"""{self.assistant_role}
The user greeted you with: "{query}"

Write a short, warm greeting back (one or two sentences) in {self.language_name(language)} and invite them to ask a question about the business.
Do not use markdown, emojis or lists. Reply with the greeting only."""

    def contact_intent(self, query: str) -> str:
        return f"""Classify what contact information the user is asking for.

Message: "{query}"

Reply with exactly one word:
- email   (they want an email address)
- phone   (they want a phone or mobile number)
- general (they want contact details in general or how to reach the business)
- none    (they are not asking for contact details)"""

    def short_query_label(self, query: str) -> str:
        return f"""Label this very short user message sent to a business chatbot.

Message: "{query}"

Reply with exactly one label from this list and nothing else:
contact_email, contact_phone, website, pricing, appointment, other"""

    def detect_language(self, text: str) -> str:
        codes = ", ".join(self.languages.keys())
        return f"""Detect the language of the following text. Romanised Hindi (Hinglish) counts as hi.

Text: "{text}"

Reply with only the ISO-639-1 code, one of: {codes}. If it is none of these, reply en."""

    def translate(self, text: str, language: str) -> str:
        return f"""Translate the following text into {self.language_name(language)}.
Keep names, numbers, email addresses, phone numbers and URLs unchanged.
Reply with the translation only.

Text:
{text}"""

    # ---- conversation context ---------------------------------------------

    def context_aware_query(self, query: str, history: List[Dict[str, str]]) -> str:
        turns = "\n".join(
            f"User: {turn['query']}\nAssistant: {turn['response']}" for turn in history
        )
        return f"""Rewrite the user's latest message so it can be understood without the conversation.
If it is a follow-up (uses "it", "that", "they", "what about...", etc.), resolve the reference using the conversation.
If it is already self-contained, return it unchanged. Keep the user's own key words.

Conversation so far:
{turns}

Latest message: "{query}"

Reply with the rewritten question only."""

    # ---- answer quality ---------------------------------------------------

    def specific_or_general(self, query: str, questions: List[str]) -> str:
        numbered = "\n".join(f"{i}. {q}" for i, q in enumerate(questions, 1))
        return f"""A user asked: "{query}"

These stored questions all match it closely:
{numbered}

Does the user want ONE specific item from this list, or a GENERAL overview that combines all of them?
Reply with exactly one of:
SPECIFIC:<number of the matching question>
GENERAL"""

    def synthesize(self, query: str, answers: List[str]) -> str:
        sources = "\n\n".join(f"Source {i}:\n{a}" for i, a in enumerate(answers, 1))
        return f"""{self.assistant_role}
Combine the sources below into one clear, coherent answer to the question "{query}".

Rules:
- Use only information contained in the sources
- Remove duplicated information
- Write plain sentences: no asterisks, bullet points, numbered lists or headers
- Keep it concise

{sources}

Answer:"""

    def direct_answer(self, query: str, answer: str) -> str:
        return f"""Question: "{query}"

Stored answer:
{answer}

Extract the part of the stored answer that directly answers the question. Do not add anything new.
If the whole answer is needed, return it unchanged. Reply with plain text only."""

    def completeness(self, query: str, answer: str) -> str:
        return f"""Rate how completely the answer addresses the question.

Question: "{query}"
Answer: "{answer}"

Rubric:
1.0 = fully answers everything asked
0.7 = answers the main point but misses essential details
0.4 = only partially relevant
0.0 = does not answer

Reply with only a number between 0.0 and 1.0."""

    def enrich(self, query: str, answer: str, context: List[str]) -> str:
        extra = "\n".join(f"- {c}" for c in context) if context else "- (none)"
        return f"""{self.assistant_role}
The answer below is missing essential information for the question "{query}".

Current answer:
{answer}

Related stored information:
{extra}

Rewrite the answer so it keeps everything it already says and adds only the missing essential information from the related stored information.
Write plain sentences without markdown. Reply with the improved answer only."""

    def follow_ups(self, query: str, answer: str, count: int = 3) -> str:
        return f"""A user asked "{query}" and received this answer:
{answer}

Suggest exactly {count} short follow-up questions the user might ask next about the same business.
Put each question on its own line, with no extra text."""
