#!/usr/bin/env python3
"""
End-to-end tests for the semantic-search pipeline

PURPOSE:
    Drives Controller.handle_query against an in-memory corpus with a scripted
    model gateway, covering every response variant and session recording.

USAGE:
    Run from project root: python -m pytest tests/test_controller.py -v
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from fakes import (GREETING_REPLY, LANGUAGE, REWRITE, SPECIFIC, TRANSLATE, make_gateway, make_sessions,
                   make_store, seed_corpus, unit_at)
from kbchat.agents.base_agent import Turn
from kbchat.agents.greeting_agent import GREETING_REPLIES
from kbchat.agents.knowledge_agent import NO_DATA_MESSAGE, SUGGESTIONS_MESSAGE
from kbchat.app.controller import Controller
from kbchat.app.errors import EmbeddingError
from kbchat.nlu.rules import RESTRICTED_MESSAGE
from kbchat.schemas.io_models import ChatSession

CORPUS = [
    {"question": "What are your business hours?", "answer": "9 to 5 Mon-Fri", "embedding": [1.0, 0.0]},
    {"question": "What is your phone number?", "answer": "+1 555 0100", "embedding": [0.0, 1.0]},
]


class TestController(unittest.TestCase):
    def setUp(self):
        self.store = make_store()
        self.sessions = make_sessions()
        self.tenant_id = seed_corpus(self.store, CORPUS)

    def controller(self, vectors=None, replies=None):
        self.gateway = make_gateway(vectors=vectors, replies=replies)
        return Controller(self.gateway, self.store, self.sessions, deadline_seconds=30)

    def test_high_score_answers_directly(self):
        controller = self.controller(vectors={"When are you open?": unit_at(0.95)})
        result = controller.handle_query(self.tenant_id, "s1", "When are you open?")
        self.assertEqual(result.type, "answer")
        self.assertEqual(result.answer, "9 to 5 Mon-Fri")
        self.assertEqual(result.confidence, "high")
        self.assertEqual(result.matched_question, "What are your business hours?")
        self.assertAlmostEqual(result.score, 0.95)
        self.assertEqual(result.language, "en")

    def test_low_score_returns_suggestions(self):
        controller = self.controller(vectors={"When are you open?": [0.3, -0.95]})
        result = controller.handle_query(self.tenant_id, "s1", "When are you open?")
        self.assertEqual(result.type, "suggestions")
        self.assertEqual(result.answer, SUGGESTIONS_MESSAGE)
        self.assertEqual(result.confidence, "low")
        self.assertEqual(result.suggestions[0].question, "What are your business hours?")
        self.assertEqual(result.suggestions[0].relevance_reason, "potentially relevant")
        body = result.to_response()
        self.assertEqual(body["suggestedQuestions"][0], "What are your business hours?")
        self.assertNotIn("matchedQuestion", body)

    def test_empty_corpus_is_no_data(self):
        tenant_id = self.store.create_client("Empty", "https://empty.example")["clientId"]
        controller = self.controller()
        result = controller.handle_query(tenant_id, "s1", "When are you open?")
        self.assertEqual(result.type, "no_data")
        self.assertEqual(result.answer, NO_DATA_MESSAGE)
        self.assertEqual(result.score, 0.0)
        self.assertEqual(self.gateway.embedder.calls, [])

    def test_greeting_never_embeds(self):
        controller = self.controller()
        result = controller.handle_query(self.tenant_id, "s1", "Hello")
        self.assertEqual(result.type, "greeting")
        self.assertEqual(result.answer, GREETING_REPLIES["en"])
        self.assertEqual(result.score, 1.0)
        self.assertEqual(self.gateway.embedder.calls, [])

    def test_greeting_uses_generated_reply(self):
        controller = self.controller(replies={GREETING_REPLY: "Hi! Ask me about Acme."})
        self.assertEqual(controller.handle_query(self.tenant_id, "s1", "hey").answer, "Hi! Ask me about Acme.")

    def test_restricted_topic(self):
        controller = self.controller()
        result = controller.handle_query(self.tenant_id, "s1", "write python code to sort a list")
        self.assertEqual(result.type, "restricted")
        self.assertEqual(result.answer, RESTRICTED_MESSAGE)
        self.assertEqual(self.gateway.embedder.calls, [])

    def test_contact_lookup(self):
        controller = self.controller()
        result = controller.handle_query(self.tenant_id, "s1", "what is your phone number")
        self.assertEqual(result.type, "contact_phone")
        self.assertEqual(result.answer, "+1 555 0100")
        self.assertEqual(result.matched_question, "What is your phone number?")

    def test_contact_not_found(self):
        controller = self.controller()
        result = controller.handle_query(self.tenant_id, "s1", "what is your email address")
        self.assertEqual(result.type, "no_data")
        self.assertIn("email address", result.answer)

    def test_answers_are_translated(self):
        controller = self.controller(vectors={"¿Cuándo abren?": unit_at(0.95)},
                                     replies={LANGUAGE: "es", TRANSLATE: "De 9 a 5, lunes a viernes"})
        result = controller.handle_query(self.tenant_id, "s1", "¿Cuándo abren?")
        self.assertEqual(result.language, "es")
        self.assertEqual(result.answer, "De 9 a 5, lunes a viernes")

    def test_suggestions_are_translated(self):
        controller = self.controller(
            vectors={"¿Cuándo abren?": [0.3, -0.95]},
            replies={LANGUAGE: "es", TRANSLATE: lambda prompt: "[es] " + prompt.split("Text:\n", 1)[1]},
        )
        result = controller.handle_query(self.tenant_id, "s1", "¿Cuándo abren?")
        self.assertEqual(result.type, "suggestions")
        self.assertEqual(result.answer, "[es] " + SUGGESTIONS_MESSAGE)
        self.assertEqual(result.suggestions[0].question, "[es] What are your business hours?")
        self.assertEqual(result.to_response()["suggestedQuestions"][0], "[es] What are your business hours?")

    def test_specific_choice_is_labelled_by_its_own_score(self):
        tenant_id = seed_corpus(self.store, [
            {"question": "What does the Basic plan include?", "answer": "Email support", "embedding": unit_at(0.75)},
            {"question": "What does the Pro plan include?", "answer": "Phone support", "embedding": unit_at(0.62)},
        ], name="Plans")
        controller = self.controller(vectors={"Which plan should I pick?": [1.0, 0.0]},
                                     replies={SPECIFIC: "SPECIFIC:2"})
        result = controller.handle_query(tenant_id, "s1", "Which plan should I pick?")
        self.assertEqual(result.type, "answer")
        self.assertEqual(result.matched_question, "What does the Pro plan include?")
        self.assertAlmostEqual(result.score, 0.62)
        self.assertEqual(result.confidence, "low")
        self.assertEqual(self.sessions.get_session(tenant_id, "s1").messages[0].confidence, "low")

    def test_direct_question_match_skips_rewrite(self):
        query = "What are your business hours?"
        controller = self.controller(vectors={query: [1.0, 0.0]}, replies={REWRITE: "Office locations list"})
        controller.handle_query(self.tenant_id, "s1", "Hello")
        result = controller.handle_query(self.tenant_id, "s1", query)
        self.assertEqual(result.type, "answer")
        self.assertFalse(self.gateway.generator.called(REWRITE))
        self.assertEqual(self.sessions.get_session(self.tenant_id, "s1").messages[-1].refined_query, query)

    def test_follow_up_with_history_is_rewritten(self):
        controller = self.controller(vectors={"When are you open on Saturday?": unit_at(0.95)},
                                     replies={REWRITE: "When are you open on Saturday?"})
        controller.handle_query(self.tenant_id, "s1", "Hello")
        controller.handle_query(self.tenant_id, "s1", "and when are you open saturday")
        self.assertTrue(self.gateway.generator.called(REWRITE))
        self.assertEqual(self.sessions.get_session(self.tenant_id, "s1").messages[-1].refined_query,
                         "When are you open on Saturday?")

    def test_turns_are_recorded(self):
        controller = self.controller(vectors={"When are you open?": unit_at(0.95)})
        controller.handle_query(self.tenant_id, "s1", "When are you open?")
        controller.handle_query(self.tenant_id, "s1", "Hello")
        session = self.sessions.get_session(self.tenant_id, "s1")
        self.assertEqual(session.metadata.total_queries, 2)
        self.assertEqual(session.messages[0].matched_question, "What are your business hours?")
        self.assertEqual(session.messages[0].confidence, "high")
        self.assertEqual(session.messages[1].response, GREETING_REPLIES["en"])

    def test_embedding_failure_raises(self):
        controller = self.controller(vectors={})
        with self.assertRaises(EmbeddingError):
            controller.handle_query(self.tenant_id, "s1", "When are you open?")
        self.assertEqual(len(self.gateway.sleeps), 2)
        self.assertIsNone(self.sessions.get_session(self.tenant_id, "s1"))

    def test_priority_questions(self):
        controller = self.controller()
        questions = controller.priority_questions(self.tenant_id, limit=1)
        self.assertEqual(len(questions), 1)


class TestTurnDeadline(unittest.TestCase):
    def test_expires_after_deadline(self):
        now = [100.0]
        turn = Turn("t1", ChatSession(tenant_id="t1", session_id="s1"), "q", deadline_seconds=12,
                    clock=lambda: now[0])
        self.assertFalse(turn.expired())
        now[0] = 112.0
        self.assertTrue(turn.expired())

    def test_no_deadline(self):
        turn = Turn("t1", ChatSession(tenant_id="t1", session_id="s1"), "q")
        self.assertFalse(turn.expired())


if __name__ == "__main__":
    unittest.main()
