#!/usr/bin/env python3
"""
HTTP tests for the FastAPI endpoints

TEST COVERAGE:
    - Request validation (400) and generic pipeline errors (500)
    - Priority questions and session endpoints
    - Client registration, deletion and background Q&A ingestion

USAGE:
    Run from project root: python -m pytest tests/test_api.py -v
"""
import os
import sys
import unittest

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from fakes import make_gateway, make_sessions, make_store, seed_corpus, unit_at
from kbchat.app.controller import Controller
from kbchat.app.ingestion import IngestionService
from kbchat.app.main import SEARCH_ERROR_MESSAGE, Services, app, get_services

CORPUS = [{"question": "What are your business hours?", "answer": "9 to 5 Mon-Fri",
           "confidence": 0.9, "embedding": [1.0, 0.0]}]


class TestAPI(unittest.TestCase):
    def setUp(self):
        self.store = make_store()
        self.sessions = make_sessions()
        self.tenant_id = seed_corpus(self.store, CORPUS)
        self.gateway = make_gateway(vectors={
            "When are you open?": unit_at(0.95),
            "Do you ship abroad?": [0.0, 1.0],
        })
        services = Services(Controller(self.gateway, self.store, self.sessions), self.store, self.sessions,
                            IngestionService(self.gateway, self.store, workers=2))
        app.dependency_overrides[get_services] = lambda: services
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def search(self, **body):
        return self.client.post("/api/chat/semantic-search", json=body)

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})

    def test_missing_fields_are_rejected(self):
        response = self.search(query="  ", tenantId=self.tenant_id, sessionId="s1")
        self.assertEqual(response.status_code, 400)
        self.assertIn("required", response.json()["message"])
        self.assertEqual(self.search(query="hours", sessionId="s1").status_code, 400)

    def test_client_id_is_accepted_as_tenant(self):
        response = self.search(query="When are you open?", clientId=self.tenant_id, sessionId="s1")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["type"], "answer")
        self.assertEqual(body["matchedQuestion"], "What are your business hours?")
        self.assertEqual(body["confidence"], "high")

    def test_pipeline_errors_are_generic(self):
        response = self.search(query="Something unembeddable here", tenantId=self.tenant_id, sessionId="s1")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": SEARCH_ERROR_MESSAGE})

    def test_priority_questions(self):
        response = self.client.get(f"/api/chat/priority-questions/{self.tenant_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["priorityQuestions"],
                         [{"question": "What are your business hours?", "confidence": 0.9}])
        self.assertEqual(self.client.get("/api/chat/priority-questions/unknown").status_code, 404)

    def test_priority_limit_defaults(self):
        for limit in ("0", "abc", "-2"):
            response = self.client.get(f"/api/chat/priority-questions/{self.tenant_id}", params={"limit": limit})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(len(response.json()["priorityQuestions"]), 1)

    def test_delete_client(self):
        response = self.client.delete(f"/api/clients/{self.tenant_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/api/clients/{self.tenant_id}").status_code, 404)
        self.assertEqual(self.store.completed_pairs(self.tenant_id), [])
        self.assertEqual(self.client.delete(f"/api/clients/{self.tenant_id}").status_code, 404)

    def test_session_lifecycle(self):
        self.search(query="Hello", tenantId=self.tenant_id, sessionId="s1")
        response = self.client.get(f"/api/chat/sessions/{self.tenant_id}/s1")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["metadata"]["totalQueries"], 1)
        self.assertEqual(self.client.delete(f"/api/chat/sessions/{self.tenant_id}/s1").status_code, 200)
        self.assertEqual(self.client.get(f"/api/chat/sessions/{self.tenant_id}/s1").status_code, 404)

    def test_client_registration_and_upload(self):
        response = self.client.post("/api/clients", json={"name": "Globex", "website": "https://globex.example"})
        tenant_id = response.json()["client"]["clientId"]
        self.assertEqual(self.client.get(f"/api/clients/{tenant_id}").json()["client"]["name"], "Globex")

        upload = self.client.post(f"/api/clients/{tenant_id}/qa", json={
            "fileName": "shipping.csv",
            "fileType": "csv",
            "pairs": [{"question": "Do you ship abroad?", "answer": "Yes, to the EU"}],
        })
        self.assertEqual(upload.status_code, 200)
        self.assertTrue(upload.json()["uploadId"])

        listing = self.client.get(f"/api/clients/{tenant_id}/qa").json()
        self.assertEqual(listing["total_uploads"], 1)
        self.assertEqual(listing["uploads"][0]["status"], "completed")
        self.assertEqual(listing["total_pairs"], 1)

    def test_upload_for_unknown_client(self):
        response = self.client.post("/api/clients/unknown/qa", json={"fileName": "x.json", "pairs": []})
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
