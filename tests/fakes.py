"""Scripted stand-ins for the embedding and generation clients.

They are plugged into the real ModelGateway so tests exercise the gateway's
retry, parsing and fallback logic while staying offline.
"""
import math
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kbchat.app.errors import EmbeddingError, GenerationError
from kbchat.app.gateway import ModelGateway
from kbchat.app.session import SessionManager
from kbchat.data.corpus_store import CorpusStore
from kbchat.data.database import make_engine
from kbchat.schemas.io_models import QAPair

# Substrings that identify each prompt built by PromptBuilder
GREETING_CHECK = "only a greeting or pleasantry"
GREETING_REPLY = "The user greeted you with"
CONTACT = "Classify what contact information"
SHORT_LABEL = "Label this very short user message"
LANGUAGE = "Detect the language"
TRANSLATE = "Translate the following text into"
REWRITE = "Rewrite the user's latest message"
SPECIFIC = "Does the user want ONE specific item"
SYNTHESIZE = "Combine the sources below"
DIRECT = "Extract the part of the stored answer"
COMPLETENESS = "Rate how completely"
ENRICH = "is missing essential information"
FOLLOW_UPS = "Suggest exactly"


class FakeGenerator:
    """Returns the reply of the first marker found in the prompt.

    Unscripted prompts raise GenerationError, so every caller falls back.
    A reply may be an exception instance (raised) or a callable of the prompt.
    """

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.calls = []

    def generate(self, prompt):
        self.calls.append(prompt)
        for marker, reply in self.replies.items():
            if marker in prompt:
                if isinstance(reply, Exception):
                    raise reply
                return reply(prompt) if callable(reply) else reply
        raise GenerationError("no scripted reply")

    def called(self, marker):
        return any(marker in p for p in self.calls)


class FakeEmbedder:
    def __init__(self, vectors=None, failures=0):
        self.vectors = dict(vectors or {})
        self.failures = failures
        self.calls = []

    def embed_once(self, text):
        self.calls.append(text)
        if self.failures > 0:
            self.failures -= 1
            raise EmbeddingError("transient failure")
        if text not in self.vectors:
            raise EmbeddingError(f"no vector for {text!r}")
        return list(self.vectors[text])


def make_gateway(vectors=None, replies=None, failures=0):
    embedder = FakeEmbedder(vectors, failures)
    generator = FakeGenerator(replies)
    sleeps = []
    gateway = ModelGateway(embedder, generator, max_attempts=3, backoff=1.0, sleep=sleeps.append)
    gateway.sleeps = sleeps
    return gateway


def unit_at(cosine):
    """2-d unit vector whose cosine with [1, 0] is ``cosine``."""
    return [cosine, math.sqrt(max(0.0, 1.0 - cosine * cosine))]


def make_store():
    return CorpusStore(engine=make_engine("sqlite://"))


def seed_corpus(store, pairs, name="Acme", website="https://acme.example"):
    """Create a tenant with one completed document holding ``pairs``."""
    client = store.create_client(name, website)
    tenant_id = client["clientId"]
    doc_id = store.create_document(tenant_id, "faq.json", "json")
    store.complete_document(doc_id, [p if isinstance(p, QAPair) else QAPair(**p) for p in pairs], "")
    return tenant_id


def make_sessions():
    return SessionManager(backend="memory")
