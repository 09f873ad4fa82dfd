#!/usr/bin/env python3
"""
Embedding module for the knowledge-base chatbot.

Two backends are supported: the Gemini embedContent REST endpoint and a local
sentence-transformers model. Both expose the same single-attempt
``embed_once``; retrying is the gateway's job.
"""

import requests
from typing import Dict, List, Optional

from .config import Config
from .errors import EmbeddingError
from ..utils.logger import get_logger

logger = get_logger("embed")


class EmbeddingClient:
    """Client for generating text embeddings with the Gemini API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 api_base: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key or Config.GEMINI_API_KEY
        self.model = model or Config.GEMINI_EMBEDDING_MODEL
        self.timeout = timeout or Config.HTTP_TIMEOUT
        base = api_base or Config.GEMINI_API_BASE
        self.api_base_url = f"{base}/models/{self.model}:embedContent"

        if not self.api_key:
            raise ValueError("Gemini API key is required")

    def embed_once(self, text: str) -> List[float]:
        """
        Generate an embedding for a text string (one attempt).

        Raises:
            EmbeddingError: when the call fails or returns no values
        """
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]}
        }
        try:
            response = requests.post(
                self.api_base_url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
            values = response.json()["embedding"]["values"]
        except requests.exceptions.RequestException as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Unexpected embedding response: {e}") from e

        if not values:
            raise EmbeddingError("Embedding response contained no values")
        return [float(v) for v in values]


class LocalEmbeddingClient:
    """Client for generating text embeddings using sentence-transformers."""

    # Loaded models are shared between clients; tenants usually share one model
    _models: Dict[str, object] = {}

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name or Config.LOCAL_EMBEDDING_MODEL

    def _get_model(self):
        if self.model_name not in self._models:
            from sentence_transformers import SentenceTransformer
            logger.info(f"Loading sentence-transformers model {self.model_name}")
            self._models[self.model_name] = SentenceTransformer(self.model_name)
        return self._models[self.model_name]

    def embed_once(self, text: str) -> List[float]:
        try:
            embedding = self._get_model().encode(text)
        except Exception as e:
            raise EmbeddingError(f"Local embedding failed: {e}") from e
        return embedding.tolist()


def build_embedding_client(provider: Optional[str] = None, api_key: Optional[str] = None,
                           model: Optional[str] = None):
    """Construct the embedding client for the configured provider."""
    provider = (provider or Config.EMBEDDING_PROVIDER).lower()
    if provider == "local":
        return LocalEmbeddingClient(model_name=model)
    if provider == "gemini":
        return EmbeddingClient(api_key=api_key, model=model)
    raise ValueError(f"Unsupported embedding provider: {provider}")
