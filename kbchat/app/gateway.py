#!/usr/bin/env python3
"""
Model gateway for the knowledge-base chatbot.

The pipeline talks to the embedding and generation models only through
``ModelGateway``. It is constructed with explicit client instances, which
makes it trivial to swap in test doubles or per-tenant credentials.
"""

import time
from typing import Callable, List, Optional

from .config import Config
from .errors import GenerationError
from .prompt_builder import PromptBuilder
from ..nlu.llm_router import classify_with_fallback, first_word
from ..nlu.rules import guess_language
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger("gateway")


class ModelGateway:
    """Embedding, generation, language detection and translation."""

    def __init__(self, embedder, generator, prompts: Optional[PromptBuilder] = None,
                 max_attempts: Optional[int] = None, backoff: Optional[float] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            embedder: client exposing ``embed_once(text) -> List[float]``
            generator: client exposing ``generate(prompt) -> str``
            prompts: prompt builder used for language detection and translation
            max_attempts: embedding attempts before giving up
            backoff: fixed pause in seconds between embedding attempts
            sleep: injectable sleep, used by tests
        """
        self.embedder = embedder
        self.generator = generator
        self.prompts = prompts or PromptBuilder()
        self.max_attempts = max_attempts or Config.EMBED_MAX_ATTEMPTS
        self.backoff = Config.EMBED_RETRY_BACKOFF if backoff is None else backoff
        self.sleep = sleep

    def embed(self, text: str) -> Optional[List[float]]:
        """
        Embed text with bounded retry.

        Returns:
            The embedding, or None when every attempt failed
        """
        if not text or not text.strip():
            return None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.embedder.embed_once(text)
            except Exception as e:
                logger.warning(f"Embedding attempt {attempt}/{self.max_attempts} failed for '{preview(text, 40)}': {e}")
                if attempt < self.max_attempts:
                    self.sleep(self.backoff)
        logger.error(f"Giving up embedding '{preview(text, 40)}' after {self.max_attempts} attempts")
        return None

    def generate_text(self, prompt: str) -> str:
        """Single generation attempt; raises GenerationError on failure or empty output."""
        try:
            text = self.generator.generate(prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(str(e)) from e
        if not text or not text.strip():
            raise GenerationError("Model returned an empty reply")
        return text.strip()

    def detect_language(self, text: str) -> str:
        """ISO-639-1 code from the supported set, defaulting to English."""
        if not text or not text.strip():
            return Config.DEFAULT_LANGUAGE
        supported = Config.SUPPORTED_LANGUAGES

        def _parse(raw: str) -> Optional[str]:
            code = first_word(raw)[:2]
            return code if code in supported else None

        return classify_with_fallback(
            self, self.prompts.detect_language(text), _parse,
            lambda: guess_language(text), label="language",
        )

    def translate(self, text: str, target: str) -> str:
        """Translate text into ``target``; unchanged for English, empty text or on failure."""
        if not text or not text.strip() or not target or target == Config.DEFAULT_LANGUAGE:
            return text
        if target not in Config.SUPPORTED_LANGUAGES:
            return text
        try:
            return self.generate_text(self.prompts.translate(text, target))
        except GenerationError as e:
            logger.warning(f"Translation to {target} failed, returning original text: {e}")
            return text


def build_gateway() -> ModelGateway:
    """Gateway wired to the configured Gemini / sentence-transformers clients."""
    from .embed import build_embedding_client
    from .generate import GenerationClient

    embedder = build_embedding_client()
    generator = GenerationClient()
    return ModelGateway(embedder, generator)
