#!/usr/bin/env python3
"""
Ingestion module for the knowledge-base chatbot.

Receives already-parsed Q&A pairs for one uploaded document, embeds every
question concurrently and stores the result, marking the document
``completed`` or ``failed``.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from .config import Config
from ..schemas.io_models import IngestionRequest, QAPair, QAPairIn
from ..utils.logger import get_logger

logger = get_logger("ingestion")


class IngestionService:
    """Embeds and stores the Q&A pairs of uploaded documents."""

    def __init__(self, gateway, store, workers: Optional[int] = None):
        self.gateway = gateway
        self.store = store
        self.workers = workers or Config.EMBED_WORKERS

    def start(self, tenant_id: str, request: IngestionRequest) -> str:
        """Create the document record in the ``processing`` state."""
        document_id = self.store.create_document(tenant_id, request.file_name, request.file_type)
        logger.info(f"Processing Q&A upload {request.file_name} ({request.file_type}) for client {tenant_id}: "
                    f"{len(request.pairs)} pairs, document {document_id}")
        return document_id

    def embed_pairs(self, pairs: List[QAPairIn]) -> List[QAPair]:
        """
        Embed every question in parallel.

        Pairs are independent, so order of completion does not matter; the
        returned list keeps the input order and drops pairs that failed.
        """
        if not pairs:
            return []
        with ThreadPoolExecutor(max_workers=min(self.workers, len(pairs))) as pool:
            embeddings = list(pool.map(lambda p: self.gateway.embed(p.question), pairs))

        embedded = [
            QAPair(question=p.question.strip(), answer=p.answer.strip(), category=p.category or "general",
                   confidence=p.confidence, embedding=e)
            for p, e in zip(pairs, embeddings)
            if e
        ]
        logger.info(f"Generated {len(embedded)}/{len(pairs)} embeddings successfully")
        return embedded

    def process(self, document_id: str, request: IngestionRequest) -> None:
        """Embed and persist; failures mark the document as failed."""
        try:
            embedded = self.embed_pairs(request.pairs)
            total = self.store.complete_document(document_id, embedded, request.full_text)
            logger.info(f"Saved {total} Q&A pairs with embeddings for document {document_id}")
        except Exception as e:
            logger.exception(f"Failed to process Q&A document {document_id}")
            self.store.fail_document(document_id, str(e) or "Unknown processing error")

    def ingest(self, tenant_id: str, request: IngestionRequest) -> str:
        """Synchronous start + process, used by the command line script."""
        document_id = self.start(tenant_id, request)
        self.process(document_id, request)
        return document_id
