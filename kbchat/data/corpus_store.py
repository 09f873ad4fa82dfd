"""Corpus store: read/write contracts for tenants and their Q&A documents.

Callers only ever see pydantic ``QAPair`` objects; ORM rows stay inside this
module.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from .database import init_db, make_engine, make_session_factory
from .models import Client, DocumentStatus, QADocument, QAPairRecord
from ..app.errors import TenantNotFoundError
from ..schemas.io_models import PriorityQuestion, QAPair


class CorpusStore:
    def __init__(self, session_factory=None, engine=None):
        if session_factory is None:
            engine = engine or make_engine()
            init_db(engine)
            session_factory = make_session_factory(engine)
        self.session_factory = session_factory

    # ---- tenants ----------------------------------------------------------

    def create_client(self, name: str, website: str, description: Optional[str] = None,
                      embedding_model: Optional[str] = None,
                      scraping_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        with self.session_factory() as db:
            client = Client(
                name=name.strip(),
                website=website.strip(),
                description=description,
                scraping_config=scraping_config or {"maxPages": 50, "allowedDomains": [], "excludePatterns": []},
            )
            if embedding_model:
                client.embedding_model = embedding_model
            db.add(client)
            db.commit()
            return self._client_dict(client)

    def get_client(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        with self.session_factory() as db:
            client = db.get(Client, tenant_id)
            return self._client_dict(client) if client else None

    def client_exists(self, tenant_id: str) -> bool:
        with self.session_factory() as db:
            return db.get(Client, tenant_id) is not None

    def delete_client(self, tenant_id: str) -> bool:
        """Delete a tenant and, through the cascade, its documents and pairs."""
        with self.session_factory() as db:
            client = db.get(Client, tenant_id)
            if client is None:
                return False
            db.delete(client)
            db.commit()
            return True

    @staticmethod
    def _client_dict(client: Client) -> Dict[str, Any]:
        return {
            "clientId": client.id,
            "name": client.name,
            "website": client.website,
            "description": client.description,
            "status": client.status.value if client.status else "active",
            "scrapingConfig": client.scraping_config,
            "embeddingModel": client.embedding_model,
            "totalPagesScraped": client.total_pages_scraped,
            "lastScrapedAt": client.last_scraped_at.isoformat() if client.last_scraped_at else None,
        }

    # ---- documents --------------------------------------------------------

    def create_document(self, tenant_id: str, file_name: str, file_type: str) -> str:
        """Register an upload in the ``processing`` state and return its id."""
        with self.session_factory() as db:
            if db.get(Client, tenant_id) is None:
                raise TenantNotFoundError(tenant_id)
            doc = QADocument(client_id=tenant_id, file_name=file_name, file_type=file_type,
                             status=DocumentStatus.processing)
            db.add(doc)
            db.commit()
            return doc.id

    def complete_document(self, document_id: str, pairs: List[QAPair], full_text: str) -> int:
        with self.session_factory() as db:
            doc = db.get(QADocument, document_id)
            if doc is None:
                raise KeyError(document_id)
            doc.pairs = [
                QAPairRecord(position=i, question=p.question, answer=p.answer, category=p.category,
                             confidence=p.confidence, embedding=p.embedding)
                for i, p in enumerate(pairs)
            ]
            doc.full_text = full_text
            doc.total_pairs = len(pairs)
            doc.status = DocumentStatus.completed
            doc.processed_at = datetime.now()
            db.commit()
            return doc.total_pairs

    def fail_document(self, document_id: str, error_message: str) -> None:
        with self.session_factory() as db:
            doc = db.get(QADocument, document_id)
            if doc is None:
                raise KeyError(document_id)
            doc.status = DocumentStatus.failed
            doc.error_message = error_message
            doc.processed_at = datetime.now()
            db.commit()

    def list_documents(self, tenant_id: str, sample_size: int = 3) -> List[Dict[str, Any]]:
        with self.session_factory() as db:
            docs = (db.query(QADocument)
                    .filter(QADocument.client_id == tenant_id)
                    .order_by(QADocument.uploaded_at.desc())
                    .all())
            return [{
                "id": d.id,
                "fileName": d.file_name,
                "fileType": d.file_type,
                "status": d.status.value,
                "totalPairs": d.total_pairs,
                "errorMessage": d.error_message,
                "uploadedAt": d.uploaded_at.isoformat() if d.uploaded_at else None,
                "processedAt": d.processed_at.isoformat() if d.processed_at else None,
                "samplePairs": [{
                    "question": p.question[:200],
                    "answer": p.answer[:200],
                    "category": p.category,
                    "confidence": p.confidence,
                } for p in d.pairs[:sample_size]],
            } for d in docs]

    # ---- retrieval reads --------------------------------------------------

    def completed_pairs(self, tenant_id: str, with_embeddings: bool = False) -> List[QAPair]:
        """
        Pairs of every completed document of a tenant, in corpus order.

        Corpus order (upload time, then position within the upload) is the
        tie-breaker for equal similarity scores, so it must be stable.
        """
        with self.session_factory() as db:
            rows = (db.query(QAPairRecord)
                    .join(QADocument)
                    .filter(QADocument.client_id == tenant_id,
                            QADocument.status == DocumentStatus.completed)
                    .order_by(QADocument.uploaded_at, QADocument.id, QAPairRecord.position)
                    .all())
            pairs = [QAPair(question=r.question, answer=r.answer, category=r.category,
                            confidence=r.confidence, embedding=r.embedding) for r in rows]
        if with_embeddings:
            pairs = [p for p in pairs if p.embedding]
        return pairs

    def priority_questions(self, tenant_id: str, limit: int = 3) -> List[PriorityQuestion]:
        pairs = self.completed_pairs(tenant_id)
        ranked = sorted(pairs, key=lambda p: p.confidence or 0, reverse=True)
        return [PriorityQuestion(question=p.question, confidence=p.confidence) for p in ranked[:limit]]
