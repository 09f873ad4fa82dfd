#!/usr/bin/env python3
"""
Main FastAPI application for the knowledge-base chatbot.
"""

from functools import lru_cache
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Config
from .controller import Controller
from .gateway import build_gateway
from .ingestion import IngestionService
from .session import SessionManager
from ..data.corpus_store import CorpusStore
from ..schemas.io_models import ClientCreateRequest, IngestionRequest, SearchRequest
from ..utils.logger import get_logger

logger = get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Knowledge Base Chatbot API",
    description="Multi-tenant semantic search over uploaded Q&A documents",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # The chat widget is embedded on tenant websites
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SEARCH_ERROR_MESSAGE = "An error occurred during the search."


class Services:
    """Components shared by every request."""

    def __init__(self, controller: Controller, store: CorpusStore, sessions: SessionManager,
                 ingestion: IngestionService):
        self.controller = controller
        self.store = store
        self.sessions = sessions
        self.ingestion = ingestion


@lru_cache(maxsize=1)
def get_services() -> Services:
    Config.validate()
    Config.debug_print()
    gateway = build_gateway()
    store = CorpusStore()
    sessions = SessionManager()
    controller = Controller(gateway, store, sessions)
    return Services(controller, store, sessions, IngestionService(gateway, store))


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": message})


def _parse_limit(raw: Optional[str], default: int = 3, maximum: int = 50) -> int:
    """Missing, non-numeric or non-positive limits fall back to the default."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return min(value, maximum) if value > 0 else default


@app.post("/api/chat/semantic-search")
def semantic_search(request: SearchRequest, services: Services = Depends(get_services)):
    """
    Match a free-text question against the tenant's Q&A corpus.
    """
    tenant_id = request.resolved_tenant_id()
    if not request.query or not request.query.strip() or not tenant_id or not request.session_id:
        return _bad_request("Query, tenant ID and session ID are required.")

    try:
        result = services.controller.handle_query(tenant_id, request.session_id, request.query)
        return result.to_response()
    except Exception:
        logger.exception("Error during semantic search")
        return JSONResponse(status_code=500, content={"message": SEARCH_ERROR_MESSAGE})


@app.get("/api/chat/priority-questions/{tenant_id}")
def priority_questions(tenant_id: str, limit: Optional[str] = Query(default=None),
                       services: Services = Depends(get_services)):
    """Top questions by stored confidence, for the widget's starter buttons."""
    if not services.store.client_exists(tenant_id):
        raise HTTPException(status_code=404, detail="Client not found")
    questions = services.controller.priority_questions(tenant_id, _parse_limit(limit))
    return {"success": True, "priorityQuestions": [q.model_dump() for q in questions]}


@app.get("/api/chat/sessions/{tenant_id}/{session_id}")
def get_session(tenant_id: str, session_id: str, services: Services = Depends(get_services)):
    session = services.sessions.get_session(tenant_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.model_dump(mode="json", by_alias=True)


@app.delete("/api/chat/sessions/{tenant_id}/{session_id}")
def delete_session(tenant_id: str, session_id: str, services: Services = Depends(get_services)):
    deleted = services.sessions.delete_session(tenant_id, session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True}


@app.post("/api/clients")
def create_client(request: ClientCreateRequest, services: Services = Depends(get_services)):
    """Minimal tenant registration; full admin CRUD lives elsewhere."""
    if not request.name.strip() or not request.website.strip():
        return _bad_request("Name and website are required.")
    client = services.store.create_client(
        request.name, request.website, request.description,
        embedding_model=request.embedding_model, scraping_config=request.scraping_config,
    )
    return {"success": True, "client": client}


@app.get("/api/clients/{tenant_id}")
def get_client(tenant_id: str, services: Services = Depends(get_services)):
    client = services.store.get_client(tenant_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return {"success": True, "client": client}


@app.delete("/api/clients/{tenant_id}")
def delete_client(tenant_id: str, services: Services = Depends(get_services)):
    """Remove a tenant together with its documents and Q&A pairs."""
    if not services.store.delete_client(tenant_id):
        raise HTTPException(status_code=404, detail="Client not found")
    logger.info(f"Deleted client {tenant_id}")
    return {"success": True}


@app.post("/api/clients/{tenant_id}/qa")
def upload_qa_pairs(tenant_id: str, request: IngestionRequest, background_tasks: BackgroundTasks,
                    services: Services = Depends(get_services)):
    """
    Accept parsed Q&A pairs for one document; embedding runs in the background.
    """
    if not services.store.client_exists(tenant_id):
        raise HTTPException(status_code=404, detail="Client not found")
    document_id = services.ingestion.start(tenant_id, request)
    background_tasks.add_task(services.ingestion.process, document_id, request)
    return {
        "success": True,
        "message": "Q&A file uploaded and processing started",
        "uploadId": document_id,
        "fileName": request.file_name,
        "fileType": request.file_type,
    }


@app.get("/api/clients/{tenant_id}/qa")
def get_client_qa(tenant_id: str, services: Services = Depends(get_services)):
    client = services.store.get_client(tenant_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    uploads = services.store.list_documents(tenant_id)
    return {
        "success": True,
        "client_id": tenant_id,
        "client_name": client["name"],
        "total_uploads": len(uploads),
        "total_pairs": sum(u["totalPairs"] for u in uploads),
        "uploads": uploads,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
