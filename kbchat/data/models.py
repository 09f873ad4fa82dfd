from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base
import enum
import uuid
from datetime import datetime


def _new_id() -> str:
    return uuid.uuid4().hex


class ClientStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    pending = "pending"


class DocumentStatus(str, enum.Enum):
    processing = "processing"
    completed = "completed"
    failed = "failed"


class Client(Base):
    """A tenant: owns its Q&A corpus and chat sessions."""
    __tablename__ = "clients"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String, nullable=False, index=True)
    website = Column(String, nullable=False, index=True)
    description = Column(String)
    status = Column(Enum(ClientStatus), nullable=False, default=ClientStatus.active)
    scraping_config = Column(JSON, nullable=False, default=dict)
    embedding_model = Column(String, nullable=False, default="all-MiniLM-L6-v2")
    total_pages_scraped = Column(Integer, nullable=False, default=0)
    last_scraped_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    documents = relationship("QADocument", back_populates="client", cascade="all, delete-orphan")


class QADocument(Base):
    """Q&A pairs extracted from one uploaded source file."""
    __tablename__ = "qa_documents"

    id = Column(String(32), primary_key=True, default=_new_id)
    client_id = Column(String(32), ForeignKey("clients.id"), nullable=False, index=True)
    file_name = Column(String, nullable=False)
    file_type = Column(String, nullable=False)
    status = Column(Enum(DocumentStatus), nullable=False, default=DocumentStatus.processing, index=True)
    full_text = Column(Text, nullable=True)
    error_message = Column(String, nullable=True)
    total_pairs = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime(timezone=True), default=datetime.now, index=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    client = relationship("Client", back_populates="documents")
    pairs = relationship("QAPairRecord", back_populates="document", cascade="all, delete-orphan",
                         order_by="QAPairRecord.position")


class QAPairRecord(Base):
    __tablename__ = "qa_pairs"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(String(32), ForeignKey("qa_documents.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="general")
    confidence = Column(Float, nullable=False, default=1.0)
    embedding = Column(JSON, nullable=True)  # list of floats

    document = relationship("QADocument", back_populates="pairs")
