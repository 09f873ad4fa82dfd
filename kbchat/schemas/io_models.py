"""Pydantic models for API I/O, chat sessions and the ingestion boundary.

Field names are snake_case in Python and camelCase on the wire.
"""
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..nlu.rules import extract_keywords, normalize_query

ConfidenceTier = Literal["high", "medium", "low"]

# Numeric weight of each tier for session analytics
CONFIDENCE_WEIGHTS = {"high": 1.0, "medium": 0.6, "low": 0.3}
DEFAULT_CONFIDENCE_WEIGHT = 0.6


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---- ingestion boundary -------------------------------------------------

class QAPairIn(WireModel):
    question: str
    answer: str
    category: str = "general"
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class IngestionRequest(WireModel):
    file_name: str = Field(alias="fileName")
    file_type: str = Field(default="json", alias="fileType")
    pairs: List[QAPairIn] = Field(default_factory=list)
    full_text: str = Field(default="", alias="fullText")


class ClientCreateRequest(WireModel):
    name: str
    website: str
    description: Optional[str] = None
    embedding_model: Optional[str] = Field(default=None, alias="embeddingModel")
    scraping_config: Dict[str, Any] = Field(default_factory=dict, alias="scrapingConfig")


# ---- search -------------------------------------------------------------

class SearchRequest(WireModel):
    """All fields optional so missing ones can be answered with a 400."""
    query: Optional[str] = None
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    def resolved_tenant_id(self) -> Optional[str]:
        return self.tenant_id or self.client_id


class MatchResult(WireModel):
    """One query-vs-pair comparison; never persisted."""
    question: str
    answer: str
    score: float
    category: str = "general"
    index: int = 0


class Suggestion(WireModel):
    id: int
    question: str
    score: float
    relevance_reason: str = Field(alias="relevanceReason")


class SearchResult(WireModel):
    type: str
    answer: str
    score: float = 0.0
    confidence: Optional[ConfidenceTier] = None
    language: Optional[str] = None
    matched_question: Optional[str] = Field(default=None, alias="matchedQuestion")
    completeness_score: Optional[float] = Field(default=None, alias="completenessScore")
    follow_up_questions: Optional[List[str]] = Field(default=None, alias="followUpQuestions")
    source_count: Optional[int] = Field(default=None, alias="sourceCount")
    suggestions: Optional[List[Suggestion]] = None

    def to_response(self) -> Dict[str, Any]:
        body = self.model_dump(by_alias=True, exclude_none=True)
        if self.suggestions is not None:
            # Older widgets read a flat list of question strings
            body["suggestedQuestions"] = [s.question for s in self.suggestions]
        return body


class PriorityQuestion(WireModel):
    question: str
    confidence: float


# ---- chat sessions ------------------------------------------------------

class ChatMessage(WireModel):
    query: str
    refined_query: Optional[str] = Field(default=None, alias="refinedQuery")
    response: str
    confidence: ConfidenceTier = "medium"
    score: float = 0.0
    language: str = "en"
    matched_question: Optional[str] = Field(default=None, alias="matchedQuestion")
    timestamp: datetime = Field(default_factory=datetime.now)


class SessionContext(WireModel):
    recent_topics: List[str] = Field(default_factory=list, alias="recentTopics")
    frequent_queries: List[str] = Field(default_factory=list, alias="frequentQueries")


class SessionMetadata(WireModel):
    total_queries: int = Field(default=0, alias="totalQueries")
    avg_confidence: float = Field(default=0.0, alias="avgConfidence")
    last_active: datetime = Field(default_factory=datetime.now, alias="lastActive")
    created_at: datetime = Field(default_factory=datetime.now, alias="createdAt")


class ChatSession(WireModel):
    """
    Conversation state for one (tenant, session) pair.

    ``context`` and ``metadata`` are derived from ``messages``; they only
    change through ``apply_message`` so they always agree with the log.
    """
    tenant_id: str = Field(alias="tenantId")
    session_id: str = Field(alias="sessionId")
    messages: List[ChatMessage] = Field(default_factory=list)
    context: SessionContext = Field(default_factory=SessionContext)
    metadata: SessionMetadata = Field(default_factory=SessionMetadata)

    def apply_message(self, message: ChatMessage, max_topics: int = 10,
                      max_frequent: int = 10) -> "ChatSession":
        """Append a message and recompute every derived field."""
        self.messages.append(message)
        self.metadata.total_queries += 1
        self.metadata.last_active = message.timestamp

        weights = [CONFIDENCE_WEIGHTS.get(m.confidence, DEFAULT_CONFIDENCE_WEIGHT) for m in self.messages]
        self.metadata.avg_confidence = sum(weights) / len(weights)

        merged = extract_keywords(message.query) + self.context.recent_topics
        self.context.recent_topics = list(dict.fromkeys(merged))[:max_topics]

        counts = Counter(normalize_query(m.query) for m in self.messages)
        repeated = [q for q, n in counts.most_common() if n > 1 and q]
        self.context.frequent_queries = repeated[:max_frequent]
        return self

    def recent_context(self, limit: int = 3, response_prefix: int = 150) -> List[Dict[str, str]]:
        """Last ``limit`` turns as query / truncated response pairs."""
        return [
            {"query": m.query, "response": m.response[:response_prefix]}
            for m in self.messages[-limit:]
        ]


class QAPair(WireModel):
    """A stored question/answer unit as the retrieval core sees it."""
    question: str
    answer: str
    category: str = "general"
    confidence: float = 1.0
    embedding: Optional[List[float]] = None
