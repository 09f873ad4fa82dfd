#!/usr/bin/env python3
"""
Session management module for the knowledge-base chatbot.

This module stores per-(tenant, session) conversation state in Redis, with an
in-memory fallback, and builds context-aware queries from recent turns.
"""

import redis
from typing import Dict, Optional

from .config import Config
from ..nlu.rules import significant_words
from ..schemas.io_models import ChatMessage, ChatSession
from ..utils.logger import get_logger
from ..utils.security import preview

logger = get_logger("session")


class SessionManager:
    """Manages chat sessions and conversation context."""

    def __init__(self, backend: Optional[str] = None, redis_client=None):
        """
        Initialize the session manager with Redis or the in-memory fallback.

        Args:
            backend: "redis" or "memory"; defaults to Config.SESSION_BACKEND
            redis_client: pre-built client, mainly for tests
        """
        self.memory_sessions: Dict[str, str] = {}
        self.redis_client = redis_client
        self.use_redis = redis_client is not None

        if not self.use_redis and (backend or Config.SESSION_BACKEND) == "redis":
            try:
                self.redis_client = redis.Redis(
                    host=Config.REDIS_HOST,
                    port=Config.REDIS_PORT,
                    db=Config.REDIS_DB,
                    decode_responses=True
                )
                # Test Redis connection
                self.redis_client.ping()
                self.use_redis = True
                logger.info("Using Redis for session storage")
            except redis.RedisError as e:
                logger.warning(f"Redis not available ({e}), using in-memory session storage")
                self.redis_client = None

    def _get_session_key(self, tenant_id: str, session_id: str) -> str:
        return f"session:{tenant_id}:{session_id}"

    def _load(self, key: str) -> Optional[ChatSession]:
        raw = self.redis_client.get(key) if self.use_redis else self.memory_sessions.get(key)
        return ChatSession.model_validate_json(raw) if raw else None

    def save(self, session: ChatSession) -> None:
        """Write the whole session document back (last write wins)."""
        key = self._get_session_key(session.tenant_id, session.session_id)
        raw = session.model_dump_json(by_alias=True)
        if self.use_redis:
            self.redis_client.set(key, raw)
        else:
            self.memory_sessions[key] = raw

    def get_session(self, tenant_id: str, session_id: str) -> Optional[ChatSession]:
        return self._load(self._get_session_key(tenant_id, session_id))

    def get_or_create(self, tenant_id: str, session_id: str, persist: bool = True) -> ChatSession:
        """
        Fetch a session, creating an empty one on first use.

        Args:
            tenant_id: Owning tenant
            session_id: Client-chosen session identifier
            persist: write a newly created session immediately

        Returns:
            The stored or newly created session
        """
        session = self.get_session(tenant_id, session_id)
        if session is None:
            session = ChatSession(tenant_id=tenant_id, session_id=session_id)
            if persist:
                self.save(session)
            logger.info(f"Created session {session_id} for client {tenant_id}")
        return session

    def add_message(self, session: ChatSession, message: ChatMessage) -> ChatSession:
        """Apply a message to the session aggregate and persist it."""
        session.apply_message(
            message,
            max_topics=Config.MAX_RECENT_TOPICS,
            max_frequent=Config.MAX_FREQUENT_QUERIES,
        )
        self.save(session)
        return session

    def delete_session(self, tenant_id: str, session_id: str) -> bool:
        key = self._get_session_key(tenant_id, session_id)
        if self.use_redis:
            return bool(self.redis_client.delete(key))
        return self.memory_sessions.pop(key, None) is not None

    def build_context_aware_query(self, query: str, session: ChatSession, gateway, prompts) -> str:
        """
        Rewrite a follow-up query using the last few turns of the session.

        The rewrite is only accepted when it shares at least one word longer
        than three characters with the original query.

        Args:
            query: The user's latest message
            session: Session holding earlier turns
            gateway: Model gateway used for the rewrite
            prompts: Prompt builder

        Returns:
            The rewritten query, or the original query
        """
        if not session.messages:
            return query

        history = session.recent_context(Config.CONTEXT_WINDOW, Config.CONTEXT_RESPONSE_PREFIX)
        try:
            rewritten = gateway.generate_text(prompts.context_aware_query(query, history))
        except Exception as e:
            logger.warning(f"Context-aware rewrite failed, keeping original query: {e}")
            return query

        rewritten = rewritten.strip().strip('"').strip()
        if not rewritten:
            return query
        if not significant_words(query) & significant_words(rewritten):
            logger.info(f"Discarding unrelated rewrite '{preview(rewritten)}' for '{preview(query)}'")
            return query
        logger.info(f"Context-aware query: '{preview(query)}' -> '{preview(rewritten)}'")
        return rewritten
