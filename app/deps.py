# app/deps.py
from __future__ import annotations

from functools import lru_cache

from app.core.database import SessionLocal
from app.services.conversation_store import SqlConversationStore
from app.services.orchestrator import ConversationOrchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> ConversationOrchestrator:
    """Orquestrador único por processo (cache de catálogo e locks compartilhados)."""
    return ConversationOrchestrator(SqlConversationStore(SessionLocal))
