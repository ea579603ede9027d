from __future__ import annotations

import logging

from app.ai.base import TextGenerator
from app.ai.mock_provider import MockProvider
from app.ai.openai_provider import OpenAIProvider
from app.core.config import AI_PROVIDER
from app.schemas.conversation import AgentSettings

logger = logging.getLogger(__name__)


def get_generator(settings: AgentSettings | None = None) -> TextGenerator:
    provider = ((settings.provider if settings else None) or AI_PROVIDER or "mock").strip().lower()
    if provider == "openai":
        return OpenAIProvider(
            model=settings.model if settings else None,
            temperature=settings.temperature if settings else None,
        )
    if provider != "mock":
        logger.warning("Provedor de IA desconhecido '%s'; usando mock", provider)
    return MockProvider()
