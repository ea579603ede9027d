from __future__ import annotations

from typing import Protocol, Sequence

from app.schemas.conversation import ChatMessage


class GenerationError(RuntimeError):
    """Falha do provedor de IA (rede, cota, resposta inválida)."""


class TextGenerator(Protocol):
    name: str

    async def generate(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage],
        user_message: str,
    ) -> str:
        ...
