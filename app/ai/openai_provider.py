from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx

from app.ai.base import GenerationError
from app.core.config import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
    OPENAI_TIMEOUT_SECONDS,
)
from app.schemas.conversation import ChatMessage

logger = logging.getLogger(__name__)

_RETRY_STATUS = {429, 500, 502, 503, 504}


def _backoff_seconds(attempt: int) -> float:
    # 1s, 2s, 4s... (máx 8s)
    sec = 1.0 * (2 ** max(0, attempt - 1))
    return min(sec, 8.0)


def build_messages(
    system_prompt: str, history: Sequence[ChatMessage], user_message: str
) -> list[dict[str, str]]:
    messages = [{"role": "system", "content": system_prompt}]
    messages.extend({"role": item.role, "content": item.content} for item in history)
    messages.append({"role": "user", "content": user_message})
    return messages


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int = OPENAI_MAX_TOKENS,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = OPENAI_TIMEOUT_SECONDS,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self.temperature = OPENAI_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(1, retries)
        self._transport = transport

    def _payload(self, system_prompt: str, history: Sequence[ChatMessage], user_message: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": build_messages(system_prompt, history, user_message),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    @staticmethod
    def _extract_content(data: dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"Resposta inesperada do provedor: {data!r}") from exc
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Resposta vazia do provedor")
        return content

    async def generate(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage],
        user_message: str,
    ) -> str:
        if not self.api_key:
            raise GenerationError("Falta OPENAI_API_KEY no .env")

        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = self._payload(system_prompt, history, user_message)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for attempt in range(1, self.retries + 1):
                try:
                    response = await client.post(url, headers=headers, json=payload)
                except (httpx.TimeoutException, httpx.NetworkError) as exc:
                    if attempt < self.retries:
                        logger.warning("Falha de rede no provedor de IA (tentativa %s): %s", attempt, exc)
                        await asyncio.sleep(_backoff_seconds(attempt))
                        continue
                    raise GenerationError(f"Falha de rede no provedor de IA: {exc}") from exc

                if 200 <= response.status_code < 300:
                    try:
                        data = response.json()
                    except ValueError as exc:
                        raise GenerationError("Resposta do provedor não é JSON") from exc
                    return self._extract_content(data)

                if response.status_code in _RETRY_STATUS and attempt < self.retries:
                    logger.warning(
                        "Provedor de IA retornou %s (tentativa %s)", response.status_code, attempt
                    )
                    await asyncio.sleep(_backoff_seconds(attempt))
                    continue

                raise GenerationError(f"Erro do provedor de IA {response.status_code}: {response.text}")

        raise GenerationError("Falha desconhecida no provedor de IA")
