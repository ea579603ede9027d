import asyncio
import json

import httpx
import pytest

from app.ai import openai_provider
from app.ai.base import GenerationError
from app.ai.mock_provider import MockProvider, parse_catalog
from app.ai.openai_provider import OpenAIProvider, build_messages
from app.ai.prompts import build_system_prompt
from app.ai.service import get_generator
from app.schemas.conversation import AgentSettings, ChatMessage, CustomerData
from app.services.list_intent import activate_list_mode
from tests.fixtures_data import CATALOG, STORE_SETTINGS


def _prompt(customer_data=None):
    return build_system_prompt(STORE_SETTINGS, CATALOG, (), customer_data or CustomerData())


def _mock_reply(text, customer_data=None):
    return asyncio.run(MockProvider().generate(_prompt(customer_data), [], text))


def test_parse_catalog_reads_prompt_lines():
    items = parse_catalog(_prompt())

    assert [item["id"] for item in items] == ["P1", "P2", "P3"]
    assert items[0]["price"] == 10.0


def test_mock_provider_emits_add_tag_with_quantity():
    reply = _mock_reply("quero 2 pizza calabresa")

    assert "[ADD:P1:2]" in reply


def test_mock_provider_emits_checkout_and_remove_tags():
    assert "[START_CHECKOUT]" in _mock_reply("pode fechar o pedido")
    assert "[REMOVE:P2]" in _mock_reply("tira o refrigerante")


def test_mock_provider_confirms_current_list_item():
    data = CustomerData(list_mode=activate_list_mode("- bolo\n- refri"))

    assert "[ADD:P3:1]" in _mock_reply("sim", data)


def test_mock_provider_recommends_without_tags():
    reply = _mock_reply("tem bolo de cenoura?")

    assert reply.startswith("Recomendo o Bolo de Cenoura")
    assert "[" not in reply


def test_build_messages_order():
    history = [ChatMessage(role="user", content="oi"), ChatMessage(role="assistant", content="olá")]

    messages = build_messages("sistema", history, "quero pizza")

    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1]["content"] == "quero pizza"


def test_openai_provider_posts_chat_completion():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Olá! [ADD:P1:1]"}}]})

    provider = OpenAIProvider(
        api_key="sk-test",
        model="gpt-test",
        base_url="https://llm.test/v1",
        transport=httpx.MockTransport(handler),
    )

    reply = asyncio.run(provider.generate("sistema", [], "oi"))

    assert reply == "Olá! [ADD:P1:1]"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-test"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "sistema"}


def test_openai_provider_retries_server_errors(monkeypatch):
    monkeypatch.setattr(openai_provider, "_backoff_seconds", lambda attempt: 0)
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(503, text="indisponivel")
        return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

    provider = OpenAIProvider(api_key="sk-test", retries=3, transport=httpx.MockTransport(handler))

    assert asyncio.run(provider.generate("s", [], "oi")) == "ok"
    assert len(attempts) == 3


def test_openai_provider_raises_generation_error(monkeypatch):
    monkeypatch.setattr(openai_provider, "_backoff_seconds", lambda attempt: 0)

    def handler(request):
        return httpx.Response(401, text="unauthorized")

    provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationError):
        asyncio.run(provider.generate("s", [], "oi"))


def test_openai_provider_requires_api_key():
    provider = OpenAIProvider(api_key="", transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    provider.api_key = ""

    with pytest.raises(GenerationError):
        asyncio.run(provider.generate("s", [], "oi"))


def test_get_generator_by_provider():
    assert isinstance(get_generator(AgentSettings(tenant_id=1, provider="mock")), MockProvider)
    assert isinstance(get_generator(AgentSettings(tenant_id=1, provider="desconhecido")), MockProvider)

    generator = get_generator(AgentSettings(tenant_id=1, provider="openai", model="gpt-x", temperature=0.1))
    assert isinstance(generator, OpenAIProvider)
    assert generator.model == "gpt-x"
    assert generator.temperature == 0.1
