from __future__ import annotations

import re
from typing import Any, Sequence

from app.schemas.conversation import ChatMessage
from app.services.normalizer import normalize, tokenize


_NUMBER_WORDS = {
    "um": 1, "uma": 1, "dois": 2, "duas": 2, "tres": 3,
    "quatro": 4, "cinco": 5, "meia": 6, "dez": 10, "duzia": 12,
}

_PRODUCT_LINE = re.compile(
    r"^- (?P<name>.+?): R\$ (?P<price>\d+(?:\.\d+)?) \(ID: (?P<id>[^)]+)\)", re.MULTILINE
)
_CURRENT_ITEM = re.compile(r"Item atual: (?P<item>.+)$", re.MULTILINE)

_ADD_WORDS = {"quero", "adiciona", "adicionar", "coloca", "colocar", "manda", "pedir", "bota"}
_REMOVE_WORDS = {"remove", "remover", "tira", "tirar", "retira", "retirar"}
_CHECKOUT_WORDS = ("finalizar", "fechar", "so isso", "pode fechar", "terminar")
_YES_WORDS = {"sim", "pode", "isso", "ok", "quero", "beleza"}


def parse_catalog(system_prompt: str) -> list[dict[str, Any]]:
    return [
        {"id": match.group("id"), "name": match.group("name"), "price": float(match.group("price"))}
        for match in _PRODUCT_LINE.finditer(system_prompt or "")
    ]


def _quantity_in(text: str) -> int:
    for token in tokenize(text):
        if token.isdigit() and int(token) > 0:
            return int(token)
        if token in _NUMBER_WORDS:
            return _NUMBER_WORDS[token]
    return 1


def _match_catalog(text: str, catalog: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Nome inteiro no texto (o mais longo vence), senão maior sobreposição de palavras."""
    normalized_text = normalize(text)
    if not normalized_text:
        return None

    full_matches = [
        item for item in catalog if normalize(item["name"]) and normalize(item["name"]) in normalized_text
    ]
    if full_matches:
        return max(full_matches, key=lambda item: len(item["name"]))

    words = set(normalized_text.split())
    overlaps = [(len(words & set(tokenize(item["name"]))), idx) for idx, item in enumerate(catalog)]
    best = max(overlaps, key=lambda pair: (pair[0], -pair[1]), default=(0, -1))
    return catalog[best[1]] if best[0] else None


class MockProvider:
    """Provedor offline baseado em regras; emite as mesmas tags que a IA real."""

    name = "mock"

    async def generate(
        self,
        system_prompt: str,
        history: Sequence[ChatMessage],
        user_message: str,
    ) -> str:
        text = user_message or ""
        normalized_text = normalize(text)
        tokens = set(normalized_text.split())
        menu_items = parse_catalog(system_prompt)

        if any(word in normalized_text for word in _CHECKOUT_WORDS):
            return "Perfeito! Vamos fechar seu pedido. 🛵 [START_CHECKOUT]"

        if tokens & {"cardapio", "menu", "produtos"}:
            if not menu_items:
                return "No momento não temos produtos disponíveis. 😕"
            names = ", ".join(item["name"] for item in menu_items[:5])
            return f"Temos estas opções: {names}. O que você gostaria? 😊"

        if tokens & {"ajuda", "help"}:
            return "Posso mostrar o cardápio, adicionar itens ou finalizar o pedido. 😉"

        current_item = _CURRENT_ITEM.search(system_prompt or "")
        if current_item and tokens and tokens <= _YES_WORDS:
            picked = _match_catalog(current_item.group("item"), menu_items)
            if picked:
                return f"Adicionei 1x {picked['name']}! ✅ [ADD:{picked['id']}:1]"

        picked = _match_catalog(text, menu_items)
        if picked and tokens & _REMOVE_WORDS:
            return f"Removi {picked['name']} do seu carrinho. [REMOVE:{picked['id']}]"

        if picked and tokens & _ADD_WORDS:
            qty = _quantity_in(text)
            return f"Adicionei {qty}x {picked['name']} ao carrinho! 🛒 [ADD:{picked['id']}:{qty}]"

        if current_item and not picked:
            picked = _match_catalog(current_item.group("item"), menu_items)

        if picked:
            return (
                f"Recomendo o {picked['name']} por R$ {picked['price']:.2f}! 😋 "
                "Quer que eu adicione?"
            )

        return "Desculpe, não entendi. Você pode pedir o cardápio ou informar o produto desejado. 🙂"
