from __future__ import annotations

from typing import Sequence

from app.schemas.conversation import Product
from app.services.normalizer import contains_phrase, normalize

RECOMMENDATION_PHRASES = (
    "recomendo",
    "recomendamos",
    "recomendacao",
    "sugiro",
    "sugestao",
    "indico",
    "que tal",
    "experimente",
    "experimentar",
    "prove",
    "temos",
    "tenho",
    "opcao",
    "opcoes",
    "confira",
    "olha so",
    "veja",
    "vai gostar",
    "vai adorar",
    "otima escolha",
    "posso oferecer",
    "por apenas",
)

CART_ACTION_PHRASES = (
    "adicionei",
    "adicionado",
    "adicionada",
    "adicionados",
    "adicionadas",
    "coloquei",
    "ao carrinho",
    "ao seu carrinho",
    "no seu carrinho",
    "no carrinho",
    "removi",
    "removido",
    "retirei",
    "finalizar",
    "finalizando",
    "fechar o pedido",
    "checkout",
    "pedido confirmado",
    "confirmado",
    "confirmar",
    "resumo do pedido",
)


def is_recommendation(text: str) -> bool:
    normalized = normalize(text)
    return any(contains_phrase(normalized, phrase) for phrase in RECOMMENDATION_PHRASES)


def is_cart_action(text: str) -> bool:
    normalized = normalize(text)
    return any(contains_phrase(normalized, phrase) for phrase in CART_ACTION_PHRASES)


def _required_hits(token_count: int) -> int:
    if token_count >= 3:
        return min(2, token_count)
    return token_count


def product_is_mentioned(product: Product, normalized_text: str, text_tokens: set[str]) -> bool:
    normalized_name = normalize(product.name)
    if not normalized_name:
        return False
    if normalized_name in normalized_text:
        return True

    normalized_id = normalize(str(product.id))
    if normalized_id and normalized_id in normalized_text:
        return True

    name_tokens = list(dict.fromkeys(normalized_name.split()))
    hits = sum(1 for token in name_tokens if token in text_tokens)
    return hits >= _required_hits(len(name_tokens))


def find_mentioned_product(text: str, products: Sequence[Product]) -> Product | None:
    normalized_text = normalize(text)
    if not normalized_text:
        return None
    text_tokens = set(normalized_text.split())

    for product in products:
        if not product.name or not product.image_url:
            continue
        if product_is_mentioned(product, normalized_text, text_tokens):
            return product
    return None


def pick_recommended_product(
    text: str,
    products: Sequence[Product],
    last_recommended_product_id: str | None,
) -> Product | None:
    """Produto cuja imagem deve acompanhar a resposta, se houver.

    Respostas de carrinho (adicionar, confirmar, finalizar) nunca recebem
    imagem, e o mesmo produto não é reenviado em turnos seguidos.
    """
    if not is_recommendation(text) or is_cart_action(text):
        return None

    product = find_mentioned_product(text, products)
    if product is None:
        return None
    if last_recommended_product_id is not None and product.id == last_recommended_product_id:
        return None
    return product
