"""Tags de ação embutidas no texto gerado pela IA.

Formato (exato, dentro do texto livre):

    [ADD:<produto>:<qtd>]   adiciona ao carrinho
    [REMOVE:<produto>]      remove a linha do carrinho
    [START_CHECKOUT]        inicia a coleta de dados
    [IMG:<url>]             imagem a enviar junto da resposta

O id do produto vai até o próximo ``:`` ou ``]``. Apenas a primeira tag de
cada tipo é interpretada; tags desconhecidas ficam no texto.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Sequence, Union

from app.fsm.states import FlowState
from app.schemas.conversation import ConversationState, Product
from app.services.cart import add_to_cart, find_product, remove_from_cart
from app.services.list_intent import advance_list_mode

logger = logging.getLogger(__name__)

ADD_TAG = re.compile(r"\[ADD:([^:\]]+):(\d+)\]")
REMOVE_TAG = re.compile(r"\[REMOVE:([^:\]]+)\]")
START_CHECKOUT_TAG = re.compile(r"\[START_CHECKOUT\]")
IMG_TAG = re.compile(r"\[IMG:([^\]\s]+)\]")

_STRIP_PATTERNS = (
    ADD_TAG,
    REMOVE_TAG,
    START_CHECKOUT_TAG,
    IMG_TAG,
)

EMPTY_CART_NOTICE = "Seu carrinho está vazio! Adicione alguns produtos primeiro. 🛒"
NAME_PROMPT = "Para finalizar, preciso de alguns dados. Qual seu nome completo?"
UPSELL_PROMPT = "Deseja mais alguma coisa? 😊"


@dataclass(frozen=True)
class AddAction:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class RemoveAction:
    product_id: str


@dataclass(frozen=True)
class StartCheckoutAction:
    pass


@dataclass(frozen=True)
class ImageAction:
    url: str


Action = Union[AddAction, RemoveAction, StartCheckoutAction, ImageAction]


@dataclass(frozen=True)
class ReplyDraft:
    state: ConversationState
    text: str
    image_url: str | None = None
    suffixes: tuple[str, ...] = field(default_factory=tuple)

    def render(self) -> str:
        parts = [part for part in (self.text, *self.suffixes) if part]
        return "\n\n".join(parts)


def parse_actions(text: str) -> list[Action]:
    """Extrai as ações na ordem em que são aplicadas.

    ADD e REMOVE vêm antes de START_CHECKOUT, então uma resposta com
    ``[ADD:..] [START_CHECKOUT]`` abre o checkout já com o item no carrinho
    (a checagem de carrinho vazio acontece depois das mudanças).
    """
    if not text:
        return []

    actions: list[Action] = []
    add_match = ADD_TAG.search(text)
    if add_match:
        actions.append(AddAction(product_id=add_match.group(1), quantity=int(add_match.group(2))))

    remove_match = REMOVE_TAG.search(text)
    if remove_match:
        actions.append(RemoveAction(product_id=remove_match.group(1)))

    img_match = IMG_TAG.search(text)
    if img_match:
        actions.append(ImageAction(url=img_match.group(1)))

    if START_CHECKOUT_TAG.search(text):
        actions.append(StartCheckoutAction())

    return actions


def collapse_whitespace(text: str) -> str:
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def strip_action_tags(text: str) -> str:
    if not text:
        return ""
    for pattern in _STRIP_PATTERNS:
        text = pattern.sub("", text)
    return collapse_whitespace(text)


def _apply_add(draft: ReplyDraft, action: AddAction, products: Sequence[Product], max_quantity: int) -> ReplyDraft:
    product = find_product(products, action.product_id)
    if product is None:
        logger.info("Tag ADD ignorada: produto %s fora do catálogo", action.product_id)
        return draft

    qty = min(action.quantity, max_quantity)
    if qty < 1:
        return draft

    state = draft.state.model_copy(update={"cart": add_to_cart(draft.state.cart, product, qty)})
    list_mode = state.customer_data.list_mode
    if list_mode is not None and list_mode.active:
        advanced, prompt = advance_list_mode(list_mode)
        state = state.with_customer_data(list_mode=advanced)
        return replace(draft, state=state, suffixes=draft.suffixes + (prompt,))

    suffixes = draft.suffixes
    if not draft.text.rstrip().endswith("?"):
        suffixes = suffixes + (UPSELL_PROMPT,)
    return replace(draft, state=state, suffixes=suffixes)


def _apply_start_checkout(draft: ReplyDraft) -> ReplyDraft:
    if not draft.state.cart:
        return replace(draft, text=EMPTY_CART_NOTICE, suffixes=(), image_url=None)

    state = draft.state.with_customer_data(flow_state=FlowState.COLLECTING_NAME, list_mode=None)
    return replace(draft, state=state, suffixes=(NAME_PROMPT,))


def reduce_action(
    draft: ReplyDraft,
    action: Action,
    products: Sequence[Product],
    *,
    max_quantity: int = 99,
) -> ReplyDraft:
    if isinstance(action, AddAction):
        return _apply_add(draft, action, products, max_quantity)
    if isinstance(action, RemoveAction):
        cart = remove_from_cart(draft.state.cart, action.product_id)
        return replace(draft, state=draft.state.model_copy(update={"cart": cart}))
    if isinstance(action, ImageAction):
        return replace(draft, image_url=action.url)
    if isinstance(action, StartCheckoutAction):
        return _apply_start_checkout(draft)
    raise TypeError(f"Ação desconhecida: {action!r}")


def apply_reply_actions(
    state: ConversationState,
    raw_reply: str,
    products: Sequence[Product],
    *,
    max_quantity: int = 99,
) -> ReplyDraft:
    draft = ReplyDraft(state=state, text=strip_action_tags(raw_reply))
    for action in parse_actions(raw_reply):
        draft = reduce_action(draft, action, products, max_quantity=max_quantity)
    return draft
