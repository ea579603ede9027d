from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from app.ai.actions import EMPTY_CART_NOTICE, apply_reply_actions
from app.ai.base import TextGenerator
from app.ai.prompts import build_system_prompt
from app.ai.recommendation import pick_recommended_product
from app.fsm import states
from app.fsm.states import FlowState
from app.schemas.conversation import (
    AgentSettings,
    ChatMessage,
    ConversationState,
    CustomerData,
    OrderResult,
    Product,
)
from app.services.cart import cart_total, format_price
from app.services.normalizer import normalize

_UF_SUFFIX = re.compile(r"[\s-]+([A-Za-z]{2})$")

CONFIRM_ANSWERS = {"sim", "s", "confirmar", "confirmo"}
CANCEL_ANSWERS = {"nao", "n", "cancelar"}
EMPTY_ANSWERS = {"nao", "nenhum", "nenhuma"}

PAYMENT_MENU = (
    "Como vai pagar?\n"
    "1 - Dinheiro\n"
    "2 - Cartao Credito\n"
    "3 - Cartao Debito\n"
    "4 - PIX\n\n"
    "Digite o numero:"
)

_FIELD_QUESTIONS = {
    FlowState.COLLECTING_NUMBER: "Qual o número da casa/apartamento?",
    FlowState.COLLECTING_NEIGHBORHOOD: "Qual o bairro?",
    FlowState.COLLECTING_CITY: "Qual a cidade?",
    FlowState.COLLECTING_ZIPCODE: "Qual o CEP?",
    FlowState.COLLECTING_COMPLEMENT: (
        'Tem algum complemento? (apt, bloco, etc.) Se não tiver, digite "nao"'
    ),
    FlowState.COLLECTING_REFERENCE: (
        'Algum ponto de referência? (próximo a...) Se não tiver, digite "nao"'
    ),
    FlowState.COLLECTING_PAYMENT: PAYMENT_MENU,
}

CONFIRM_REPROMPT = "Por favor, responda *SIM* para confirmar ou *NAO* para cancelar o pedido."
CANCELLED_REPLY = "Pedido cancelado. Posso ajudar em mais alguma coisa? Seu carrinho ainda está salvo. 🛒"
ORDER_ERROR_REPLY = "Desculpe, houve um erro ao criar o pedido. Por favor, tente novamente."


@dataclass(frozen=True)
class CreateOrder:
    delivery_fee: float


@dataclass(frozen=True)
class StepResult:
    state: ConversationState
    reply: str
    image_url: str | None = None
    effects: tuple[CreateOrder, ...] = field(default_factory=tuple)

    @property
    def flow_state(self) -> FlowState:
        return self.state.flow_state


def normalize_zipcode(text: str) -> str:
    digits = re.sub(r"\D", "", text or "")
    if re.fullmatch(r"\d{8}", digits):
        return f"{digits[:5]}-{digits[5:]}"
    return digits


def split_city_uf(text: str) -> tuple[str, str | None]:
    city = (text or "").strip()
    match = _UF_SUFFIX.search(city)
    if not match:
        return city, None
    return city[: match.start()].strip(), match.group(1).upper()


def resolve_payment(text: str) -> tuple[str, str]:
    payment_type = states.PAYMENT_TYPES.get((text or "").strip(), states.DEFAULT_PAYMENT_TYPE)
    return payment_type, states.PAYMENT_LABELS[payment_type]


def build_order_summary(state: ConversationState, settings: AgentSettings) -> str:
    data = state.customer_data
    delivery = settings.delivery_price or 0.0
    total = cart_total(state.cart) + delivery
    items = "\n".join(
        f"• {entry.quantity}x {entry.name} - {format_price(entry.line_total)}" for entry in state.cart
    )
    city = data.city or ""
    if data.uf:
        city = f"{city} - {data.uf}"
    payment = states.PAYMENT_LABELS.get(data.payment_type or "", "Dinheiro")

    lines = [
        "📋 *RESUMO DO PEDIDO*",
        "",
        "*Itens:*",
        items or "(sem itens)",
        "",
        f"*Entrega:* {format_price(delivery)}",
        f"*TOTAL:* {format_price(total)}",
        "",
        f"*Entregar para:* {data.name or ''}",
        f"*Endereço:* {data.street or ''}, {data.number or ''}",
        f"*Bairro:* {data.neighborhood or ''}",
        f"*Cidade:* {city}",
        f"*CEP:* {data.zip_code or ''}",
    ]
    if data.complement:
        lines.append(f"*Complemento:* {data.complement}")
    if data.reference:
        lines.append(f"*Referência:* {data.reference}")
    lines.append(f"*Pagamento:* {payment}")
    lines.append("")
    lines.append("Está tudo certo? Responda *SIM* para confirmar ou *NAO* para cancelar.")
    return "\n".join(lines)


def collect_field(state: ConversationState, text: str) -> StepResult:
    field_name, next_state = states.FIELD_STEPS[state.flow_state]
    value = (text or "").strip()
    changes: dict = {"flow_state": next_state}

    if state.flow_state == FlowState.COLLECTING_CITY:
        city, uf = split_city_uf(value)
        changes["city"] = city
        if uf:
            changes["uf"] = uf
    elif state.flow_state == FlowState.COLLECTING_ZIPCODE:
        changes["zip_code"] = normalize_zipcode(value)
    elif state.flow_state in (FlowState.COLLECTING_COMPLEMENT, FlowState.COLLECTING_REFERENCE):
        changes[field_name] = "" if normalize(value) in EMPTY_ANSWERS else value
    else:
        changes[field_name] = value

    new_state = state.with_customer_data(**changes)
    if state.flow_state == FlowState.COLLECTING_NAME:
        reply = f"Ótimo, {value}! Agora me diz o nome da sua rua:"
    else:
        reply = _FIELD_QUESTIONS.get(next_state, "")
    return StepResult(state=new_state, reply=reply)


def collect_payment(state: ConversationState, text: str, settings: AgentSettings) -> StepResult:
    payment_type, _label = resolve_payment(text)
    new_state = state.with_customer_data(
        payment_type=payment_type, flow_state=FlowState.CONFIRMING_ORDER
    )
    return StepResult(state=new_state, reply=build_order_summary(new_state, settings))


def confirm_order(state: ConversationState, text: str, settings: AgentSettings) -> StepResult:
    answer = normalize(text)
    if answer in CONFIRM_ANSWERS:
        if not state.cart:
            return StepResult(
                state=state.with_customer_data(flow_state=FlowState.BROWSING),
                reply=EMPTY_CART_NOTICE,
            )
        # O pedido é criado pelo orquestrador; o estado só muda no sucesso.
        return StepResult(
            state=state,
            reply="",
            effects=(CreateOrder(delivery_fee=settings.delivery_price or 0.0),),
        )
    if answer in CANCEL_ANSWERS:
        return StepResult(
            state=state.with_customer_data(flow_state=FlowState.BROWSING),
            reply=CANCELLED_REPLY,
        )
    return StepResult(state=state, reply=CONFIRM_REPROMPT)


def complete_order(state: ConversationState, order: OrderResult) -> StepResult:
    reply = (
        "✅ *PEDIDO CONFIRMADO!*\n\n"
        f"Número do pedido: *#{order.order_number}*\n"
        f"Total: {format_price(order.total)}\n\n"
        "Obrigado pela preferência! Em breve você receberá atualizações sobre seu pedido. 🛵"
    )
    new_state = ConversationState(cart=(), customer_data=CustomerData(flow_state=FlowState.BROWSING))
    return StepResult(state=new_state, reply=reply)


def order_failed(state: ConversationState) -> StepResult:
    return StepResult(state=state, reply=ORDER_ERROR_REPLY)


def apply_browsing_reply(
    state: ConversationState,
    raw_reply: str,
    products: Sequence[Product],
    *,
    max_quantity: int = 99,
) -> StepResult:
    draft = apply_reply_actions(state, raw_reply, products, max_quantity=max_quantity)
    new_state = draft.state
    image_url = draft.image_url

    if image_url is None and new_state.flow_state == FlowState.BROWSING:
        product = pick_recommended_product(
            draft.text, products, new_state.customer_data.last_recommended_product_id
        )
        if product is not None:
            image_url = product.image_url
            new_state = new_state.with_customer_data(last_recommended_product_id=product.id)

    return StepResult(state=new_state, reply=draft.render(), image_url=image_url)


async def run_step(
    state: ConversationState,
    text: str,
    *,
    settings: AgentSettings,
    products: Sequence[Product],
    history: Sequence[ChatMessage],
    generator: TextGenerator,
    max_quantity: int = 99,
) -> StepResult:
    """Executa um passo do wizard para a mensagem ``text``.

    Só o estado de navegação chama a IA; erros do gerador sobem para quem
    chamou.
    """
    if state.flow_state == FlowState.ORDER_COMPLETED:
        state = state.with_customer_data(flow_state=FlowState.BROWSING)

    flow_state = state.flow_state
    if flow_state == FlowState.BROWSING:
        prompt = build_system_prompt(settings, products, state.cart, state.customer_data)
        raw_reply = await generator.generate(prompt, history, text)
        return apply_browsing_reply(state, raw_reply, products, max_quantity=max_quantity)
    if flow_state == FlowState.COLLECTING_PAYMENT:
        return collect_payment(state, text, settings)
    if flow_state == FlowState.CONFIRMING_ORDER:
        return confirm_order(state, text, settings)
    return collect_field(state, text)
