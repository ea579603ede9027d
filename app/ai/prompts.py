from __future__ import annotations

from typing import Sequence

from app.core.config import PROMPT_PRODUCTS_LIMIT
from app.fsm.states import PAYMENT_LABELS, FlowState
from app.schemas.conversation import AgentSettings, CartItem, CustomerData, ListModeState, Product
from app.services.cart import build_cart_lines, cart_total, format_price

_BROWSING_INSTRUCTIONS = """
ESTADO ATUAL: Cliente navegando/comprando
- Ajude a encontrar produtos
- Para adicionar: responda e inclua [ADD:ID_PRODUTO:QUANTIDADE]
- Para remover: responda e inclua [REMOVE:ID_PRODUTO]
- Quando cliente quiser FINALIZAR/FECHAR pedido: responda e inclua [START_CHECKOUT]"""


def _format_products(products: Sequence[Product], limit: int) -> str:
    if not products:
        return "Nenhum produto disponivel"
    lines = []
    for product in list(products)[:limit]:
        line = f"- {product.name}: {format_price(product.price)} (ID: {product.id})"
        if product.image_url:
            line += f" [IMG:{product.image_url}]"
        lines.append(line)
    return "\n".join(lines)


def _format_cart(cart: Sequence[CartItem], delivery_price: float) -> str:
    lines = build_cart_lines(cart)
    if not cart:
        return lines
    subtotal = cart_total(cart)
    return (
        f"{lines}\n\nSubtotal: {format_price(subtotal)} | "
        f"Entrega: {format_price(delivery_price)} | "
        f"TOTAL: {format_price(subtotal + delivery_price)}"
    )


def _confirming_instructions(customer_data: CustomerData) -> str:
    payment = PAYMENT_LABELS.get(customer_data.payment_type or "", customer_data.payment_type or "N/A")
    return f"""
ESTADO ATUAL: Confirmando pedido
Dados coletados:
- Nome: {customer_data.name or 'N/A'}
- Endereco: {customer_data.street or ''}, {customer_data.number or ''}
- Bairro: {customer_data.neighborhood or ''}
- Cidade: {customer_data.city or ''}
- CEP: {customer_data.zip_code or ''}
- Complemento: {customer_data.complement or 'N/A'}
- Referencia: {customer_data.reference or 'N/A'}
- Pagamento: {payment}

Pergunte se esta tudo certo. Se SIM: [CONFIRM_ORDER]. Se NAO: [CANCEL_CHECKOUT]"""


def _list_mode_instructions(list_mode: ListModeState) -> str:
    items = "\n".join(f"{idx}. {item}" for idx, item in enumerate(list_mode.items, start=1))
    current = list_mode.current_item or ""
    return f"""
MODO LISTA DE COMPRAS ({list_mode.done}/{list_mode.total} itens resolvidos)
Lista do cliente:
{items}
- Trate UM item por vez. Item atual: {current}
- Sugira o produto do catalogo que corresponde ao item atual e confirme com o cliente
- Quando o cliente confirmar, inclua [ADD:ID_PRODUTO:QUANTIDADE] e siga para o proximo item"""


def build_system_prompt(
    settings: AgentSettings,
    products: Sequence[Product],
    cart: Sequence[CartItem],
    customer_data: CustomerData,
    *,
    products_limit: int = PROMPT_PRODUCTS_LIMIT,
) -> str:
    flow_state = customer_data.flow_state
    state_instructions = ""
    if flow_state == FlowState.BROWSING:
        state_instructions = _BROWSING_INSTRUCTIONS
        list_mode = customer_data.list_mode
        if list_mode is not None and list_mode.active:
            state_instructions += "\n" + _list_mode_instructions(list_mode)
    elif flow_state == FlowState.CONFIRMING_ORDER:
        state_instructions = _confirming_instructions(customer_data)

    return f"""Voce e {settings.agent_name}, assistente de vendas da {settings.company_name}.

REGRAS:
- Respostas CURTAS (2-3 linhas)
- Seja simpatico e direto
- Use 1-2 emojis por mensagem

PRODUTOS DISPONIVEIS:
{_format_products(products, products_limit)}

CARRINHO ATUAL:
{_format_cart(cart, settings.delivery_price)}
{state_instructions}""".rstrip() + "\n"


def welcome_message(settings: AgentSettings) -> str:
    if settings.welcome_message:
        return settings.welcome_message
    return (
        f"Olá! Sou o {settings.agent_name}, assistente virtual da "
        f"{settings.company_name}. Como posso ajudar?"
    )
