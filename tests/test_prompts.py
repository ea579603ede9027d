from app.ai.prompts import build_system_prompt, welcome_message
from app.fsm.states import FlowState
from app.schemas.conversation import AgentSettings, CustomerData, Product
from app.services.cart import add_to_cart
from app.services.list_intent import activate_list_mode
from tests.fixtures_data import BOLO, CATALOG, PIZZA, STORE_SETTINGS


def test_browsing_prompt_lists_products_and_tag_contract():
    prompt = build_system_prompt(STORE_SETTINGS, CATALOG, (), CustomerData())

    assert "Voce e Bia, assistente de vendas da Pizzaria Teste." in prompt
    assert "- Pizza Calabresa: R$ 10.00 (ID: P1) [IMG:https://img.test/pizza.jpg]" in prompt
    assert "- Bolo de Cenoura: R$ 12.00 (ID: P3)" in prompt
    assert f"(ID: {BOLO.id}) [IMG" not in prompt
    assert "[ADD:ID_PRODUTO:QUANTIDADE]" in prompt
    assert "[START_CHECKOUT]" in prompt
    assert "CARRINHO ATUAL:\nVazio" in prompt


def test_prompt_limits_products():
    products = [Product(id=f"X{i}", name=f"Item {i}", price=1.0) for i in range(30)]

    prompt = build_system_prompt(STORE_SETTINGS, products, (), CustomerData())

    assert "(ID: X19)" in prompt
    assert "(ID: X20)" not in prompt


def test_prompt_cart_totals_include_delivery():
    cart = add_to_cart((), PIZZA, 2)

    prompt = build_system_prompt(STORE_SETTINGS, CATALOG, cart, CustomerData())

    assert "- 2x Pizza Calabresa = R$ 20.00" in prompt
    assert "Subtotal: R$ 20.00 | Entrega: R$ 5.00 | TOTAL: R$ 25.00" in prompt


def test_prompt_list_mode_block():
    data = CustomerData(list_mode=activate_list_mode("- pizza\n- refri"))

    prompt = build_system_prompt(STORE_SETTINGS, CATALOG, (), data)

    assert "MODO LISTA DE COMPRAS (0/2 itens resolvidos)" in prompt
    assert "Item atual: pizza" in prompt


def test_confirming_prompt_recaps_customer_data():
    data = CustomerData(
        flow_state=FlowState.CONFIRMING_ORDER,
        name="Ana",
        street="Rua A",
        number="10",
        payment_type="PaymentType.pix",
    )

    prompt = build_system_prompt(STORE_SETTINGS, CATALOG, (), data)

    assert "- Nome: Ana" in prompt
    assert "- Endereco: Rua A, 10" in prompt
    assert "- Pagamento: PIX" in prompt
    assert "[ADD:ID_PRODUTO" not in prompt


def test_welcome_message_default_and_custom():
    assert "Bia" in welcome_message(STORE_SETTINGS)
    custom = AgentSettings(tenant_id=1, welcome_message="Bem-vindo!")
    assert welcome_message(custom) == "Bem-vindo!"
