import asyncio

import pytest

from app.ai.actions import EMPTY_CART_NOTICE
from app.fsm.engine import (
    CANCELLED_REPLY,
    CONFIRM_REPROMPT,
    ORDER_ERROR_REPLY,
    PAYMENT_MENU,
    CreateOrder,
    apply_browsing_reply,
    build_order_summary,
    collect_field,
    complete_order,
    normalize_zipcode,
    order_failed,
    run_step,
    split_city_uf,
)
from app.fsm.states import FlowState
from app.schemas.conversation import ConversationState, CustomerData, OrderResult
from app.services.cart import add_to_cart
from tests.fixtures_data import CATALOG, CHECKOUT_ANSWERS, PIZZA, REFRI, STORE_SETTINGS


class FakeGenerator:
    name = "fake"

    def __init__(self, reply="Olá!"):
        self.reply = reply
        self.calls = []

    async def generate(self, system_prompt, history, user_message):
        self.calls.append((system_prompt, list(history), user_message))
        return self.reply


def _step(state, text, generator=None):
    return asyncio.run(
        run_step(
            state,
            text,
            settings=STORE_SETTINGS,
            products=CATALOG,
            history=(),
            generator=generator or FakeGenerator(),
        )
    )


def _state_in(flow_state, cart=(), **data):
    return ConversationState(cart=cart, customer_data=CustomerData(flow_state=flow_state, **data))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("01310100", "01310-100"), ("01310-100", "01310-100"), ("123", "123")],
)
def test_normalize_zipcode(raw, expected):
    assert normalize_zipcode(raw) == expected


def test_split_city_uf():
    assert split_city_uf("São Paulo - SP") == ("São Paulo", "SP")
    assert split_city_uf("Niterói rj") == ("Niterói", "RJ")
    assert split_city_uf("Curitiba") == ("Curitiba", None)


def test_city_step_without_uf_leaves_it_unset():
    result = collect_field(_state_in(FlowState.COLLECTING_CITY), "  Curitiba ")

    assert result.state.customer_data.city == "Curitiba"
    assert result.state.customer_data.uf is None
    assert result.flow_state == FlowState.COLLECTING_ZIPCODE


def test_complement_nao_is_stored_empty():
    result = collect_field(_state_in(FlowState.COLLECTING_COMPLEMENT), "Não")

    assert result.state.customer_data.complement == ""
    assert result.flow_state == FlowState.COLLECTING_REFERENCE


def test_full_checkout_walk_collects_every_field():
    cart = add_to_cart((), PIZZA, 2)
    state = _state_in(FlowState.COLLECTING_NAME, cart=cart)

    for text, expected_state in CHECKOUT_ANSWERS:
        result = _step(state, text)
        assert result.flow_state.value == expected_state
        state = result.state

    data = state.customer_data
    assert data.name == "João Silva"
    assert data.street == "Rua das Flores"
    assert data.number == "123"
    assert data.neighborhood == "Centro"
    assert (data.city, data.uf) == ("São Paulo", "SP")
    assert data.zip_code == "01310-100"
    assert data.complement == ""
    assert data.reference == "Perto da praça"
    assert data.payment_type == "PaymentType.creditcard"
    assert state.cart == cart


def test_name_step_greets_customer():
    result = _step(_state_in(FlowState.COLLECTING_NAME), "Ana")

    assert "Ana" in result.reply
    assert result.flow_state == FlowState.COLLECTING_STREET


def test_reference_step_shows_payment_menu():
    result = _step(_state_in(FlowState.COLLECTING_REFERENCE), "nao")

    assert result.reply == PAYMENT_MENU


def test_payment_two_is_credit_card_and_summary_total():
    state = _state_in(
        FlowState.COLLECTING_PAYMENT,
        cart=add_to_cart((), PIZZA, 2),
        name="Ana",
        city="São Paulo",
        uf="SP",
    )

    result = _step(state, "2")

    assert result.flow_state == FlowState.CONFIRMING_ORDER
    assert result.state.customer_data.payment_type == "PaymentType.creditcard"
    assert "Cartao Credito" in result.reply
    assert "*TOTAL:* R$ 25.00" in result.reply
    assert "*Entrega:* R$ 5.00" in result.reply
    assert "• 2x Pizza Calabresa - R$ 20.00" in result.reply
    assert "São Paulo - SP" in result.reply


def test_unknown_payment_defaults_to_cash():
    result = _step(_state_in(FlowState.COLLECTING_PAYMENT, cart=add_to_cart((), PIZZA, 1)), "cheque")

    assert result.state.customer_data.payment_type == "PaymentType.cash"
    assert "*Pagamento:* Dinheiro" in result.reply


def test_summary_lists_optional_fields_only_when_present():
    state = _state_in(FlowState.CONFIRMING_ORDER, cart=add_to_cart((), PIZZA, 1), complement="Apto 12", reference="")

    summary = build_order_summary(state, STORE_SETTINGS)

    assert "*Complemento:* Apto 12" in summary
    assert "Referência" not in summary


@pytest.mark.parametrize("answer", ["sim", "S", "Confirmar", "confirmo!"])
def test_confirming_yes_emits_create_order(answer):
    state = _state_in(FlowState.CONFIRMING_ORDER, cart=add_to_cart((), PIZZA, 2))

    result = _step(state, answer)

    assert result.effects == (CreateOrder(delivery_fee=5.0),)
    assert result.state == state


def test_confirming_yes_with_empty_cart_returns_to_browsing():
    state = _state_in(FlowState.CONFIRMING_ORDER, name="Ana")

    result = _step(state, "sim")

    assert result.effects == ()
    assert result.flow_state == FlowState.BROWSING
    assert result.reply == EMPTY_CART_NOTICE


def test_confirming_no_returns_to_browsing_and_keeps_cart():
    cart = add_to_cart((), PIZZA, 2)

    result = _step(_state_in(FlowState.CONFIRMING_ORDER, cart=cart), "não")

    assert result.flow_state == FlowState.BROWSING
    assert result.state.cart == cart
    assert result.reply == CANCELLED_REPLY
    assert result.effects == ()


def test_confirming_other_text_reprompts():
    state = _state_in(FlowState.CONFIRMING_ORDER, cart=add_to_cart((), PIZZA, 1))

    result = _step(state, "talvez")

    assert result.state == state
    assert result.reply == CONFIRM_REPROMPT


def test_complete_order_resets_state():
    state = _state_in(FlowState.CONFIRMING_ORDER, cart=add_to_cart((), PIZZA, 2), name="Ana")

    result = complete_order(state, OrderResult(order_number=7, total=25.0))

    assert result.state.cart == ()
    assert result.state.customer_data == CustomerData(flow_state=FlowState.BROWSING)
    assert "#7" in result.reply
    assert "R$ 25.00" in result.reply


def test_order_failed_keeps_state():
    state = _state_in(FlowState.CONFIRMING_ORDER, cart=add_to_cart((), PIZZA, 2))

    result = order_failed(state)

    assert result.state == state
    assert result.reply == ORDER_ERROR_REPLY


def test_browsing_calls_generator_and_applies_tags():
    generator = FakeGenerator("Adicionei 1x Pizza Calabresa! [ADD:P1:1]")

    result = _step(ConversationState(), "quero uma pizza", generator)

    assert len(generator.calls) == 1
    system_prompt, _history, user_message = generator.calls[0]
    assert user_message == "quero uma pizza"
    assert "(ID: P1)" in system_prompt
    assert result.state.cart[0].id == "P1"
    assert "[ADD" not in result.reply


def test_order_completed_is_treated_as_browsing():
    generator = FakeGenerator("Oi de novo!")

    result = _step(_state_in(FlowState.ORDER_COMPLETED), "oi", generator)

    assert generator.calls
    assert result.flow_state == FlowState.BROWSING


def test_wizard_states_never_call_generator():
    generator = FakeGenerator()

    _step(_state_in(FlowState.COLLECTING_STREET), "Rua A", generator)

    assert generator.calls == []


def test_start_checkout_with_empty_cart_keeps_state():
    generator = FakeGenerator("Vamos finalizar! [START_CHECKOUT]")
    state = ConversationState()

    result = _step(state, "fechar", generator)

    assert result.state == state
    assert result.reply == EMPTY_CART_NOTICE


def test_recommendation_dedup_guard():
    state = ConversationState().with_customer_data(last_recommended_product_id="P1")

    same = apply_browsing_reply(state, "Recomendo a Pizza Calabresa!", CATALOG)
    assert same.image_url is None
    assert same.state.customer_data.last_recommended_product_id == "P1"

    other = apply_browsing_reply(state, "Recomendo o Refrigerante Lata geladinho!", CATALOG)
    assert other.image_url == REFRI.image_url
    assert other.state.customer_data.last_recommended_product_id == "P2"


def test_generator_errors_propagate():
    class BrokenGenerator(FakeGenerator):
        async def generate(self, system_prompt, history, user_message):
            raise RuntimeError("fora do ar")

    with pytest.raises(RuntimeError):
        _step(ConversationState(), "oi", BrokenGenerator())
