from app.services.cart import add_to_cart, build_cart_lines, cart_total, format_price, remove_from_cart
from tests.fixtures_data import PIZZA, REFRI


def test_add_to_cart_merges_same_product():
    cart = add_to_cart((), PIZZA, 1)
    cart = add_to_cart(cart, PIZZA, 2)

    assert len(cart) == 1
    assert cart[0].quantity == 3
    assert cart_total(cart) == 30.0


def test_add_to_cart_snapshots_product_fields():
    cart = add_to_cart((), REFRI, 2)

    entry = cart[0]
    assert entry.id == "P2"
    assert entry.name == "Refrigerante Lata"
    assert entry.unit_price == 6.5
    assert entry.image_url == "https://img.test/refri.jpg"


def test_add_to_cart_ignores_non_positive_quantity():
    cart = add_to_cart((), PIZZA, 1)

    assert add_to_cart(cart, REFRI, 0) == cart
    assert add_to_cart(cart, REFRI, -3) == cart


def test_add_to_cart_does_not_mutate_input():
    original = add_to_cart((), PIZZA, 1)
    add_to_cart(original, PIZZA, 5)

    assert original[0].quantity == 1


def test_remove_from_cart_missing_id_is_noop():
    cart = add_to_cart(add_to_cart((), PIZZA, 1), REFRI, 1)

    assert remove_from_cart(cart, "nao-existe") == cart
    remaining = remove_from_cart(cart, "P1")
    assert [entry.id for entry in remaining] == ["P2"]


def test_cart_total_and_lines():
    cart = add_to_cart(add_to_cart((), PIZZA, 2), REFRI, 1)

    assert cart_total(cart) == 26.5
    assert cart_total(()) == 0
    assert build_cart_lines(()) == "Vazio"
    assert build_cart_lines(cart).splitlines() == [
        "- 2x Pizza Calabresa = R$ 20.00",
        "- 1x Refrigerante Lata = R$ 6.50",
    ]
    assert format_price(25) == "R$ 25.00"
