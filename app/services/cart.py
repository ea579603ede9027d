from __future__ import annotations

from typing import Iterable, Sequence

from app.schemas.conversation import CartItem, Product


def format_price(value: float) -> str:
    return f"R$ {value:.2f}"


def add_to_cart(cart: Sequence[CartItem], product: Product, qty: int) -> tuple[CartItem, ...]:
    """Soma a quantidade se o produto já está no carrinho, senão cria a linha.

    A linha nova guarda um retrato do produto (nome, preço, imagem) no
    momento da inclusão.
    """
    if qty < 1:
        return tuple(cart)

    updated: list[CartItem] = []
    merged = False
    for entry in cart:
        if not merged and entry.id == product.id:
            entry = entry.model_copy(update={"quantity": entry.quantity + qty})
            merged = True
        updated.append(entry)

    if not merged:
        updated.append(
            CartItem(
                id=product.id,
                name=product.name,
                description=product.description or "",
                unit_price=product.price,
                quantity=qty,
                image_url=product.image_url,
                unit_type=product.unit_type,
                bar_code=product.bar_code,
            )
        )
    return tuple(updated)


def remove_from_cart(cart: Sequence[CartItem], product_id: str) -> tuple[CartItem, ...]:
    for idx, entry in enumerate(cart):
        if entry.id == product_id:
            return tuple(cart[:idx]) + tuple(cart[idx + 1 :])
    return tuple(cart)


def cart_total(cart: Iterable[CartItem]) -> float:
    return sum(entry.unit_price * entry.quantity for entry in cart)


def find_product(products: Iterable[Product], product_id: str) -> Product | None:
    return next((product for product in products if product.id == product_id), None)


def build_cart_lines(cart: Sequence[CartItem], bullet: str = "-") -> str:
    if not cart:
        return "Vazio"
    return "\n".join(
        f"{bullet} {entry.quantity}x {entry.name} = {format_price(entry.line_total)}"
        for entry in cart
    )
