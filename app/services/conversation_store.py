from __future__ import annotations

import json
import logging
from typing import Callable, Protocol, Sequence

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_AGENT_NAME, DEFAULT_COMPANY_NAME, DEFAULT_DELIVERY_PRICE
from app.models.agent_settings import AgentSettings as AgentSettingsModel
from app.models.conversation import Conversation as ConversationModel
from app.models.order import Order
from app.models.product import Product as ProductModel
from app.schemas.conversation import (
    AgentSettings,
    CartItem,
    ChatMessage,
    Conversation,
    ConversationState,
    CustomerData,
    OrderResult,
    Product,
)
from app.services.cart import cart_total

logger = logging.getLogger(__name__)


class OrderCreationError(RuntimeError):
    """Falha ao gravar o pedido (colisão de número, banco indisponível)."""


class ConversationStore(Protocol):
    def load_conversation(self, tenant_id: int, phone: str) -> Conversation:
        ...

    def save_conversation(self, conversation: Conversation) -> None:
        ...

    def load_products(self, tenant_id: int, limit: int) -> list[Product]:
        ...

    def load_settings(self, tenant_id: int) -> AgentSettings:
        ...

    def create_order(
        self,
        tenant_id: int,
        phone: str,
        customer_data: CustomerData,
        cart: Sequence[CartItem],
        delivery_fee: float,
    ) -> OrderResult:
        ...


def _to_cents(value: float) -> int:
    return int(round((value or 0.0) * 100))


def _from_cents(value: int | None) -> float:
    return (value or 0) / 100


def _load_json(raw: str | None, default):
    try:
        data = json.loads(raw or "")
    except (TypeError, ValueError):
        return default
    return data if isinstance(data, type(default)) else default


def _parse_messages(raw: str | None) -> tuple[ChatMessage, ...]:
    messages = []
    for entry in _load_json(raw, []):
        try:
            messages.append(ChatMessage.model_validate(entry))
        except ValidationError:
            logger.warning("Mensagem inválida ignorada no histórico")
    return tuple(messages)


def _parse_cart(raw: str | None) -> tuple[CartItem, ...]:
    items = []
    for entry in _load_json(raw, []):
        try:
            items.append(CartItem.model_validate(entry))
        except ValidationError:
            logger.warning("Item de carrinho inválido ignorado")
    return tuple(items)


def _parse_customer_data(raw: str | None) -> CustomerData:
    try:
        return CustomerData.model_validate(_load_json(raw, {}))
    except ValidationError:
        logger.warning("Dados do cliente inválidos; reiniciando fluxo")
        return CustomerData()


def _dump(items) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items], ensure_ascii=False)


def _address_payload(customer_data: CustomerData) -> dict:
    return {
        "street": customer_data.street or "",
        "number": customer_data.number or "",
        "neighborhood": customer_data.neighborhood or "",
        "city": customer_data.city or "",
        "uf": customer_data.uf or "",
        "zip_code": customer_data.zip_code or "",
        "complement": customer_data.complement or "",
        "reference": customer_data.reference or "",
    }


class SqlConversationStore:
    """Persistência das conversas, catálogo e pedidos via SQLAlchemy."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def load_conversation(self, tenant_id: int, phone: str) -> Conversation:
        db = self._session_factory()
        try:
            row = (
                db.query(ConversationModel)
                .filter(ConversationModel.tenant_id == tenant_id, ConversationModel.phone == phone)
                .first()
            )
            if row is None:
                return Conversation(tenant_id=tenant_id, phone=phone)
            return Conversation(
                tenant_id=tenant_id,
                phone=phone,
                messages=_parse_messages(row.messages_json),
                state=ConversationState(
                    cart=_parse_cart(row.cart_json),
                    customer_data=_parse_customer_data(row.customer_data_json),
                ),
            )
        finally:
            db.close()

    def save_conversation(self, conversation: Conversation) -> None:
        db = self._session_factory()
        try:
            row = (
                db.query(ConversationModel)
                .filter(
                    ConversationModel.tenant_id == conversation.tenant_id,
                    ConversationModel.phone == conversation.phone,
                )
                .first()
            )
            if row is None:
                row = ConversationModel(tenant_id=conversation.tenant_id, phone=conversation.phone)
                db.add(row)
            row.messages_json = _dump(conversation.messages)
            row.cart_json = _dump(conversation.state.cart)
            row.customer_data_json = json.dumps(
                conversation.state.customer_data.model_dump(mode="json", exclude_none=True),
                ensure_ascii=False,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def load_products(self, tenant_id: int, limit: int) -> list[Product]:
        db = self._session_factory()
        try:
            rows = (
                db.query(ProductModel)
                .filter(ProductModel.tenant_id == tenant_id, ProductModel.active.is_(True))
                .order_by(ProductModel.pk.asc())
                .limit(limit)
                .all()
            )
            return [
                Product(
                    id=row.product_id,
                    name=row.name,
                    description=row.description or "",
                    price=_from_cents(row.price_cents),
                    image_url=row.image_url,
                    unit_type=row.unit_type or "unidade",
                    bar_code=row.bar_code,
                )
                for row in rows
            ]
        finally:
            db.close()

    def load_settings(self, tenant_id: int) -> AgentSettings:
        db = self._session_factory()
        try:
            row = db.query(AgentSettingsModel).filter(AgentSettingsModel.tenant_id == tenant_id).first()
        finally:
            db.close()

        if row is None:
            return AgentSettings(
                tenant_id=tenant_id,
                agent_name=DEFAULT_AGENT_NAME,
                company_name=DEFAULT_COMPANY_NAME,
                delivery_price=DEFAULT_DELIVERY_PRICE,
            )
        delivery_price = (
            DEFAULT_DELIVERY_PRICE
            if row.delivery_price_cents is None
            else _from_cents(row.delivery_price_cents)
        )
        return AgentSettings(
            tenant_id=tenant_id,
            agent_name=row.agent_name or DEFAULT_AGENT_NAME,
            company_name=row.company_name or DEFAULT_COMPANY_NAME,
            delivery_price=delivery_price,
            welcome_message=row.welcome_message,
            provider=row.provider or "mock",
            model=row.model,
            temperature=row.temperature,
        )

    def create_order(
        self,
        tenant_id: int,
        phone: str,
        customer_data: CustomerData,
        cart: Sequence[CartItem],
        delivery_fee: float,
    ) -> OrderResult:
        subtotal_cents = _to_cents(cart_total(cart))
        delivery_cents = _to_cents(delivery_fee)
        total_cents = subtotal_cents + delivery_cents

        db = self._session_factory()
        try:
            last_number = (
                db.query(func.max(Order.order_number)).filter(Order.tenant_id == tenant_id).scalar()
            )
            order = Order(
                tenant_id=tenant_id,
                order_number=(last_number or 0) + 1,
                customer_name=customer_data.name or "",
                customer_phone=phone,
                items_json=_dump(cart),
                address_json=json.dumps(_address_payload(customer_data), ensure_ascii=False),
                payment_type=customer_data.payment_type or "",
                subtotal_cents=subtotal_cents,
                delivery_fee_cents=delivery_cents,
                total_cents=total_cents,
                status="pending",
            )
            db.add(order)
            db.commit()
            db.refresh(order)
            logger.info("Pedido criado", extra={"order_number": order.order_number})
            return OrderResult(
                id=order.id,
                order_number=order.order_number,
                total=_from_cents(order.total_cents),
                status=order.status,
            )
        except IntegrityError as exc:
            db.rollback()
            raise OrderCreationError(f"Número de pedido já utilizado para o tenant {tenant_id}") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise OrderCreationError(str(exc)) from exc
        finally:
            db.close()
