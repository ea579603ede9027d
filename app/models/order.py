from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from app.core.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_number"),)

    id = Column(Integer, primary_key=True)

    tenant_id = Column(Integer, index=True, nullable=False)
    order_number = Column(Integer, nullable=False)

    # Identificação do cliente
    customer_name = Column(String(120), default="", nullable=False)
    customer_phone = Column(String(30), index=True, nullable=False)

    # Pedido
    items_json = Column(Text, default="[]", nullable=False)
    address_json = Column(Text, default="{}", nullable=False)
    payment_type = Column(String(30), default="", nullable=False)

    # em centavos
    subtotal_cents = Column(Integer, default=0, nullable=False)
    delivery_fee_cents = Column(Integer, default=0, nullable=False)
    total_cents = Column(Integer, default=0, nullable=False)

    status = Column(String, default="pending", nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
