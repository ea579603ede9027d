from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from app.core.database import Base


class Product(Base):
    __tablename__ = "products"

    pk = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, index=True, nullable=False)
    product_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, default="", nullable=False)
    price_cents = Column(Integer, nullable=False)
    image_url = Column(String, nullable=True)
    unit_type = Column(String, default="unidade", nullable=False)
    bar_code = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
