from sqlalchemy import Column, DateTime, Float, Integer, String, Text, func

from app.core.database import Base


class AgentSettings(Base):
    __tablename__ = "agent_settings"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, index=True, nullable=False, unique=True)
    agent_name = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    delivery_price_cents = Column(Integer, nullable=True)
    welcome_message = Column(Text, nullable=True)
    provider = Column(String, nullable=False, default="mock")
    model = Column(String, nullable=True)
    temperature = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
