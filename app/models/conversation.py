from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from app.core.database import Base


class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("tenant_id", "phone", name="uq_conversations_tenant_phone"),)

    id = Column(Integer, primary_key=True)

    tenant_id = Column(Integer, index=True, nullable=False)
    phone = Column(String, index=True, nullable=False)

    # histórico completo; só a janela recente vai para a IA
    messages_json = Column(Text, default="[]", nullable=False)
    cart_json = Column(Text, default="[]", nullable=False)

    # dados coletados pelo wizard + flow_state
    customer_data_json = Column(Text, default="{}", nullable=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
