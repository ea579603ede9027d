from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.fsm.states import FlowState


class Product(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    price: float = 0.0
    image_url: Optional[str] = None
    unit_type: str = "unidade"
    bar_code: Optional[str] = None


class CartItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    unit_price: float
    quantity: int = Field(..., ge=1)
    image_url: Optional[str] = None
    unit_type: str = "unidade"
    bar_code: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class ListModeState(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: tuple[str, ...] = ()
    index: int = 0
    done: int = 0
    total: int = 0
    active: bool = True
    ignore_list_detection_once: bool = False
    raw_text: str = ""

    @property
    def current_item(self) -> Optional[str]:
        if 0 <= self.index < len(self.items):
            return self.items[self.index]
        return None


class CustomerData(BaseModel):
    """Dados coletados pelo wizard + estado do fluxo.

    Campos desconhecidos são preservados para não perder dados gravados
    por versões anteriores.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    flow_state: FlowState = FlowState.BROWSING
    name: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    uf: Optional[str] = None
    zip_code: Optional[str] = None
    complement: Optional[str] = None
    reference: Optional[str] = None
    payment_type: Optional[str] = None
    list_mode: Optional[ListModeState] = None
    last_recommended_product_id: Optional[str] = None


class ConversationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    cart: tuple[CartItem, ...] = ()
    customer_data: CustomerData = Field(default_factory=CustomerData)

    @property
    def flow_state(self) -> FlowState:
        return self.customer_data.flow_state

    def with_customer_data(self, **changes) -> "ConversationState":
        return self.model_copy(update={"customer_data": self.customer_data.model_copy(update=changes)})


class Conversation(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: int
    phone: str
    messages: tuple[ChatMessage, ...] = ()
    state: ConversationState = Field(default_factory=ConversationState)


class AgentSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: int
    agent_name: str = "Assistente"
    company_name: str = "Minha Loja"
    delivery_price: float = 0.0
    welcome_message: Optional[str] = None
    provider: str = "mock"
    model: Optional[str] = None
    temperature: Optional[float] = None


class OrderResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_number: int
    total: float
    status: str = "pending"
    id: Optional[int] = None


class ConversationReply(BaseModel):
    """Resposta final de um passo: texto limpo + imagem opcional."""

    text: str
    image_url: Optional[str] = None
    flow_state: FlowState = FlowState.BROWSING

    @property
    def raw(self) -> str:
        if self.image_url:
            return f"{self.text} [IMG:{self.image_url}]"
        return self.text
