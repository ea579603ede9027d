from app.models.agent_settings import AgentSettings
from app.models.conversation import Conversation
from app.models.order import Order
from app.models.product import Product
