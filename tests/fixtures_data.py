"""Conjunto de dados reutilizável para cenários de conversa."""

from app.schemas.conversation import AgentSettings, Product

PIZZA = Product(
    id="P1",
    name="Pizza Calabresa",
    description="Calabresa, cebola e mussarela",
    price=10.0,
    image_url="https://img.test/pizza.jpg",
)
REFRI = Product(
    id="P2",
    name="Refrigerante Lata",
    price=6.5,
    image_url="https://img.test/refri.jpg",
)
BOLO = Product(id="P3", name="Bolo de Cenoura", price=12.0)

CATALOG = [PIZZA, REFRI, BOLO]

STORE_SETTINGS = AgentSettings(
    tenant_id=1,
    agent_name="Bia",
    company_name="Pizzaria Teste",
    delivery_price=5.0,
)

CHECKOUT_ANSWERS = [
    ("João Silva", "collecting_street"),
    ("Rua das Flores", "collecting_number"),
    ("123", "collecting_neighborhood"),
    ("Centro", "collecting_city"),
    ("São Paulo - SP", "collecting_zipcode"),
    ("01310100", "collecting_complement"),
    ("nao", "collecting_reference"),
    ("Perto da praça", "collecting_payment"),
    ("2", "confirming_order"),
]
