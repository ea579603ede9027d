import os
from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pedidos_chat.db")
ENV = os.getenv("ENV", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Provedor de IA (mock | openai)
AI_PROVIDER = os.getenv("AI_PROVIDER", "mock").strip().lower()
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "150"))
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.5"))
OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "20"))

# Loja padrão (quando o tenant não tem configuração salva)
DEFAULT_AGENT_NAME = os.getenv("DEFAULT_AGENT_NAME", "Assistente")
DEFAULT_COMPANY_NAME = os.getenv("COMPANY_NAME", "Minha Loja")
DEFAULT_DELIVERY_PRICE = float(os.getenv("DELIVERY_PRICE", "5.00") or 5.0)

# Catálogo / conversa
PRODUCTS_CACHE_TTL_SECONDS = float(os.getenv("PRODUCTS_CACHE_TTL_SECONDS", "60"))
PRODUCTS_LIMIT = int(os.getenv("PRODUCTS_LIMIT", "50"))
PROMPT_PRODUCTS_LIMIT = int(os.getenv("PROMPT_PRODUCTS_LIMIT", "20"))
HISTORY_WINDOW = int(os.getenv("HISTORY_WINDOW", "10"))
CART_MAX_QUANTITY = int(os.getenv("CART_MAX_QUANTITY", "99"))

# CORS do simulador / painel
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
