import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import CORS_ORIGINS, ENV
from app.core.database import Base, engine
from app.core.logging_setup import configure_logging
import app.models  # garante que os models são importados antes do create_all
from app.routers.simulator import router as simulator_router

configure_logging()

logger = logging.getLogger(__name__)


def _startup_tasks() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Banco inicializado (env=%s)", ENV)
    except Exception:
        logger.exception("Falha na inicialização do banco")
        raise


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title="Pedidos Chat API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(simulator_router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
