from fastapi import APIRouter, Depends, Query

from app.deps import get_orchestrator
from app.services.orchestrator import ConversationOrchestrator

router = APIRouter(prefix="/simulator")


@router.post("/mensagem")
async def simular(
    tenant_id: int,
    telefone: str = Query(..., min_length=1),
    texto: str = "",
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    resposta = await orchestrator.process_message(tenant_id, telefone, texto)
    return {
        "estado": resposta.flow_state.value,
        "resposta": resposta.text,
        "imagem": resposta.image_url,
        "resposta_raw": resposta.raw,
    }


@router.delete("/carrinho")
async def limpar_carrinho(
    tenant_id: int,
    telefone: str = Query(..., min_length=1),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    conversa = await orchestrator.clear_cart(tenant_id, telefone)
    return {"estado": conversa.state.flow_state.value, "carrinho": []}


@router.get("/boas-vindas")
async def boas_vindas(
    tenant_id: int,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    return {"resposta": await orchestrator.welcome(tenant_id)}
