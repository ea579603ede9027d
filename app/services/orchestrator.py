from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from app.ai.base import TextGenerator
from app.ai.prompts import welcome_message
from app.ai.service import get_generator
from app.core.cache import CatalogCache, InMemoryCatalogCache
from app.core.config import CART_MAX_QUANTITY, HISTORY_WINDOW, PRODUCTS_CACHE_TTL_SECONDS, PRODUCTS_LIMIT
from app.core.conversation_locks import KeyedAsyncLock
from app.core.request_context import clear_conversation_context, set_conversation_context
from app.fsm.engine import CreateOrder, StepResult, complete_order, order_failed, run_step
from app.fsm.states import FlowState
from app.schemas.conversation import (
    AgentSettings,
    ChatMessage,
    Conversation,
    ConversationReply,
    ConversationState,
    CustomerData,
    Product,
)
from app.services.conversation_store import ConversationStore, OrderCreationError
from app.services.list_intent import prepare_list_mode

logger = logging.getLogger(__name__)

GENERATION_APOLOGY = (
    "Desculpe, tive um problema para responder agora. 😕 Pode repetir sua mensagem em instantes?"
)


class ConversationOrchestrator:
    """Processa uma mensagem por vez para cada conversa (tenant + telefone).

    Carrega a conversa, roda um passo do wizard, executa os efeitos
    (criação de pedido) e persiste o resultado.
    """

    def __init__(
        self,
        store: ConversationStore,
        *,
        generator_factory: Callable[[AgentSettings], TextGenerator] = get_generator,
        cache: CatalogCache | None = None,
        locks: KeyedAsyncLock | None = None,
        products_limit: int = PRODUCTS_LIMIT,
        history_window: int = HISTORY_WINDOW,
        max_quantity: int = CART_MAX_QUANTITY,
    ) -> None:
        self.store = store
        self.generator_factory = generator_factory
        self.cache = cache if cache is not None else InMemoryCatalogCache(ttl_seconds=PRODUCTS_CACHE_TTL_SECONDS)
        self.locks = locks or KeyedAsyncLock()
        self.products_limit = products_limit
        self.history_window = history_window
        self.max_quantity = max_quantity

    async def load_products(self, tenant_id: int) -> list[Product]:
        cached = self.cache.get(tenant_id, min_items=self.products_limit)
        if cached is not None:
            return cached
        products = await asyncio.to_thread(self.store.load_products, tenant_id, self.products_limit)
        self.cache.set(tenant_id, products, complete=len(products) < self.products_limit)
        return products

    def invalidate_products(self, tenant_id: int) -> None:
        self.cache.invalidate(tenant_id)

    async def process_message(
        self, tenant_id: int, phone: str, text: str, *, message_id: str | None = None
    ) -> ConversationReply:
        async with self.locks.hold((tenant_id, phone)):
            set_conversation_context(tenant_id=str(tenant_id), phone=phone, message_id=message_id)
            try:
                return await self._process(tenant_id, phone, text or "")
            finally:
                clear_conversation_context()

    async def _process(self, tenant_id: int, phone: str, text: str) -> ConversationReply:
        started = time.perf_counter()
        try:
            conversation = await asyncio.to_thread(self.store.load_conversation, tenant_id, phone)
            settings = await asyncio.to_thread(self.store.load_settings, tenant_id)
            products = await self.load_products(tenant_id)
        except Exception:
            logger.exception("Falha ao carregar conversa")
            return ConversationReply(text=GENERATION_APOLOGY)

        state = conversation.state
        if state.flow_state == FlowState.ORDER_COMPLETED:
            state = state.with_customer_data(flow_state=FlowState.BROWSING)
        if state.flow_state == FlowState.BROWSING:
            state = state.model_copy(
                update={"customer_data": prepare_list_mode(state.customer_data, text)}
            )

        history = conversation.messages[-self.history_window :] if self.history_window else ()
        try:
            result = await run_step(
                state,
                text,
                settings=settings,
                products=products,
                history=history,
                generator=self.generator_factory(settings),
                max_quantity=self.max_quantity,
            )
        except Exception:
            logger.exception("Falha ao gerar resposta da IA")
            return ConversationReply(text=GENERATION_APOLOGY, flow_state=conversation.state.flow_state)

        order_created = False
        for effect in result.effects:
            if isinstance(effect, CreateOrder):
                completed = await self._create_order(conversation, result, effect)
                if completed is None:
                    failed = order_failed(conversation.state)
                    return ConversationReply(text=failed.reply, flow_state=failed.state.flow_state)
                result = completed
                order_created = True

        try:
            await self._save(conversation, result, text)
        except Exception:
            logger.exception("Falha ao salvar conversa")
            # Com o pedido já criado, a confirmação ainda vai para o cliente.
            if not order_created:
                return ConversationReply(text=GENERATION_APOLOGY, flow_state=conversation.state.flow_state)
        logger.info(
            "Mensagem processada",
            extra={
                "flow_state": result.state.flow_state.value,
                "duration_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return ConversationReply(
            text=result.reply, image_url=result.image_url, flow_state=result.state.flow_state
        )

    async def _create_order(
        self, conversation: Conversation, result: StepResult, effect: CreateOrder
    ) -> StepResult | None:
        state = result.state
        try:
            order = await asyncio.to_thread(
                self.store.create_order,
                conversation.tenant_id,
                conversation.phone,
                state.customer_data,
                state.cart,
                effect.delivery_fee,
            )
        except OrderCreationError:
            logger.exception("Falha ao criar pedido")
            return None
        except Exception:
            logger.exception("Falha inesperada ao criar pedido")
            return None
        logger.info("Pedido confirmado", extra={"flow_state": FlowState.ORDER_COMPLETED.value})
        return complete_order(state, order)

    async def _save(self, conversation: Conversation, result: StepResult, text: str) -> None:
        messages = conversation.messages + (
            ChatMessage(role="user", content=text),
            ChatMessage(role="assistant", content=result.reply),
        )
        updated = conversation.model_copy(update={"messages": messages, "state": result.state})
        await asyncio.to_thread(self.store.save_conversation, updated)

    async def clear_cart(self, tenant_id: int, phone: str) -> Conversation:
        async with self.locks.hold((tenant_id, phone)):
            conversation = await asyncio.to_thread(self.store.load_conversation, tenant_id, phone)
            state = ConversationState(cart=(), customer_data=CustomerData(flow_state=FlowState.BROWSING))
            cleared = conversation.model_copy(update={"state": state})
            await asyncio.to_thread(self.store.save_conversation, cleared)
            return cleared

    async def welcome(self, tenant_id: int) -> str:
        settings = await asyncio.to_thread(self.store.load_settings, tenant_id)
        return welcome_message(settings)
