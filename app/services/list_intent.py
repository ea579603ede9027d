from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.fsm.states import FlowState
from app.schemas.conversation import CustomerData, ListModeState
from app.services.normalizer import normalize

_BULLET_LINE = re.compile(r"^\s*[-*•]\s*(?P<item>\S.*?)\s*$")
_NUMBERED_LINE = re.compile(r"^\s*\d+\s*[).:\-]\s*(?P<item>\S.*?)\s*$")
_LIST_PREFIX = re.compile(r"^.*?\blista\b(?:\s+de\s+compras)?\s*[:\-]?\s*", re.IGNORECASE)
_LEADING_AND = re.compile(r"^(?:e|and)\s+", re.IGNORECASE)

MIN_LIST_ITEMS = 2

LIST_COMPLETE_PROMPT = (
    "✅ Passamos por todos os itens da sua lista! "
    "Quer adicionar mais alguma coisa ou finalizar o pedido?"
)


@dataclass(frozen=True)
class ListIntent:
    count: int
    items: list[str] = field(default_factory=list)

    @property
    def is_list(self) -> bool:
        return self.count >= MIN_LIST_ITEMS and len(self.items) >= MIN_LIST_ITEMS


def _comma_segments(text: str) -> tuple[int, list[str]]:
    raw_segments = [segment.strip() for segment in text.split(",")]
    raw_segments = [segment for segment in raw_segments if segment]
    items: list[str] = []
    for idx, segment in enumerate(raw_segments):
        if idx == 0:
            segment = _LIST_PREFIX.sub("", segment, count=1)
        segment = _LEADING_AND.sub("", segment).strip(" .;:")
        if segment:
            items.append(segment)
    return len(raw_segments), items


def detect_list_intent(text: str) -> ListIntent:
    if not text or not text.strip():
        return ListIntent(count=0)

    items: list[str] = []
    for line in text.splitlines():
        match = _BULLET_LINE.match(line) or _NUMBERED_LINE.match(line)
        if match:
            items.append(match.group("item"))

    if items:
        return ListIntent(count=len(items), items=items)

    normalized = normalize(text)
    if "lista" in normalized.split() and "," in text:
        count, comma_items = _comma_segments(text)
        return ListIntent(count=count, items=comma_items)

    return ListIntent(count=0)


def should_detect_list(customer_data: CustomerData) -> bool:
    if customer_data.flow_state != FlowState.BROWSING:
        return False
    list_mode = customer_data.list_mode
    if list_mode is None:
        return True
    if list_mode.active:
        return False
    return not list_mode.ignore_list_detection_once


def activate_list_mode(text: str) -> ListModeState | None:
    intent = detect_list_intent(text)
    if not intent.is_list:
        return None
    return ListModeState(
        items=tuple(intent.items),
        index=0,
        done=0,
        total=intent.count,
        active=True,
        raw_text=text,
    )


def prepare_list_mode(customer_data: CustomerData, text: str) -> CustomerData:
    """Atualiza o modo lista antes do passo de navegação.

    Uma lista recém-concluída fica marcada para ignorar uma detecção e é
    descartada na mensagem seguinte.
    """
    list_mode = customer_data.list_mode
    if list_mode is not None and not list_mode.active:
        customer_data = customer_data.model_copy(update={"list_mode": None})
        if list_mode.ignore_list_detection_once:
            return customer_data

    if not should_detect_list(customer_data):
        return customer_data

    activated = activate_list_mode(text)
    if activated is None:
        return customer_data
    return customer_data.model_copy(update={"list_mode": activated})


def next_item_prompt(list_mode: ListModeState) -> str:
    item = list_mode.current_item or ""
    return f"📝 Próximo item da sua lista ({list_mode.index + 1}/{list_mode.total}): *{item}*"


def advance_list_mode(list_mode: ListModeState) -> tuple[ListModeState, str]:
    """Marca o item atual como resolvido e devolve (novo estado, prompt)."""
    advanced = list_mode.model_copy(
        update={"index": list_mode.index + 1, "done": list_mode.done + 1}
    )
    if advanced.done >= advanced.total or advanced.current_item is None:
        finished = advanced.model_copy(update={"active": False, "ignore_list_detection_once": True})
        return finished, LIST_COMPLETE_PROMPT
    return advanced, next_item_prompt(advanced)
