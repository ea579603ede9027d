from __future__ import annotations

from contextvars import ContextVar


_TENANT_ID_CTX: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_PHONE_CTX: ContextVar[str | None] = ContextVar("phone", default=None)
_MESSAGE_ID_CTX: ContextVar[str | None] = ContextVar("message_id", default=None)


def set_conversation_context(
    *, tenant_id: str | None = None, phone: str | None = None, message_id: str | None = None
) -> None:
    if tenant_id is not None:
        _TENANT_ID_CTX.set(tenant_id)
    if phone is not None:
        _PHONE_CTX.set(phone)
    if message_id is not None:
        _MESSAGE_ID_CTX.set(message_id)


def get_tenant_id() -> str | None:
    return _TENANT_ID_CTX.get()


def get_phone() -> str | None:
    return _PHONE_CTX.get()


def get_message_id() -> str | None:
    return _MESSAGE_ID_CTX.get()


def clear_conversation_context() -> None:
    _TENANT_ID_CTX.set(None)
    _PHONE_CTX.set(None)
    _MESSAGE_ID_CTX.set(None)
