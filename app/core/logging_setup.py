from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from app.core.config import LOG_LEVEL
from app.core.request_context import get_message_id, get_phone, get_tenant_id

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(r"(api[_-]?key\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(\b)(sk-[A-Za-z0-9_\-]{8,})"),
]


def mask_phone(phone: str | None) -> str | None:
    if not phone:
        return None
    digits = str(phone)
    if len(digits) <= 4:
        return "****"
    return f"****{digits[-4:]}"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "tenant_id": getattr(record, "tenant_id", None) or get_tenant_id(),
            "phone": mask_phone(getattr(record, "phone", None) or get_phone()),
            "message_id": getattr(record, "message_id", None) or get_message_id(),
            "module": record.name,
            "message": self._mask(self.formatMessage(record)),
        }
        flow_state = getattr(record, "flow_state", None)
        duration_ms = getattr(record, "duration_ms", None)
        if flow_state is not None:
            payload["flow_state"] = flow_state
        if duration_ms is not None:
            payload["duration_ms"] = duration_ms
        if record.exc_info:
            payload["exception"] = self._mask(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False)

    def _mask(self, value: str) -> str:
        masked = value
        for pattern in _SENSITIVE_PATTERNS:
            masked = pattern.sub(r"\1***", masked)
        return masked


def configure_logging() -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(LOG_LEVEL)

    handler = logging.StreamHandler()
    formatter = JsonFormatter("%(message)s")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx"):
        logging.getLogger(logger_name).setLevel(LOG_LEVEL)
