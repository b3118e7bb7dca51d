"""Audit logging utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from functools import wraps
from inspect import iscoroutinefunction
from typing import Any, Callable, Dict

logger = logging.getLogger("enhancer.audit")


class AuditLogger:
    """Structured audit logger."""

    def record(self, action: str, actor: str, details: Dict[str, Any]) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "actor": actor,
            "details": details,
        }
        logger.info(json.dumps(payload, default=str))


audit_logger = AuditLogger()


def audit_log(action: str, *, actor: str = "pipeline") -> Callable[[Callable], Callable]:
    """Decorator that emits start/success/error audit records around a coroutine."""

    def decorator(func: Callable) -> Callable:
        if not iscoroutinefunction(func):
            raise TypeError("audit_log only wraps coroutine functions")

        @wraps(func)
        async def wrapper(*args, **kwargs):
            details = _build_details(args, kwargs)
            audit_logger.record(f"{action}.start", actor, details)
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                audit_logger.record(f"{action}.error", actor, details | {"error": str(exc)})
                raise
            audit_logger.record(f"{action}.success", actor, details)
            return result

        return wrapper

    return decorator


def _build_details(args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    # args[0] is the bound instance
    target = args[1] if len(args) > 1 else kwargs.get("document_id", kwargs.get("document_ids"))
    if isinstance(target, str):
        return {"document_id": target}
    if isinstance(target, (list, tuple)):
        return {"document_count": len(target)}
    return {}


__all__ = ["audit_logger", "audit_log", "AuditLogger"]
