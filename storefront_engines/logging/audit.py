"""Audit helper for recording sensitive slot configuration actions."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from storefront_engines.common.identity import RequestContext
from storefront_engines.config import runtime_config

logger = logging.getLogger(__name__)


class AuditEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    action: str
    surface: str = "audit"
    store_id: str
    env: Optional[str] = None
    actor_type: str = "system"
    user_id: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)


AuditSink = Callable[[AuditEvent], Dict[str, Any]]


def default_audit_sink(event: AuditEvent) -> Dict[str, Any]:
    logger.info(
        "audit %s store=%s surface=%s request=%s metadata=%s",
        event.action,
        event.store_id,
        event.surface,
        event.request_id,
        event.metadata,
    )
    return {"status": "accepted", "event_id": event.event_id}


_audit_sink: AuditSink = default_audit_sink


def set_audit_sink(sink: Optional[AuditSink]) -> None:
    global _audit_sink
    _audit_sink = sink or default_audit_sink


def emit_audit_event(
    ctx: RequestContext,
    action: str,
    surface: str = "audit",
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    event = AuditEvent(
        action=action,
        surface=surface,
        store_id=ctx.store_id,
        env=ctx.env,
        actor_type="human" if ctx.user_id else "system",
        user_id=ctx.user_id,
        request_id=ctx.request_id,
        metadata=dict(metadata or {}),
    )
    result = _audit_sink(event)
    if not result or result.get("status") != "accepted":
        detail = (result or {}).get("error", "audit persistence failed")
        if runtime_config.audit_strict():
            raise RuntimeError(detail)
        logger.warning("audit persistence failed: %s", detail)
