"""Shared request identity helpers and the FastAPI context dependency."""
from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Header, HTTPException, Query

VALID_STORE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def _default_env() -> str:
    env_value = os.getenv("ENV") or os.getenv("APP_ENV")
    return env_value.lower() if env_value else "dev"


@dataclass
class RequestContext:
    store_id: str
    env: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not self.store_id:
            raise ValueError("store_id is required")
        if not VALID_STORE_PATTERN.match(self.store_id):
            raise ValueError(
                f"store_id must match pattern ^[A-Za-z0-9_-]+$, got: {self.store_id}"
            )
        if not self.request_id:
            raise ValueError("request_id is required")
        self.env = (self.env or _default_env()).lower()


class RequestContextBuilder:
    """Builder for RequestContext from HTTP headers."""

    @classmethod
    def from_headers(cls, headers: Dict[str, str]) -> RequestContext:
        normalized = {key.lower(): value for key, value in headers.items()}
        store_id = normalized.get("x-store-id")
        if not store_id:
            raise ValueError("X-Store-Id header is required")
        return RequestContext(
            store_id=store_id,
            env=normalized.get("x-env"),
            session_id=normalized.get("x-session-id"),
            user_id=normalized.get("x-user-id"),
            request_id=normalized.get("x-request-id") or uuid.uuid4().hex,
        )


async def get_request_context(
    header_store: Optional[str] = Header(default=None, alias="X-Store-Id"),
    header_env: Optional[str] = Header(default=None, alias="X-Env"),
    header_session: Optional[str] = Header(default=None, alias="X-Session-Id"),
    header_user: Optional[str] = Header(default=None, alias="X-User-Id"),
    header_request_id: Optional[str] = Header(default=None, alias="X-Request-Id"),
    query_store: Optional[str] = Query(default=None, alias="store_id"),
) -> RequestContext:
    headers: Dict[str, str] = {}
    store_id = header_store or query_store
    if store_id:
        headers["X-Store-Id"] = store_id
    if header_env:
        headers["X-Env"] = header_env
    if header_session:
        headers["X-Session-Id"] = header_session
    if header_user:
        headers["X-User-Id"] = header_user
    if header_request_id:
        headers["X-Request-Id"] = header_request_id

    try:
        return RequestContextBuilder.from_headers(headers)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
