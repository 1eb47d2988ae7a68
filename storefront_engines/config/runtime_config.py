"""Runtime configuration helpers for storefront engines."""
from __future__ import annotations

import os
from typing import Optional

VALID_VIEWPORTS = ("desktop", "tablet", "mobile")
_FALSEY = {"0", "false", "off", "no"}


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def get_slot_config_backend() -> str:
    return (_get_env("SLOT_CONFIG_BACKEND") or "memory").lower()


def get_firestore_project() -> Optional[str]:
    return _get_env("GCP_PROJECT_ID") or _get_env("GCP_PROJECT")


def render_cache_enabled() -> bool:
    value = (_get_env("SLOT_RENDER_CACHE") or "").strip().lower()
    return value not in _FALSEY


def get_default_viewport() -> str:
    value = (_get_env("SLOT_RENDER_DEFAULT_VIEWPORT") or "desktop").lower()
    return value if value in VALID_VIEWPORTS else "desktop"


def get_max_loop_depth() -> int:
    raw = _get_env("SLOT_RENDER_MAX_LOOP_DEPTH")
    try:
        return max(1, int(raw)) if raw else 10
    except ValueError:
        return 10


def audit_strict() -> bool:
    return _get_env("AUDIT_STRICT") == "1"
