"""Liveness and readiness probes for the slot engines service."""
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from storefront_engines.ab_variants.cache import get_merged_tree_cache
from storefront_engines.config import runtime_config
from storefront_engines.slot_render.service import get_slot_render_service

router = APIRouter(tags=["system"])


class HealthStatus(BaseModel):
    status: str
    version: str = "0.1.0"


class ReadinessStatus(HealthStatus):
    slot_config_backend: str
    render_cache_enabled: bool
    cached_trees: int = 0
    components: List[str] = Field(default_factory=list)


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok")


@router.get("/ready", response_model=ReadinessStatus)
def readiness_check():
    cache = get_merged_tree_cache()
    return ReadinessStatus(
        status="ok",
        slot_config_backend=runtime_config.get_slot_config_backend(),
        render_cache_enabled=cache.enabled,
        cached_trees=len(cache),
        components=get_slot_render_service().dispatcher.registry.names(),
    )
