from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from storefront_engines.ab_variants.cache import MergedTreeCache, get_merged_tree_cache
from storefront_engines.ab_variants.repository import VariantProvider, get_variant_provider
from storefront_engines.common.identity import RequestContext
from storefront_engines.config import runtime_config
from storefront_engines.slot_config.service import SlotConfigurationService, get_slot_configuration_service
from storefront_engines.slot_render.components import build_default_registry
from storefront_engines.slot_render.demo_data import with_demo_fallback
from storefront_engines.slot_render.dispatcher import RenderDispatcher, resolve_view_mode
from storefront_engines.slot_render.models import RenderMode, RenderResponse
from storefront_engines.slot_render.registry import ComponentRegistry

logger = logging.getLogger(__name__)


class SlotRenderService:
    """Loads the base tree, applies variants and dispatches the render."""

    def __init__(
        self,
        config_service: Optional[SlotConfigurationService] = None,
        variant_provider: Optional[VariantProvider] = None,
        cache: Optional[MergedTreeCache] = None,
        registry: Optional[ComponentRegistry] = None,
    ) -> None:
        self._config_service = config_service
        self._variant_provider = variant_provider
        self._cache = cache
        self.dispatcher = RenderDispatcher(registry if registry is not None else build_default_registry())

    @property
    def config_service(self) -> SlotConfigurationService:
        return self._config_service if self._config_service is not None else get_slot_configuration_service()

    @property
    def variant_provider(self) -> VariantProvider:
        return self._variant_provider if self._variant_provider is not None else get_variant_provider()

    @property
    def cache(self) -> MergedTreeCache:
        return self._cache if self._cache is not None else get_merged_tree_cache()

    def render_page(
        self,
        ctx: RequestContext,
        page_type: str,
        context: Optional[Mapping[str, Any]] = None,
        mode: RenderMode = "storefront",
        viewport: Optional[str] = None,
        view_mode: Optional[str] = None,
        use_demo_data: bool = False,
    ) -> RenderResponse:
        viewport = viewport or runtime_config.get_default_viewport()
        variables = dict(context or {})
        if mode == "editor" and use_demo_data:
            variables = with_demo_fallback(variables, page_type)

        if mode == "editor":
            # editor previews the draft exactly as saved, without experiments
            tree, version = self.config_service.load_tree(ctx, page_type, draft=True)
            variants = []
        else:
            tree, version = self.config_service.load_tree(ctx, page_type)
            variants = self.variant_provider.get_active_variants(ctx.store_id, page_type, ctx.session_id)
            tree = self.cache.get_or_merge(ctx.store_id, page_type, version, tree, variants)
        view_mode = resolve_view_mode(page_type, view_mode, variables)

        logger.debug(
            "render %s store=%s mode=%s viewport=%s view_mode=%s variants=%s",
            page_type,
            ctx.store_id,
            mode,
            viewport,
            view_mode,
            [v.id for v in variants],
        )
        node = self.dispatcher.render(tree, variables, mode=mode, viewport=viewport, view_mode=view_mode)
        return RenderResponse(
            page_type=page_type,
            mode=mode,
            viewport=viewport,
            view_mode=view_mode,
            version=version,
            fingerprint=tree.fingerprint(),
            variant_ids=[v.id for v in variants],
            tree=node,
        )


_default_service: Optional[SlotRenderService] = None


def get_slot_render_service() -> SlotRenderService:
    global _default_service
    if _default_service is None:
        _default_service = SlotRenderService()
    return _default_service


def set_slot_render_service(service: SlotRenderService) -> None:
    global _default_service
    _default_service = service
