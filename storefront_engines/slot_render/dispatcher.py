"""Walks an effective slot tree and emits ``RenderNode`` trees.

Per slot, in order: responsive visibility, view mode, feature flag gate,
then either a registered component renderer or a literal node built from
template-processed ``content``, ``className`` and ``styles``. A missing or
failing component becomes a visible placeholder; it never aborts the page.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from storefront_engines.config import runtime_config
from storefront_engines.slot_config.defaults import derive_view_mode
from storefront_engines.slot_config.models import ALWAYS_VISIBLE_VIEW_MODE, Slot, SlotTree
from storefront_engines.slot_render.models import RenderMode, RenderNode
from storefront_engines.slot_render.registry import ComponentRegistry
from storefront_engines.slot_render.responsive import ResponsiveResolver, resolve_col_span
from storefront_engines.slot_templates.processor import TemplateProcessor, get_template_processor

logger = logging.getLogger(__name__)

CONTAINER_CLASSES = {
    "grid": "grid grid-cols-12 gap-2",
    "flex": "flex flex-wrap gap-2",
    "container": "",
}

_TAGS = {
    "button": "button",
    "image": "img",
}


def resolve_view_mode(page_type: str, view_mode: Optional[str], context: Mapping[str, Any]) -> str:
    """Active view mode: explicit argument, then ``context["view_mode"]``, then page data, then ``default``."""
    if view_mode:
        return view_mode
    from_context = context.get("view_mode")
    if isinstance(from_context, str) and from_context:
        return from_context
    return derive_view_mode(page_type, context) or ALWAYS_VISIBLE_VIEW_MODE


class RenderDispatcher:
    def __init__(
        self,
        registry: ComponentRegistry,
        processor: Optional[TemplateProcessor] = None,
    ) -> None:
        self.registry = registry
        self.processor = processor or get_template_processor()

    def render(
        self,
        tree: SlotTree,
        context: Mapping[str, Any],
        mode: RenderMode = "storefront",
        viewport: Optional[str] = None,
        view_mode: Optional[str] = None,
    ) -> RenderNode:
        viewport = viewport or runtime_config.get_default_viewport()
        view_mode = resolve_view_mode(tree.page_type, view_mode, context)
        pass_ = _RenderPass(self, tree, context, mode, viewport, view_mode)
        root = RenderNode(
            type="page",
            tag="div",
            attributes={"data-page-type": tree.page_type},
            data={"mode": mode, "viewport": viewport, "view_mode": view_mode},
        )
        root.children = pass_.render_children(None)
        return root


class _RenderPass:
    """State for a single ``render`` call; discarded afterwards."""

    def __init__(
        self,
        dispatcher: RenderDispatcher,
        tree: SlotTree,
        context: Mapping[str, Any],
        mode: RenderMode,
        viewport: str,
        view_mode: str,
    ) -> None:
        self.registry = dispatcher.registry
        self.processor = dispatcher.processor
        self.responsive = ResponsiveResolver(mode)
        self.tree = tree
        self.mode = mode
        self.viewport = viewport
        self.view_mode = view_mode
        self.flags = dict(tree.feature_flags)
        scope = dict(context)
        context_flags = context.get("feature_flags")
        if not isinstance(context_flags, Mapping):
            context_flags = {}
        scope["feature_flags"] = {**context_flags, **self.flags}
        self.context = scope
        self._visited: Set[str] = set()

    def render_children(self, parent_id: Optional[str]) -> List[RenderNode]:
        nodes: List[RenderNode] = []
        for slot in self.tree.children(parent_id):
            node = self.render_slot(slot)
            if node is not None:
                nodes.append(node)
        return nodes

    def render_slot(self, slot: Slot) -> Optional[RenderNode]:
        if slot.id in self._visited:
            logger.warning("slot %s reached twice, skipping", slot.id)
            return None
        self._visited.add(slot.id)

        if getattr(slot, "enabled", True) is False:
            return None
        scope = self._slot_scope(slot)
        class_name = self.processor.process(slot.class_name, scope)
        if not self.responsive.is_visible(slot, self.viewport, class_name):
            return None
        if not slot.shows_in(self.view_mode):
            return None
        if not self._flag_enabled(slot):
            return None

        if slot.type == "component":
            node = self._render_component(slot)
        else:
            node = self._render_literal(slot, scope, class_name)

        node.slot_id = slot.id
        node.parent_id = slot.parent_id
        node.col_span_class = self.responsive.transform_classes(
            resolve_col_span(slot.col_span, self.view_mode), self.viewport
        )
        if self.mode == "editor":
            node.attributes.update(
                {
                    "data-slot-id": slot.id,
                    "data-parent-id": slot.parent_id or "",
                    "data-editable": "true",
                }
            )
        if slot.is_container:
            node.children = self.render_children(slot.id)
        return node

    def _flag_enabled(self, slot: Slot) -> bool:
        flag = slot.metadata.get("featureFlag")
        if not flag:
            return True
        return bool(self.context["feature_flags"].get(flag))

    def _render_component(self, slot: Slot) -> RenderNode:
        name = slot.component_name
        renderer = self.registry.get(name)
        if renderer is None:
            logger.warning("UnknownComponent: slot %s references %r", slot.id, name)
            return self._placeholder(slot, name, "unknown_component")
        try:
            node = renderer(slot, self.context, self.mode)
        except Exception as exc:
            logger.warning("component %r failed for slot %s: %s", name, slot.id, exc, exc_info=True)
            return self._placeholder(slot, name, "render_failed")
        if not isinstance(node, RenderNode):
            logger.warning("component %r returned %s for slot %s", name, type(node).__name__, slot.id)
            return self._placeholder(slot, name, "render_failed")
        node.component = node.component or name
        node.class_name = self.responsive.transform_classes(node.class_name, self.viewport)
        return node

    def _placeholder(self, slot: Slot, name: Optional[str], reason: str) -> RenderNode:
        return RenderNode(
            type="placeholder",
            tag="div",
            component=name,
            placeholder=True,
            content=f"Component not available: {name or 'unnamed'}",
            class_name="slot-placeholder",
            data={"reason": reason},
        )

    def _tag_for(self, slot: Slot) -> str:
        if slot.type == "text":
            return slot.metadata.get("htmlTag") or "span"
        return _TAGS.get(slot.type, "div")

    def _slot_scope(self, slot: Slot) -> Dict[str, Any]:
        return {**self.context, "props": dict(slot.props)} if slot.props else self.context

    def _render_literal(self, slot: Slot, scope: Mapping[str, Any], class_name: str) -> RenderNode:
        content = self.processor.process(slot.content, scope)
        if slot.is_container:
            class_name = " ".join(part for part in (CONTAINER_CLASSES.get(slot.type, ""), class_name) if part)
        styles: Dict[str, Any] = {key: self.processor.process(value, scope) for key, value in slot.styles.items()}

        attributes: Dict[str, Any] = {}
        if slot.type == "image":
            attributes["src"] = content
            alt = slot.metadata.get("alt")
            if alt:
                attributes["alt"] = self.processor.process(alt, scope)
            content = ""
        if slot.type == "cms" and slot.metadata.get("cmsBlockPosition"):
            attributes["data-cms-position"] = slot.metadata["cmsBlockPosition"]

        return RenderNode(
            type=slot.type,
            tag=self._tag_for(slot),
            content=content,
            class_name=self.responsive.transform_classes(class_name, self.viewport),
            styles=styles,
            attributes=attributes,
            props=dict(slot.props),
        )
