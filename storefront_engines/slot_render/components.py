"""Built-in template components.

Each component renders an inline template (or the slot's own ``content``
when set) against the render context. In editor mode missing live data is
replaced with demo data so the layout can be previewed.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from storefront_engines.slot_config.models import Slot
from storefront_engines.slot_render.demo_data import with_demo_fallback
from storefront_engines.slot_render.models import RenderMode, RenderNode
from storefront_engines.slot_render.registry import ComponentRegistry
from storefront_engines.slot_templates.processor import TemplateProcessor, get_template_processor
from storefront_engines.slot_templates.resolver import resolve


class TemplateComponent:
    name = "TemplateComponent"
    template = ""
    requires: Tuple[str, ...] = ()
    tag = "div"
    class_name = ""

    def __init__(self, processor: Optional[TemplateProcessor] = None) -> None:
        self.processor = processor or get_template_processor()

    def _missing_data(self, context: Mapping[str, Any]) -> bool:
        return any(resolve(path, context) in (None, [], {}, "") for path in self.requires)

    def build_context(self, slot: Slot, context: Mapping[str, Any], mode: RenderMode) -> Tuple[Dict[str, Any], bool]:
        demo = mode == "editor" and self._missing_data(context)
        scope = with_demo_fallback(context) if demo else dict(context)
        props = dict(slot.props)
        metadata_props = slot.metadata.get("props")
        if isinstance(metadata_props, Mapping):
            props.update(metadata_props)
        scope["props"] = props
        scope["slot"] = {"id": slot.id, "parentId": slot.parent_id}
        return scope, demo

    def render(self, slot: Slot, context: Mapping[str, Any], mode: RenderMode) -> RenderNode:
        scope, demo = self.build_context(slot, context, mode)
        template = slot.content or self.template
        return RenderNode(
            type="component",
            tag=self.tag,
            component=self.name,
            content=self.processor.process(template, scope),
            class_name=" ".join(part for part in (self.class_name, self.processor.process(slot.class_name, scope)) if part),
            props=scope["props"],
            data={"demo": demo},
        )


class CartItemsComponent(TemplateComponent):
    name = "CartItems"
    requires = ("cart.items",)
    class_name = "cart-items space-y-4"
    template = (
        "{{#each cart.items}}"
        '<div class="cart-item flex justify-between" data-index="{{@index}}">'
        '<span class="cart-item-name">{{this.name}}</span>'
        '<span class="cart-item-qty">x{{this.quantity}}</span>'
        '<span class="cart-item-price">{{this.price}}</span>'
        "</div>"
        "{{/each}}"
    )


class ProductGalleryComponent(TemplateComponent):
    name = "ProductGallery"
    requires = ("product.images",)
    class_name = "product-gallery"
    template = (
        "{{#if product.images.length}}"
        '<img class="main-image" src="{{product.images.[0].url}}" alt="{{product.name}}">'
        '<div class="thumbnails flex gap-2">'
        '{{#each product.images}}<img class="thumbnail" src="{{this.url}}" alt="{{this.alt}}">{{/each}}'
        "</div>"
        "{{else}}"
        '<div class="no-image">{{t "product.no_image"}}</div>'
        "{{/if}}"
    )


class ProductLabelsComponent(TemplateComponent):
    name = "ProductLabels"
    requires = ("productLabels",)
    class_name = "product-labels flex gap-2"
    template = (
        "{{#each productLabels}}"
        '<span class="product-label label-{{this.position}}" '
        'style="background-color: {{this.background_color}}; color: {{this.text_color}}">{{this.text}}</span>'
        "{{/each}}"
    )


BUILTIN_COMPONENTS = (CartItemsComponent, ProductGalleryComponent, ProductLabelsComponent)


def build_default_registry(processor: Optional[TemplateProcessor] = None) -> ComponentRegistry:
    registry = ComponentRegistry()
    for component_cls in BUILTIN_COMPONENTS:
        component = component_cls(processor)
        registry.register(component.name, component)
    return registry
