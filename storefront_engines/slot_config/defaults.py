"""Built-in page layouts used when a store has never saved a configuration."""
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Mapping, Optional

CART_DEFAULT: Dict[str, Any] = {
    "metadata": {
        "page_name": "Cart",
        "views": [
            {"id": "emptyCart", "label": "Empty Cart"},
            {"id": "withProducts", "label": "With Products"},
        ],
    },
    "slots": {
        "main_layout": {
            "id": "main_layout",
            "type": "grid",
            "className": "grid grid-cols-1 lg:grid-cols-12 gap-4",
            "parentId": None,
            "colSpan": {"emptyCart": 12, "withProducts": 12},
            "viewModes": ["emptyCart", "withProducts"],
        },
        "header_container": {
            "id": "header_container",
            "type": "grid",
            "className": "header-container grid grid-cols-12 gap-2",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 1},
            "colSpan": 12,
            "viewModes": ["emptyCart", "withProducts"],
        },
        "header_title": {
            "id": "header_title",
            "type": "text",
            "content": '{{t "common.my_cart"}}',
            "className": "w-fit text-3xl font-bold text-gray-900 mb-4",
            "parentId": "header_container",
            "position": {"col": 1, "row": 1},
            "viewModes": ["emptyCart", "withProducts"],
            "metadata": {"htmlTag": "h1"},
        },
        "empty_cart_container": {
            "id": "empty_cart_container",
            "type": "grid",
            "className": "empty-cart-container grid grid-cols-12 gap-2 text-center",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 2},
            "colSpan": {"emptyCart": 12},
            "viewModes": ["emptyCart"],
        },
        "empty_cart_title": {
            "id": "empty_cart_title",
            "type": "text",
            "content": '{{t "cart.cart_empty"}}',
            "className": "text-xl font-semibold text-gray-900 mb-2 mx-auto",
            "parentId": "empty_cart_container",
            "position": {"col": 1, "row": 1},
            "colSpan": 12,
            "viewModes": ["emptyCart"],
        },
        "empty_cart_button": {
            "id": "empty_cart_button",
            "type": "button",
            "content": '{{t "common.continue_shopping"}}',
            "className": "bg-blue-600 text-white px-6 py-3 rounded-lg mx-auto",
            "parentId": "empty_cart_container",
            "position": {"col": 1, "row": 2},
            "colSpan": 12,
            "viewModes": ["emptyCart"],
        },
        "content_area": {
            "id": "content_area",
            "type": "container",
            "className": "content-area",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 3},
            "colSpan": {"withProducts": "col-span-12 lg:col-span-9"},
            "viewModes": ["withProducts"],
        },
        "cart_items": {
            "id": "cart_items",
            "type": "component",
            "component": "CartItems",
            "parentId": "content_area",
            "position": {"col": 1, "row": 1},
            "viewModes": ["withProducts"],
            "metadata": {"component": "CartItems"},
        },
        "sidebar_area": {
            "id": "sidebar_area",
            "type": "flex",
            "className": "sidebar-area flex-col space-y-4",
            "parentId": "main_layout",
            "position": {"col": 10, "row": 3},
            "colSpan": {"withProducts": "col-span-12 lg:col-span-3"},
            "viewModes": ["withProducts"],
        },
        "order_summary": {
            "id": "order_summary",
            "type": "html",
            "content": (
                '<div class="space-y-2">'
                '<div class="flex justify-between"><span>{{t "cart.subtotal"}}</span>'
                "<span>{{cart.subtotal}}</span></div>"
                '{{#if cart.discount}}<div class="flex justify-between text-green-600">'
                '<span>{{t "cart.discount"}}</span><span>-{{cart.discount}}</span></div>{{/if}}'
                '<div class="flex justify-between font-bold"><span>{{t "cart.total"}}</span>'
                "<span>{{cart.total}}</span></div></div>"
            ),
            "className": "order-summary bg-white rounded-lg p-4",
            "parentId": "sidebar_area",
            "position": {"col": 1, "row": 1},
            "viewModes": ["withProducts"],
        },
        "checkout_button": {
            "id": "checkout_button",
            "type": "button",
            "content": '{{t "cart.proceed_to_checkout"}}',
            "className": "w-full bg-blue-600 text-white py-3 rounded-lg",
            "parentId": "sidebar_area",
            "position": {"col": 1, "row": 2},
            "viewModes": ["withProducts"],
        },
    },
}

PRODUCT_DEFAULT: Dict[str, Any] = {
    "feature_flags": {"show_related_products": True},
    "metadata": {
        "page_name": "Product Detail",
        "views": [{"id": "default", "label": "Default View"}],
    },
    "slots": {
        "main_layout": {
            "id": "main_layout",
            "type": "grid",
            "className": "grid grid-cols-1 gap-6",
            "parentId": None,
            "position": {"col": 1, "row": 1},
            "viewModes": ["default"],
        },
        "cms_block_product_above": {
            "id": "cms_block_product_above",
            "type": "cms",
            "parentId": None,
            "position": {"col": 1, "row": 0},
            "viewModes": ["default"],
            "metadata": {"cmsBlockPosition": "product_above"},
        },
        "breadcrumbs": {
            "id": "breadcrumbs",
            "type": "text",
            "content": "{{category.name}} / {{product.name}}",
            "className": "text-sm text-gray-500",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 1},
            "viewModes": ["default"],
            "metadata": {"htmlTag": "nav"},
        },
        "content_area": {
            "id": "content_area",
            "type": "grid",
            "className": "grid grid-cols-1 md:grid-cols-12 gap-8",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 2},
            "viewModes": ["default"],
        },
        "product_gallery": {
            "id": "product_gallery",
            "type": "component",
            "component": "ProductGallery",
            "parentId": "content_area",
            "position": {"col": 1, "row": 1},
            "colSpan": "col-span-12 md:col-span-6",
            "viewModes": ["default"],
            "metadata": {"component": "ProductGallery"},
        },
        "info_container": {
            "id": "info_container",
            "type": "flex",
            "className": "flex-col space-y-4",
            "parentId": "content_area",
            "position": {"col": 7, "row": 1},
            "colSpan": "col-span-12 md:col-span-6",
            "viewModes": ["default"],
        },
        "product_labels": {
            "id": "product_labels",
            "type": "component",
            "component": "ProductLabels",
            "parentId": "info_container",
            "position": {"col": 1, "row": 0},
            "viewModes": ["default"],
            "metadata": {"component": "ProductLabels"},
        },
        "product_title": {
            "id": "product_title",
            "type": "text",
            "content": "{{product.name}}",
            "className": "text-3xl font-bold text-gray-900",
            "parentId": "info_container",
            "position": {"col": 1, "row": 1},
            "viewModes": ["default"],
            "metadata": {"htmlTag": "h1"},
        },
        "product_price": {
            "id": "product_price",
            "type": "text",
            "content": (
                "{{#unless settings.hide_currency_product}}{{settings.currency_symbol}}{{/unless}}"
                "{{#if product.compare_price}}{{product.compare_price_number}}{{else}}{{product.price_number}}{{/if}}"
            ),
            "className": "text-2xl font-semibold text-green-600",
            "parentId": "info_container",
            "position": {"col": 1, "row": 2},
            "viewModes": ["default"],
        },
        "stock_status": {
            "id": "stock_status",
            "type": "text",
            "content": (
                '{{#if (gt product.stock_quantity 0)}}{{t "product.in_stock"}}'
                '{{else}}{{t "product.out_of_stock"}}{{/if}}'
            ),
            "className": "text-sm",
            "parentId": "info_container",
            "position": {"col": 1, "row": 3},
            "viewModes": ["default"],
        },
        "product_sku": {
            "id": "product_sku",
            "type": "text",
            "content": '{{#if product.sku}}{{t "product.sku"}}: {{product.sku}}{{/if}}',
            "className": "text-sm text-gray-500",
            "parentId": "info_container",
            "position": {"col": 1, "row": 4},
            "viewModes": ["default"],
        },
        "product_short_description": {
            "id": "product_short_description",
            "type": "text",
            "content": "{{product.short_description}}",
            "className": "text-gray-700",
            "parentId": "info_container",
            "position": {"col": 1, "row": 5},
            "viewModes": ["default"],
            "metadata": {"htmlTag": "p"},
        },
        "add_to_cart_button": {
            "id": "add_to_cart_button",
            "type": "button",
            "content": '{{t "product.add_to_cart"}}',
            "className": "bg-blue-600 text-white px-6 py-3 rounded-lg",
            "parentId": "info_container",
            "position": {"col": 1, "row": 6},
            "viewModes": ["default"],
        },
        "related_products_title": {
            "id": "related_products_title",
            "type": "text",
            "content": '{{t "product.recommended_products"}}',
            "className": "text-2xl font-bold",
            "parentId": "main_layout",
            "position": {"col": 1, "row": 3},
            "viewModes": ["default"],
            "metadata": {"htmlTag": "h2", "featureFlag": "show_related_products"},
        },
        "cms_block_product_below": {
            "id": "cms_block_product_below",
            "type": "cms",
            "parentId": None,
            "position": {"col": 1, "row": 5},
            "viewModes": ["default"],
            "metadata": {"cmsBlockPosition": "product_below"},
        },
    },
}

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "cart": CART_DEFAULT,
    "product": PRODUCT_DEFAULT,
}


def default_page_types() -> List[str]:
    return sorted(_DEFAULTS)


def get_default_configuration(page_type: str) -> Optional[Dict[str, Any]]:
    """Return a private copy of the built-in layout for ``page_type``."""
    config = _DEFAULTS.get(page_type)
    return copy.deepcopy(config) if config is not None else None


def _cart_view_mode(context: Mapping[str, Any]) -> str:
    cart = context.get("cart")
    items = cart.get("items") if isinstance(cart, Mapping) else None
    return "withProducts" if isinstance(items, list) and items else "emptyCart"


_VIEW_MODE_DERIVERS: Dict[str, Callable[[Mapping[str, Any]], str]] = {
    "cart": _cart_view_mode,
}


def derive_view_mode(page_type: str, context: Mapping[str, Any]) -> Optional[str]:
    """Pick the page's view mode from live data, e.g. ``emptyCart`` for a cart without items."""
    derive = _VIEW_MODE_DERIVERS.get(page_type)
    return derive(context) if derive is not None else None
