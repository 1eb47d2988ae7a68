"""Sample data for editor previews when no live context is available."""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional

_IMAGE_BASE = "https://images.example.com/demo"

_DEMO_DATA: Dict[str, Any] = {
    "product": {
        "name": "Sample Product Name",
        "sku": "PROD-123",
        "price": 1349.0,
        "price_number": "1349.00",
        "price_formatted": "$1349.00",
        "compare_price": 1049.0,
        "compare_price_number": "1049.00",
        "compare_price_formatted": "$1049.00",
        "on_sale": True,
        "stock_quantity": 15,
        "stock_status": "In Stock",
        "short_description": "This is a sample product description showing how the content will appear.",
        "images": [
            {"url": f"{_IMAGE_BASE}/headphones-600.jpg", "alt": "Front"},
            {"url": f"{_IMAGE_BASE}/headphones-side-150.jpg", "alt": "Side"},
            {"url": f"{_IMAGE_BASE}/headphones-case-150.jpg", "alt": "Case"},
        ],
        "attributes": {"brand": "Sample Brand", "material": "Premium Material", "color": "Blue"},
        "related_products": [
            {"name": "Smart Watch", "price": 199.99, "price_formatted": "$199.99"},
            {"name": "Camera Lens", "price": 349.99, "price_formatted": "$349.99"},
        ],
    },
    "category": {
        "name": "Electronics",
        "description": "This is a sample category description.",
        "product_count": 24,
        "products": [
            {"name": "Wireless Headphones", "price": 89.99, "price_formatted": "$89.99", "in_stock": True},
            {"name": "Smart Watch", "price": 199.99, "price_formatted": "$199.99", "in_stock": True},
            {"name": "Backpack", "price": 79.99, "price_formatted": "$79.99", "in_stock": False},
        ],
    },
    "cart": {
        "item_count": 3,
        "subtotal": 249.97,
        "subtotal_formatted": "$249.97",
        "tax": 20.0,
        "tax_formatted": "$20.00",
        "shipping": 9.99,
        "shipping_formatted": "$9.99",
        "total": 279.96,
        "total_formatted": "$279.96",
        "items": [
            {"name": "Cart Item 1", "price": 99.99, "price_formatted": "$99.99", "quantity": 1},
            {"name": "Cart Item 2", "price": 74.99, "price_formatted": "$74.99", "quantity": 2},
        ],
    },
    "productLabels": [
        {"id": 1, "text": "SALE", "position": "top-right", "background_color": "#ef4444", "text_color": "#ffffff", "priority": 1},
        {"id": 2, "text": "NEW", "position": "top-left", "background_color": "#22c55e", "text_color": "#ffffff", "priority": 2},
    ],
    "settings": {
        "currency_symbol": "$",
        "language": "en",
        "display_low_stock_threshold": 10,
        "product_gallery_layout": "horizontal",
        "theme": {"primary_color": "#3B82F6", "add_to_cart_button_color": "#3B82F6"},
    },
}


def generate_demo_data(page_type: Optional[str] = None, settings: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return a fresh demo context; ``settings`` entries override the demo settings."""
    data = copy.deepcopy(_DEMO_DATA)
    if settings:
        data["settings"].update(copy.deepcopy(dict(settings)))
    if page_type:
        data["page_type"] = page_type
    return data


def _is_empty(value: Any) -> bool:
    return value is None or value == [] or value == {} or value == ""


def with_demo_fallback(context: Mapping[str, Any], page_type: Optional[str] = None) -> Dict[str, Any]:
    """Fill the top-level keys that ``context`` lacks with demo values."""
    merged = dict(context)
    settings = context.get("settings") if isinstance(context.get("settings"), Mapping) else None
    for key, value in generate_demo_data(page_type, settings).items():
        if _is_empty(merged.get(key)):
            merged[key] = value
    return merged
