"""Viewport simulation for utility classes.

The storefront relies on real CSS media queries, so this resolver is a pass
through there. The editor has no real breakpoints and rewrites prefixed
utilities (``md:flex``) to approximate what the chosen viewport would show.
"""
from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Tuple

from storefront_engines.slot_config.models import Slot
from storefront_engines.slot_render.models import RenderMode

BREAKPOINTS: Tuple[str, ...] = ("sm", "md", "lg", "xl", "2xl")

# breakpoints that apply, ascending, per simulated viewport; mobile unwraps every prefix
APPLIED_BREAKPOINTS = {
    "mobile": BREAKPOINTS,
    "tablet": ("sm", "md", "lg"),
    "desktop": BREAKPOINTS,
}

DISPLAY_UTILITIES = frozenset(
    {
        "hidden",
        "block",
        "inline",
        "inline-block",
        "flex",
        "inline-flex",
        "grid",
        "inline-grid",
        "table",
        "contents",
        "flow-root",
        "list-item",
    }
)

_PREFIXED = re.compile(r"^(sm|md|lg|xl|2xl):(.+)$")


def _normalize_viewport(viewport: Optional[str]) -> str:
    return viewport if viewport in APPLIED_BREAKPOINTS else "desktop"


class ResponsiveResolver:
    def __init__(self, mode: RenderMode = "storefront") -> None:
        self.mode = mode

    def transform_classes(self, class_string: Optional[str], viewport: Optional[str]) -> str:
        if not class_string:
            return ""
        if self.mode != "editor":
            return class_string

        viewport = _normalize_viewport(viewport)
        tokens = class_string.split()
        if viewport == "desktop":
            return " ".join(tokens)

        applied = APPLIED_BREAKPOINTS[viewport]
        result = []
        for token in tokens:
            match = _PREFIXED.match(token)
            if not match:
                result.append(token)
                continue
            breakpoint, utility = match.groups()
            if breakpoint in applied:
                result.append(utility)
        return " ".join(result)

    def is_visible(self, slot: Slot, viewport: Optional[str], class_name: Optional[str] = None) -> bool:
        """Cascade the display utilities over the breakpoints ``transform_classes`` applies.

        ``class_name`` is the template-processed class string; the slot's raw
        ``className`` is used when it is not given.
        """
        if self.mode != "editor":
            return True

        tokens = (slot.class_name if class_name is None else class_name).split()
        display: Optional[str] = None
        for token in tokens:
            if token in DISPLAY_UTILITIES:
                display = token
        for breakpoint in APPLIED_BREAKPOINTS[_normalize_viewport(viewport)]:
            for token in tokens:
                match = _PREFIXED.match(token)
                if match and match.group(1) == breakpoint and match.group(2) in DISPLAY_UTILITIES:
                    display = match.group(2)
        return display != "hidden"


def resolve_col_span(col_span: Any, view_mode: Optional[str] = None) -> str:
    """Turn a slot's ``colSpan`` into a class string.

    ints become ``col-span-N``; strings pass through; mappings are keyed by
    view mode with ``default`` and then the first entry as fallbacks.
    """
    if col_span is None or isinstance(col_span, bool):
        return ""
    if isinstance(col_span, Mapping):
        if not col_span:
            return ""
        if view_mode is not None and view_mode in col_span:
            value = col_span[view_mode]
        elif "default" in col_span:
            value = col_span["default"]
        else:
            value = next(iter(col_span.values()))
        return resolve_col_span(value) if not isinstance(value, Mapping) else ""
    if isinstance(col_span, int):
        return f"col-span-{col_span}"
    if isinstance(col_span, str):
        value = col_span.strip()
        return f"col-span-{value}" if value.isdigit() else value
    return ""
