from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from storefront_engines.slot_config.models import Slot
from storefront_engines.slot_render.models import RenderMode, RenderNode

RenderFn = Callable[[Slot, Mapping[str, Any], RenderMode], RenderNode]


class ComponentRenderer(Protocol):
    def render(self, slot: Slot, context: Mapping[str, Any], mode: RenderMode) -> RenderNode: ...


class ComponentRegistry:
    """Named component renderers available to one dispatcher.

    Renderers are objects with a ``render(slot, context, mode)`` method or
    plain callables with the same signature.
    """

    def __init__(self, renderers: Optional[Mapping[str, Any]] = None) -> None:
        self._renderers: Dict[str, RenderFn] = {}
        for name, renderer in (renderers or {}).items():
            self.register(name, renderer)

    def register(self, name: str, renderer: Any) -> None:
        if not name:
            raise ValueError("component name is required")
        render = getattr(renderer, "render", renderer)
        if not callable(render):
            raise TypeError(f"renderer for {name!r} is not callable")
        self._renderers[name] = render

    def unregister(self, name: str) -> None:
        self._renderers.pop(name, None)

    def get(self, name: Optional[str]) -> Optional[RenderFn]:
        if not name:
            return None
        return self._renderers.get(name)

    def has(self, name: str) -> bool:
        return name in self._renderers

    def names(self) -> List[str]:
        return sorted(self._renderers)

    def __contains__(self, name: object) -> bool:
        return name in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)
