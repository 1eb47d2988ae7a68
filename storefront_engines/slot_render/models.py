from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

RenderMode = Literal["editor", "storefront"]
Viewport = Literal["desktop", "tablet", "mobile"]


class RenderNode(BaseModel):
    """Presentation-agnostic output of one rendered slot."""

    type: str
    tag: str = "div"
    slot_id: Optional[str] = None
    parent_id: Optional[str] = None
    content: str = ""
    class_name: str = ""
    col_span_class: str = ""
    styles: Dict[str, Any] = Field(default_factory=dict)
    attributes: Dict[str, Any] = Field(default_factory=dict)
    component: Optional[str] = None
    placeholder: bool = False
    props: Dict[str, Any] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)
    children: List["RenderNode"] = Field(default_factory=list)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, slot_id: str) -> Optional["RenderNode"]:
        for node in self.walk():
            if node.slot_id == slot_id:
                return node
        return None


class RenderRequest(BaseModel):
    context: Dict[str, Any] = Field(default_factory=dict)
    mode: RenderMode = "storefront"
    viewport: Optional[Viewport] = None
    view_mode: Optional[str] = None
    use_demo_data: bool = False


class RenderResponse(BaseModel):
    page_type: str
    mode: RenderMode
    viewport: Viewport
    view_mode: Optional[str] = None
    version: int
    fingerprint: str
    variant_ids: List[str] = Field(default_factory=list)
    tree: RenderNode
