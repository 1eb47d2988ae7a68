from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Tuple, Union
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

SlotType = Literal["text", "button", "image", "component", "container", "grid", "flex", "html", "cms"]
PageStatus = Literal["draft", "published"]

CONTAINER_TYPES = ("container", "grid", "flex")
ALWAYS_VISIBLE_VIEW_MODE = "default"

ColSpan = Union[int, str, Dict[str, Union[int, str]]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SlotPosition(BaseModel):
    col: int = Field(default=0, ge=0)
    row: int = Field(default=0, ge=0)


class Slot(BaseModel):
    """One node of a page layout.

    Stored JSON uses camelCase keys (``className``, ``parentId``, ``colSpan``,
    ``viewModes``); unknown keys are kept so a load/save round trip is lossless.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(min_length=1)
    type: SlotType = "text"
    content: str = ""
    class_name: str = Field(default="", alias="className")
    styles: Dict[str, Any] = Field(default_factory=dict)
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    position: Optional[SlotPosition] = None
    col_span: Optional[ColSpan] = Field(default=None, alias="colSpan")
    view_modes: List[str] = Field(
        default_factory=list,
        alias="viewModes",
        validation_alias=AliasChoices("viewModes", "viewMode", "view_modes"),
    )
    component: Optional[str] = None
    props: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("content", "class_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("styles", "props", "metadata", mode="before")
    @classmethod
    def _none_to_dict(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("view_modes", mode="before")
    @classmethod
    def _coerce_view_modes(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_is_root(cls, value: Any) -> Any:
        return value or None

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_TYPES

    @property
    def component_name(self) -> Optional[str]:
        return self.metadata.get("component") or self.component

    @property
    def sort_key(self) -> Tuple[int, int]:
        if self.position is None:
            return (0, 0)
        return (self.position.row, self.position.col)

    def shows_in(self, view_mode: Optional[str]) -> bool:
        """True when the slot belongs to ``view_mode`` or declares no restriction.

        No active mode means ``default``, so restricted slots stay hidden unless
        they list ``default`` themselves.
        """
        if not self.view_modes:
            return True
        active = view_mode or ALWAYS_VISIBLE_VIEW_MODE
        return ALWAYS_VISIBLE_VIEW_MODE in self.view_modes or active in self.view_modes

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SlotTree(BaseModel):
    page_type: str
    store_id: Optional[str] = None
    slots: Dict[str, Slot] = Field(default_factory=dict)
    feature_flags: Dict[str, Any] = Field(default_factory=dict)

    def get(self, slot_id: str) -> Optional[Slot]:
        return self.slots.get(slot_id)

    def children(self, parent_id: Optional[str]) -> List[Slot]:
        kids = [slot for slot in self.slots.values() if slot.parent_id == parent_id]
        return sorted(kids, key=lambda slot: slot.sort_key)

    def roots(self) -> List[Slot]:
        return self.children(None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_type": self.page_type,
            "store_id": self.store_id,
            "slots": {slot_id: slot.to_dict() for slot_id, slot in self.slots.items()},
            "feature_flags": self.feature_flags,
        }

    def fingerprint(self) -> str:
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class PageConfiguration(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    store_id: str
    env: str = "dev"
    page_type: str
    status: PageStatus = "draft"
    version: int = Field(default=1, ge=0)
    slots: Dict[str, Slot] = Field(default_factory=dict)
    feature_flags: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    parent_version_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    published_at: Optional[datetime] = None

    def to_tree(self) -> SlotTree:
        return SlotTree(
            page_type=self.page_type,
            store_id=self.store_id,
            slots={slot_id: slot.model_copy(deep=True) for slot_id, slot in self.slots.items()},
            feature_flags=dict(self.feature_flags),
        )

    def to_record(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"slots"})
        data["slots"] = {slot_id: slot.to_dict() for slot_id, slot in self.slots.items()}
        return data


class SaveDraftRequest(BaseModel):
    slots: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    feature_flags: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
