from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class VariantConfig(BaseModel):
    """Override payload carried by one A/B variant."""

    model_config = ConfigDict(extra="allow")

    slot_configuration: Optional[Dict[str, Any]] = None
    slot_overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    component_props: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    style_overrides: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    feature_flags: Dict[str, Any] = Field(default_factory=dict)


class Variant(BaseModel):
    id: str
    name: str = ""
    test_id: Optional[str] = None
    weight: float = Field(default=1.0, ge=0)
    is_control: bool = False
    config: VariantConfig = Field(default_factory=VariantConfig)
