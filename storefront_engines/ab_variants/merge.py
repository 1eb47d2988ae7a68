"""Applies active A/B variants onto a base slot tree.

Precedence, highest first: ``slot_configuration`` (whole tree replacement),
``slot_overrides``, ``component_props``, ``style_overrides``,
``feature_flags``. Inside one variant the rules run lowest first so the
higher rule wins on overlapping leaves; across variants the last applied
value wins. The merge is pure: inputs are never mutated and equal inputs
produce equal fingerprints.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional, Sequence

from pydantic import ValidationError

from storefront_engines.ab_variants.models import Variant
from storefront_engines.slot_config.models import Slot, SlotTree
from storefront_engines.slot_config.tree import OrphanSlotError, SlotTreeError, check_slot_placement, load_slot_tree

logger = logging.getLogger(__name__)

_FIELD_ALIASES = {
    "class_name": "className",
    "parent_id": "parentId",
    "col_span": "colSpan",
    "view_modes": "viewModes",
    "viewMode": "viewModes",
}

PatchFn = Callable[[MutableMapping[str, Any], Mapping[str, Any]], None]


def deep_merge(base: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def apply_slot_override(data: MutableMapping[str, Any], patch: Mapping[str, Any]) -> None:
    for key, value in patch.items():
        key = _FIELD_ALIASES.get(key, key)
        if key == "id":
            continue
        if key == "props" and isinstance(value, Mapping) and isinstance(data.get("props"), Mapping):
            data["props"] = deep_merge(data["props"], value)
        else:
            data[key] = copy.deepcopy(value)


def apply_component_props(data: MutableMapping[str, Any], patch: Mapping[str, Any]) -> None:
    metadata = data.get("metadata")
    if isinstance(metadata, Mapping) and isinstance(metadata.get("props"), Mapping):
        metadata = dict(metadata)
        metadata["props"] = deep_merge(metadata["props"], patch)
        data["metadata"] = metadata
        return
    data["props"] = deep_merge(data.get("props") or {}, patch)


def apply_style_override(data: MutableMapping[str, Any], patch: Mapping[str, Any]) -> None:
    if not any(key in patch for key in ("className", "class_name", "styles")):
        # bare mapping of CSS properties
        patch = {"styles": patch}
    class_name = patch.get("className", patch.get("class_name"))
    if isinstance(class_name, str):
        data["className"] = class_name
    styles = patch.get("styles")
    if isinstance(styles, Mapping):
        merged = dict(data.get("styles") or {})
        merged.update(copy.deepcopy(dict(styles)))
        data["styles"] = merged


class VariantMergeEngine:
    def merge(self, base_tree: SlotTree, active_variants: Sequence[Variant]) -> SlotTree:
        variants = [variant for variant in active_variants if not variant.is_control]
        start = self._select_replacement(base_tree, variants)

        slots: Dict[str, Slot] = {slot_id: slot.model_copy(deep=True) for slot_id, slot in start.slots.items()}
        flags: Dict[str, Any] = copy.deepcopy(start.feature_flags)

        for variant in variants:
            config = variant.config
            flags.update(copy.deepcopy(config.feature_flags))
            for slot_id, patch in config.style_overrides.items():
                self._patch_slot(slots, variant, slot_id, patch, apply_style_override)
            for slot_id, patch in config.component_props.items():
                self._patch_slot(slots, variant, slot_id, patch, apply_component_props)
            self._apply_slot_overrides(slots, variant)

        return SlotTree(
            page_type=start.page_type,
            store_id=start.store_id,
            slots=slots,
            feature_flags=flags,
        )

    def _apply_slot_overrides(self, slots: Dict[str, Slot], variant: Variant) -> None:
        # created slots may reference parents created later in the same map
        pending = list(variant.config.slot_overrides.items())
        while pending:
            deferred = [
                (slot_id, patch)
                for slot_id, patch in pending
                if not self._patch_slot(
                    slots, variant, slot_id, patch, apply_slot_override, allow_create=True, defer_orphans=True
                )
            ]
            if len(deferred) == len(pending):
                for slot_id, patch in deferred:
                    self._patch_slot(slots, variant, slot_id, patch, apply_slot_override, allow_create=True)
                return
            pending = deferred

    def _select_replacement(self, base_tree: SlotTree, variants: Sequence[Variant]) -> SlotTree:
        chosen: Optional[Variant] = None
        replacement: Optional[SlotTree] = None
        for variant in variants:
            raw = variant.config.slot_configuration
            if raw is None:
                continue
            if chosen is not None:
                logger.warning(
                    "ConflictingFullReplacement: variant %s slot_configuration ignored, variant %s already replaced page %s",
                    variant.id,
                    chosen.id,
                    base_tree.page_type,
                )
                continue
            try:
                replacement = self._replacement_tree(base_tree, raw)
            except SlotTreeError as exc:
                logger.warning("variant %s slot_configuration rejected: %s", variant.id, exc)
                continue
            chosen = variant
        return replacement or base_tree

    def _replacement_tree(self, base_tree: SlotTree, raw: Mapping[str, Any]) -> SlotTree:
        slots = raw.get("slots")
        flags: Mapping[str, Any] = {}
        if isinstance(slots, (Mapping, list)):
            flags = raw.get("feature_flags") or {}
        else:
            slots = raw
        return load_slot_tree(
            copy.deepcopy(slots),
            page_type=base_tree.page_type,
            store_id=base_tree.store_id,
            feature_flags=copy.deepcopy(dict(flags)),
        )

    def _patch_slot(
        self,
        slots: Dict[str, Slot],
        variant: Variant,
        slot_id: str,
        patch: Any,
        apply: PatchFn,
        allow_create: bool = False,
        defer_orphans: bool = False,
    ) -> bool:
        """Apply one patch; False means it was deferred until its parent exists."""
        if not isinstance(patch, Mapping):
            logger.warning("variant %s patch for slot %s is not an object, ignored", variant.id, slot_id)
            return True

        existing = slots.get(slot_id)
        if existing is None:
            if not allow_create or not patch.get("type") or patch.get("enabled") is False:
                logger.warning("variant %s targets unknown slot %s, ignored", variant.id, slot_id)
                return True
            data: Dict[str, Any] = {"id": slot_id}
        else:
            data = existing.to_dict()

        apply(data, patch)
        data["id"] = slot_id
        try:
            candidate = Slot.model_validate(data)
            check_slot_placement(slots, candidate)
        except OrphanSlotError as exc:
            if defer_orphans:
                return False
            logger.warning("variant %s patch for slot %s dropped: %s", variant.id, slot_id, exc)
            return True
        except (ValidationError, SlotTreeError) as exc:
            logger.warning("variant %s patch for slot %s dropped: %s", variant.id, slot_id, exc)
            return True
        slots[slot_id] = candidate
        return True


_default_engine: Optional[VariantMergeEngine] = None


def get_merge_engine() -> VariantMergeEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = VariantMergeEngine()
    return _default_engine
