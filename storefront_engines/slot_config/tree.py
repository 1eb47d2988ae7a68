"""Load-time validation of slot trees.

Structural rules are checked when a configuration is loaded or saved, never
while rendering:

* every non-root ``parentId`` names an existing slot
* parentage is acyclic
* slot ids are unique and match their key in the slots map
* ``(row, col)`` is unique among the children of one parent
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from storefront_engines.slot_config.models import Slot, SlotTree


class SlotTreeError(ValueError):
    code = "slot_config.invalid_tree"

    def __init__(self, message: str, slot_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.slot_id = slot_id


class CyclicParentageError(SlotTreeError):
    pass


class DuplicateSlotIdError(SlotTreeError):
    pass


class OrphanSlotError(SlotTreeError):
    pass


class SlotPositionConflictError(SlotTreeError):
    pass


class InvalidSlotError(SlotTreeError):
    code = "slot_config.invalid_slot"


RawSlots = Union[Mapping[str, Any], Iterable[Any]]


def _coerce_slot(value: Any, key: Optional[str] = None) -> Slot:
    if isinstance(value, Slot):
        return value
    if not isinstance(value, Mapping):
        raise InvalidSlotError(f"slot {key!r} must be an object", slot_id=key)
    data = dict(value)
    if key is not None:
        data.setdefault("id", key)
    try:
        return Slot.model_validate(data)
    except ValidationError as exc:
        raise InvalidSlotError(f"slot {key or data.get('id')!r} is invalid: {exc.errors()[0]['msg']}", slot_id=key) from exc


def build_slots(raw: RawSlots) -> Dict[str, Slot]:
    """Coerce a slots map (or list) into ``Slot`` models keyed by id."""
    slots: Dict[str, Slot] = {}
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            slot = _coerce_slot(value, key)
            if slot.id != key:
                raise DuplicateSlotIdError(f"slot key {key!r} does not match slot id {slot.id!r}", slot_id=key)
            slots[key] = slot
        return slots

    for value in raw:
        slot = _coerce_slot(value)
        if slot.id in slots:
            raise DuplicateSlotIdError(f"duplicate slot id {slot.id!r}", slot_id=slot.id)
        slots[slot.id] = slot
    return slots


def check_slot_placement(slots: Mapping[str, Slot], slot: Slot) -> None:
    """Validate ``slot`` as if it were stored in ``slots`` (replacing any same-id entry)."""

    def lookup(slot_id: str) -> Optional[Slot]:
        return slot if slot_id == slot.id else slots.get(slot_id)

    if slot.parent_id is not None:
        if lookup(slot.parent_id) is None:
            raise OrphanSlotError(f"slot {slot.id!r} references missing parent {slot.parent_id!r}", slot_id=slot.id)
        seen = {slot.id}
        current = lookup(slot.parent_id)
        while current is not None:
            if current.id in seen:
                raise CyclicParentageError(f"slot {slot.id!r} is part of a parentage cycle", slot_id=slot.id)
            seen.add(current.id)
            current = lookup(current.parent_id) if current.parent_id else None

    if slot.position is None:
        return
    for other in slots.values():
        if other.id == slot.id or other.parent_id != slot.parent_id or other.position is None:
            continue
        if other.sort_key == slot.sort_key:
            raise SlotPositionConflictError(
                f"slots {other.id!r} and {slot.id!r} share row {slot.position.row} col {slot.position.col}",
                slot_id=slot.id,
            )


def validate_slot_tree(tree: SlotTree) -> SlotTree:
    for key, slot in tree.slots.items():
        if slot.id != key:
            raise DuplicateSlotIdError(f"slot key {key!r} does not match slot id {slot.id!r}", slot_id=key)
    for slot in tree.slots.values():
        check_slot_placement(tree.slots, slot)
    return tree


def load_slot_tree(
    raw_slots: RawSlots,
    page_type: str,
    store_id: Optional[str] = None,
    feature_flags: Optional[Mapping[str, Any]] = None,
) -> SlotTree:
    """Build a ``SlotTree`` from stored JSON and validate it."""
    tree = SlotTree(
        page_type=page_type,
        store_id=store_id,
        slots=build_slots(raw_slots),
        feature_flags=dict(feature_flags or {}),
    )
    return validate_slot_tree(tree)
