from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from storefront_engines.ab_variants.models import Variant


class VariantProvider(Protocol):
    """Returns the variants already assigned to a session, in assignment order."""

    def get_active_variants(self, store_id: str, page_type: str, session_id: Optional[str]) -> List[Variant]: ...


class InMemoryVariantProvider:
    def __init__(self) -> None:
        self._assignments: Dict[tuple[str, str, Optional[str]], List[Variant]] = {}

    def assign(
        self,
        store_id: str,
        page_type: str,
        variants: Sequence[Variant],
        session_id: Optional[str] = None,
    ) -> None:
        """Record variants for a session, or for every session when ``session_id`` is None."""
        self._assignments[(store_id, page_type, session_id)] = list(variants)

    def get_active_variants(self, store_id: str, page_type: str, session_id: Optional[str]) -> List[Variant]:
        if session_id is not None and (store_id, page_type, session_id) in self._assignments:
            return list(self._assignments[(store_id, page_type, session_id)])
        return list(self._assignments.get((store_id, page_type, None), []))

    def clear(self) -> None:
        self._assignments.clear()


variant_provider: VariantProvider = InMemoryVariantProvider()


def get_variant_provider() -> VariantProvider:
    return variant_provider


def set_variant_provider(provider: VariantProvider) -> None:
    global variant_provider
    variant_provider = provider
