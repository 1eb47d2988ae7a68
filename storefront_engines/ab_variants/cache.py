"""Read-through cache of merged slot trees.

Entries are keyed by ``(store, page type, published version, variant ids)``
and only dropped by an explicit ``invalidate`` on publish.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Sequence, Tuple

from storefront_engines.ab_variants.merge import VariantMergeEngine
from storefront_engines.ab_variants.models import Variant
from storefront_engines.config import runtime_config
from storefront_engines.slot_config.models import SlotTree

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, int, Tuple[str, ...]]


class MergedTreeCache:
    def __init__(self, engine: Optional[VariantMergeEngine] = None, enabled: Optional[bool] = None) -> None:
        self.engine = engine or VariantMergeEngine()
        self._enabled = enabled
        self._entries: Dict[CacheKey, SlotTree] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        if self._enabled is not None:
            return self._enabled
        return runtime_config.render_cache_enabled()

    @staticmethod
    def key(store_id: str, page_type: str, version: int, variants: Sequence[Variant]) -> CacheKey:
        return (store_id, page_type, version, tuple(variant.id for variant in variants))

    def get_or_merge(
        self,
        store_id: str,
        page_type: str,
        version: int,
        base_tree: SlotTree,
        variants: Sequence[Variant],
    ) -> SlotTree:
        """Return the merged tree for this key, merging on a miss.

        Cached trees are shared between callers and must be treated as read only.
        """
        if not self.enabled:
            return self.engine.merge(base_tree, variants)

        cache_key = self.key(store_id, page_type, version, variants)
        with self._lock:
            cached = self._entries.get(cache_key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1

        merged = self.engine.merge(base_tree, variants)
        with self._lock:
            self._entries[cache_key] = merged
        return merged

    def invalidate(self, store_id: str, page_type: str) -> int:
        with self._lock:
            stale = [k for k in self._entries if k[0] == store_id and k[1] == page_type]
            for k in stale:
                del self._entries[k]
        if stale:
            logger.info("merged tree cache: dropped %s entries for %s/%s", len(stale), store_id, page_type)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)


_default_cache: Optional[MergedTreeCache] = None


def get_merged_tree_cache() -> MergedTreeCache:
    global _default_cache
    if _default_cache is None:
        _default_cache = MergedTreeCache()
    return _default_cache


def set_merged_tree_cache(cache: MergedTreeCache) -> None:
    global _default_cache
    _default_cache = cache
