from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from storefront_engines.ab_variants.cache import get_merged_tree_cache
from storefront_engines.common.error_envelope import error_response, not_found_error
from storefront_engines.common.identity import RequestContext
from storefront_engines.config import runtime_config
from storefront_engines.logging.audit import emit_audit_event
from storefront_engines.slot_config.defaults import get_default_configuration
from storefront_engines.slot_config.models import PageConfiguration, SlotTree
from storefront_engines.slot_config.repository import (
    FirestoreSlotConfigurationRepository,
    InMemorySlotConfigurationRepository,
    SlotConfigurationRepository,
)
from storefront_engines.slot_config.tree import build_slots, load_slot_tree, validate_slot_tree

logger = logging.getLogger(__name__)

DEFAULT_VERSION = 0


def _default_repo() -> SlotConfigurationRepository:
    if runtime_config.get_slot_config_backend() == "firestore":
        try:
            return FirestoreSlotConfigurationRepository()
        except Exception as exc:
            logger.warning("firestore slot configuration repo unavailable, using memory: %s", exc)
            return InMemorySlotConfigurationRepository()
    return InMemorySlotConfigurationRepository()


slot_config_repo: SlotConfigurationRepository = _default_repo()


class SlotConfigurationService:
    def __init__(self, repo: Optional[SlotConfigurationRepository] = None) -> None:
        self.repo = repo or slot_config_repo

    def _latest_published(self, ctx: RequestContext, page_type: str) -> Optional[PageConfiguration]:
        versions = self.repo.list_published(ctx.store_id, ctx.env, page_type)
        return versions[0] if versions else None

    def get_draft(self, ctx: RequestContext, page_type: str) -> PageConfiguration:
        """Return the editor draft, seeding it from the latest publish or the page default."""
        draft = self.repo.get_draft(ctx.store_id, ctx.env, page_type)
        if draft:
            return draft

        published = self._latest_published(ctx, page_type)
        if published:
            draft = PageConfiguration(
                store_id=ctx.store_id,
                env=ctx.env,
                page_type=page_type,
                status="draft",
                version=published.version + 1,
                slots={k: v.model_copy(deep=True) for k, v in published.slots.items()},
                feature_flags=dict(published.feature_flags),
                metadata=dict(published.metadata),
                parent_version_id=published.id,
            )
        else:
            default = get_default_configuration(page_type) or {}
            draft = PageConfiguration(
                store_id=ctx.store_id,
                env=ctx.env,
                page_type=page_type,
                status="draft",
                version=DEFAULT_VERSION + 1,
                slots=build_slots(default.get("slots", {})),
                feature_flags=default.get("feature_flags", {}),
                metadata=default.get("metadata", {}),
            )
        return self.repo.save(draft)

    def save_draft(
        self,
        ctx: RequestContext,
        page_type: str,
        slots: Mapping[str, Any],
        feature_flags: Optional[Mapping[str, Any]] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> PageConfiguration:
        tree = load_slot_tree(slots, page_type=page_type, store_id=ctx.store_id, feature_flags=feature_flags)
        draft = self.get_draft(ctx, page_type)
        draft.slots = tree.slots
        if feature_flags is not None:
            draft.feature_flags = dict(feature_flags)
        if metadata is not None:
            draft.metadata = {**draft.metadata, **metadata}
        draft.updated_at = datetime.now(timezone.utc)
        saved = self.repo.save(draft)
        emit_audit_event(
            ctx,
            action="slot_config.save_draft",
            surface="slot_config",
            metadata={"page_type": page_type, "config_id": saved.id, "slot_count": len(saved.slots)},
        )
        return saved

    def publish(self, ctx: RequestContext, page_type: str) -> PageConfiguration:
        draft = self.repo.get_draft(ctx.store_id, ctx.env, page_type)
        if not draft:
            error_response(
                code="slot_configuration.draft_not_found",
                message=f"no draft to publish for page {page_type}",
                status_code=404,
                resource_kind="slot_configuration",
                details={"page_type": page_type},
            )
        validate_slot_tree(draft.to_tree())

        latest = self._latest_published(ctx, page_type)
        now = datetime.now(timezone.utc)
        published = PageConfiguration(
            store_id=ctx.store_id,
            env=ctx.env,
            page_type=page_type,
            status="published",
            version=(latest.version if latest else DEFAULT_VERSION) + 1,
            slots={k: v.model_copy(deep=True) for k, v in draft.slots.items()},
            feature_flags=dict(draft.feature_flags),
            metadata=dict(draft.metadata),
            parent_version_id=latest.id if latest else None,
            created_at=now,
            updated_at=now,
            published_at=now,
        )
        self.repo.save(published)
        self.repo.delete(ctx.store_id, ctx.env, draft.id)

        dropped = get_merged_tree_cache().invalidate(ctx.store_id, page_type)
        emit_audit_event(
            ctx,
            action="slot_config.publish",
            surface="slot_config",
            metadata={
                "page_type": page_type,
                "config_id": published.id,
                "version": published.version,
                "cache_entries_dropped": dropped,
            },
        )
        return published

    def get_published(self, ctx: RequestContext, page_type: str, version: Optional[int] = None) -> PageConfiguration:
        versions = self.repo.list_published(ctx.store_id, ctx.env, page_type)
        if version is not None:
            versions = [c for c in versions if c.version == version]
        if not versions:
            not_found_error("slot_configuration", {"page_type": page_type, "version": version})
        return versions[0]

    def list_versions(self, ctx: RequestContext, page_type: str) -> List[Dict[str, Any]]:
        return [
            {
                "id": c.id,
                "version": c.version,
                "status": c.status,
                "published_at": c.published_at,
                "slot_count": len(c.slots),
            }
            for c in self.repo.list_published(ctx.store_id, ctx.env, page_type)
        ]

    def load_tree(self, ctx: RequestContext, page_type: str, draft: bool = False) -> Tuple[SlotTree, int]:
        """Base tree for rendering plus the version it came from.

        Storefront renders read the latest publish and fall back to the page
        default (version 0); editor previews read the draft.
        """
        if draft:
            config = self.get_draft(ctx, page_type)
            return config.to_tree(), config.version

        published = self._latest_published(ctx, page_type)
        if published:
            return published.to_tree(), published.version

        default = get_default_configuration(page_type)
        if default is None:
            not_found_error("slot_configuration", {"page_type": page_type})
        tree = load_slot_tree(
            default.get("slots", {}),
            page_type=page_type,
            store_id=ctx.store_id,
            feature_flags=default.get("feature_flags", {}),
        )
        return tree, DEFAULT_VERSION


_default_service: Optional[SlotConfigurationService] = None


def get_slot_configuration_service() -> SlotConfigurationService:
    global _default_service
    if _default_service is None:
        _default_service = SlotConfigurationService()
    return _default_service


def set_slot_configuration_service(service: SlotConfigurationService) -> None:
    global _default_service, slot_config_repo
    _default_service = service
    slot_config_repo = service.repo
