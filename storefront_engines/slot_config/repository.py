from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from storefront_engines.slot_config.models import PageConfiguration


class SlotConfigurationRepository(Protocol):
    def save(self, config: PageConfiguration) -> PageConfiguration: ...
    def get(self, store_id: str, env: str, config_id: str) -> Optional[PageConfiguration]: ...
    def get_draft(self, store_id: str, env: str, page_type: str) -> Optional[PageConfiguration]: ...
    def list_published(self, store_id: str, env: str, page_type: str) -> List[PageConfiguration]: ...
    def delete(self, store_id: str, env: str, config_id: str) -> None: ...


class InMemorySlotConfigurationRepository:
    def __init__(self) -> None:
        self._items: Dict[tuple[str, str, str], PageConfiguration] = {}

    def save(self, config: PageConfiguration) -> PageConfiguration:
        self._items[(config.store_id, config.env, config.id)] = config.model_copy(deep=True)
        return config

    def get(self, store_id: str, env: str, config_id: str) -> Optional[PageConfiguration]:
        item = self._items.get((store_id, env, config_id))
        return item.model_copy(deep=True) if item else None

    def _scoped(self, store_id: str, env: str, page_type: str) -> List[PageConfiguration]:
        return [
            c for (s, e, _), c in self._items.items()
            if s == store_id and e == env and c.page_type == page_type
        ]

    def get_draft(self, store_id: str, env: str, page_type: str) -> Optional[PageConfiguration]:
        drafts = [c for c in self._scoped(store_id, env, page_type) if c.status == "draft"]
        if not drafts:
            return None
        latest = max(drafts, key=lambda c: c.updated_at)
        return latest.model_copy(deep=True)

    def list_published(self, store_id: str, env: str, page_type: str) -> List[PageConfiguration]:
        published = [c for c in self._scoped(store_id, env, page_type) if c.status == "published"]
        return [c.model_copy(deep=True) for c in sorted(published, key=lambda c: c.version, reverse=True)]

    def delete(self, store_id: str, env: str, config_id: str) -> None:
        self._items.pop((store_id, env, config_id), None)


class FirestoreSlotConfigurationRepository(InMemorySlotConfigurationRepository):
    """Firestore implementation."""

    def __init__(self, client: Optional[object] = None) -> None:  # pragma: no cover - optional dep
        try:
            from google.cloud import firestore  # type: ignore
        except Exception as exc:
            raise RuntimeError("google-cloud-firestore not installed") from exc
        from storefront_engines.config import runtime_config

        project = runtime_config.get_firestore_project()
        if not project:
            raise RuntimeError("GCP project is required for Firestore slot configuration repo")
        self._client = client or firestore.Client(project=project)  # type: ignore[arg-type]
        self._collection = "slot_configurations"

    def _col(self):
        return self._client.collection(self._collection)

    def _query(self, store_id: str, env: str, page_type: str, status: str):
        return (
            self._col()
            .where("store_id", "==", store_id)
            .where("env", "==", env)
            .where("page_type", "==", page_type)
            .where("status", "==", status)
        )

    def save(self, config: PageConfiguration) -> PageConfiguration:
        self._col().document(config.id).set(config.to_record())
        return config

    def get(self, store_id: str, env: str, config_id: str) -> Optional[PageConfiguration]:
        snap = self._col().document(config_id).get()
        if snap and snap.exists:
            data = snap.to_dict()
            if data.get("store_id") == store_id and data.get("env") == env:
                return PageConfiguration(**data)
        return None

    def get_draft(self, store_id: str, env: str, page_type: str) -> Optional[PageConfiguration]:
        drafts = [PageConfiguration(**d.to_dict()) for d in self._query(store_id, env, page_type, "draft").stream()]
        if not drafts:
            return None
        return max(drafts, key=lambda c: c.updated_at)

    def list_published(self, store_id: str, env: str, page_type: str) -> List[PageConfiguration]:
        items = [PageConfiguration(**d.to_dict()) for d in self._query(store_id, env, page_type, "published").stream()]
        return sorted(items, key=lambda c: c.version, reverse=True)

    def delete(self, store_id: str, env: str, config_id: str) -> None:
        snap = self._col().document(config_id).get()
        if snap and snap.exists:
            data = snap.to_dict()
            if data.get("store_id") == store_id and data.get("env") == env:
                self._col().document(config_id).delete()
