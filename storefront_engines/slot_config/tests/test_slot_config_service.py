import pytest
from fastapi import HTTPException

from storefront_engines.ab_variants.cache import MergedTreeCache, set_merged_tree_cache
from storefront_engines.ab_variants.models import Variant
from storefront_engines.common.identity import RequestContext
from storefront_engines.logging.audit import set_audit_sink
from storefront_engines.slot_config.repository import InMemorySlotConfigurationRepository
from storefront_engines.slot_config.service import SlotConfigurationService
from storefront_engines.slot_config.tree import OrphanSlotError


@pytest.fixture
def ctx():
    return RequestContext(store_id="store_1", env="dev", user_id="u_1")


@pytest.fixture
def audit_events():
    events = []

    def _sink(event):
        events.append(event)
        return {"status": "accepted"}

    set_audit_sink(_sink)
    yield events
    set_audit_sink(None)


@pytest.fixture
def service():
    return SlotConfigurationService(repo=InMemorySlotConfigurationRepository())


def _layout(text="Hello"):
    return {
        "root": {"id": "root", "type": "container"},
        "title": {"id": "title", "type": "text", "content": text, "parentId": "root", "position": {"col": 1, "row": 1}},
    }


def test_draft_seeds_from_default(service, ctx):
    draft = service.get_draft(ctx, "cart")
    assert draft.status == "draft"
    assert "main_layout" in draft.slots
    assert service.get_draft(ctx, "cart").id == draft.id


def test_unknown_page_type_gets_empty_draft(service, ctx):
    draft = service.get_draft(ctx, "landing")
    assert draft.slots == {}


def test_save_draft_validates_and_audits(service, ctx, audit_events):
    saved = service.save_draft(ctx, "product", _layout())
    assert set(saved.slots) == {"root", "title"}
    assert audit_events[-1].action == "slot_config.save_draft"
    assert audit_events[-1].store_id == "store_1"

    broken = _layout()
    broken["title"]["parentId"] = "ghost"
    with pytest.raises(OrphanSlotError):
        service.save_draft(ctx, "product", broken)
    assert service.get_draft(ctx, "product").slots["title"].parent_id == "root"


def test_publish_creates_new_version_and_keeps_draft_separate(service, ctx, audit_events):
    service.save_draft(ctx, "product", _layout("v1"))
    first = service.publish(ctx, "product")
    assert first.status == "published"
    assert first.version == 1
    assert audit_events[-1].action == "slot_config.publish"

    draft = service.get_draft(ctx, "product")
    assert draft.id != first.id
    assert draft.parent_version_id == first.id

    service.save_draft(ctx, "product", _layout("v2"))
    second = service.publish(ctx, "product")
    assert second.version == 2
    assert service.get_published(ctx, "product").slots["title"].content == "v2"
    assert service.get_published(ctx, "product", version=1).slots["title"].content == "v1"
    assert [v["version"] for v in service.list_versions(ctx, "product")] == [2, 1]


def test_publish_without_draft_is_404(service, ctx):
    with pytest.raises(HTTPException) as exc:
        service.publish(ctx, "product")
    assert exc.value.status_code == 404
    assert exc.value.detail["error"]["code"] == "slot_configuration.draft_not_found"


def test_get_published_missing_is_404(service, ctx):
    with pytest.raises(HTTPException) as exc:
        service.get_published(ctx, "product")
    assert exc.value.status_code == 404


def test_publish_busts_merged_tree_cache(service, ctx):
    cache = MergedTreeCache(enabled=True)
    set_merged_tree_cache(cache)
    try:
        service.save_draft(ctx, "product", _layout())
        service.publish(ctx, "product")
        tree, version = service.load_tree(ctx, "product")
        cache.get_or_merge(ctx.store_id, "product", version, tree, [Variant(id="v_a")])
        cache.get_or_merge("other_store", "product", version, tree, [])
        assert len(cache) == 2

        service.save_draft(ctx, "product", _layout("again"))
        service.publish(ctx, "product")
        assert len(cache) == 1
    finally:
        set_merged_tree_cache(MergedTreeCache())


def test_load_tree_falls_back_to_default_then_published(service, ctx):
    tree, version = service.load_tree(ctx, "cart")
    assert version == 0
    assert "cart_items" in tree.slots

    service.save_draft(ctx, "cart", _layout())
    service.publish(ctx, "cart")
    tree, version = service.load_tree(ctx, "cart")
    assert version == 1
    assert set(tree.slots) == {"root", "title"}


def test_stores_are_isolated(service, ctx):
    service.save_draft(ctx, "product", _layout("mine"))
    service.publish(ctx, "product")
    other = RequestContext(store_id="store_2", env="dev")
    with pytest.raises(HTTPException):
        service.get_published(other, "product")
