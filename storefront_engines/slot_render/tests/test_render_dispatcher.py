"""Render dispatcher: ordering, gating, containment and editor affordances."""
import logging

import pytest

from storefront_engines.slot_config.defaults import get_default_configuration
from storefront_engines.slot_config.tree import load_slot_tree
from storefront_engines.slot_render.components import build_default_registry
from storefront_engines.slot_render.dispatcher import RenderDispatcher
from storefront_engines.slot_render.models import RenderNode
from storefront_engines.slot_render.registry import ComponentRegistry


def _tree(extra=None, flags=None):
    slots = {
        "main": {"id": "main", "type": "grid", "className": "md:gap-6"},
        "second": {
            "id": "second",
            "type": "text",
            "content": "{{product.sku}}",
            "parentId": "main",
            "position": {"col": 2, "row": 1},
        },
        "first": {
            "id": "first",
            "type": "text",
            "content": "{{product.name}}",
            "className": "title {{settings.title_class}}",
            "styles": {"color": "{{settings.theme.primary_color}}", "zIndex": 2},
            "parentId": "main",
            "position": {"col": 1, "row": 1},
            "metadata": {"htmlTag": "h1"},
            "colSpan": {"default": 6},
        },
        "cta": {
            "id": "cta",
            "type": "button",
            "content": "Buy",
            "parentId": "main",
            "position": {"col": 1, "row": 2},
        },
    }
    slots.update(extra or {})
    return load_slot_tree(slots, page_type="product", feature_flags=flags)


CONTEXT = {
    "product": {"name": "Hat", "sku": "H-1"},
    "settings": {"title_class": "big", "theme": {"primary_color": "#111"}},
}


@pytest.fixture
def dispatcher():
    return RenderDispatcher(ComponentRegistry())


def test_walks_parent_then_children_in_row_col_order(dispatcher):
    page = dispatcher.render(_tree(), CONTEXT, mode="storefront", viewport="desktop")
    assert page.type == "page"
    main = page.children[0]
    assert main.slot_id == "main"
    assert [child.slot_id for child in main.children] == ["first", "second", "cta"]
    assert all(child.parent_id == "main" for child in main.children)


def test_literal_nodes_are_template_processed(dispatcher):
    page = dispatcher.render(_tree(), CONTEXT, mode="storefront", viewport="desktop")
    first = page.find("first")
    assert first.tag == "h1"
    assert first.content == "Hat"
    assert first.class_name == "title big"
    assert first.styles == {"color": "#111", "zIndex": 2}
    assert first.col_span_class == "col-span-6"
    assert page.find("cta").tag == "button"
    assert page.find("second").tag == "span"


def test_container_defaults_and_editor_class_transform(dispatcher):
    storefront = dispatcher.render(_tree(), CONTEXT, mode="storefront", viewport="mobile")
    assert storefront.find("main").class_name == "grid grid-cols-12 gap-2 md:gap-6"
    editor = dispatcher.render(_tree(), CONTEXT, mode="editor", viewport="mobile")
    assert editor.find("main").class_name == "grid grid-cols-12 gap-2 gap-6"


def test_editor_mode_marks_nodes(dispatcher):
    page = dispatcher.render(_tree(), CONTEXT, mode="editor", viewport="desktop")
    first = page.find("first")
    assert first.attributes["data-slot-id"] == "first"
    assert first.attributes["data-parent-id"] == "main"
    assert first.attributes["data-editable"] == "true"
    storefront = dispatcher.render(_tree(), CONTEXT, mode="storefront", viewport="desktop")
    assert "data-slot-id" not in storefront.find("first").attributes


def test_hidden_subtree_skipped_in_editor_only(dispatcher):
    tree = _tree({"narrow_only": {"id": "narrow_only", "type": "container", "className": "block xl:hidden"}})
    assert dispatcher.render(tree, CONTEXT, mode="editor", viewport="desktop").find("narrow_only") is None
    assert dispatcher.render(tree, CONTEXT, mode="editor", viewport="tablet").find("narrow_only") is not None
    assert dispatcher.render(tree, CONTEXT, mode="storefront", viewport="desktop").find("narrow_only") is not None


def test_visibility_reads_template_processed_classes(dispatcher):
    extra = {"notice": {"id": "notice", "type": "text", "content": "n", "className": "{{#if settings.hide_notice}}hidden{{/if}}"}}
    hidden = dispatcher.render(_tree(extra), {**CONTEXT, "settings": {"hide_notice": True}}, mode="editor", viewport="desktop")
    shown = dispatcher.render(_tree(extra), CONTEXT, mode="editor", viewport="desktop")
    assert hidden.find("notice") is None
    assert shown.find("notice") is not None


def test_view_modes(dispatcher):
    tree = _tree(
        {
            "empty_msg": {"id": "empty_msg", "type": "text", "viewModes": ["emptyCart"], "position": {"col": 1, "row": 3}, "parentId": "main"},
            "always": {"id": "always", "type": "text", "viewModes": ["default"], "position": {"col": 2, "row": 3}, "parentId": "main"},
        }
    )
    with_products = dispatcher.render(tree, CONTEXT, viewport="desktop", view_mode="withProducts")
    assert with_products.find("empty_msg") is None
    assert with_products.find("always") is not None
    assert with_products.find("first") is not None

    empty = dispatcher.render(tree, CONTEXT, viewport="desktop", view_mode="emptyCart")
    assert empty.find("empty_msg") is not None


def test_restricted_slots_hidden_without_active_view_mode(dispatcher):
    tree = _tree(
        {
            "empty_msg": {"id": "empty_msg", "type": "text", "viewModes": ["emptyCart"]},
            "always": {"id": "always", "type": "text", "viewModes": ["default"], "position": {"col": 2, "row": 0}},
        }
    )
    page = dispatcher.render(tree, CONTEXT, viewport="desktop")
    assert page.data["view_mode"] == "default"
    assert page.find("empty_msg") is None
    assert page.find("always") is not None
    assert page.find("first") is not None


def test_view_mode_read_from_context(dispatcher):
    tree = _tree({"empty_msg": {"id": "empty_msg", "type": "text", "viewModes": ["emptyCart"]}})
    page = dispatcher.render(tree, {**CONTEXT, "view_mode": "emptyCart"}, viewport="desktop")
    assert page.find("empty_msg") is not None
    explicit = dispatcher.render(tree, {**CONTEXT, "view_mode": "emptyCart"}, viewport="desktop", view_mode="withProducts")
    assert explicit.find("empty_msg") is None


def _rendered_ids(node):
    return {child.slot_id for child in node.walk() if child.slot_id}


@pytest.mark.parametrize(
    "context,present,absent",
    [
        ({}, "empty_cart_title", "cart_items"),
        ({"cart": {"items": []}}, "empty_cart_title", "cart_items"),
        ({"cart": {"items": [{"name": "Hat"}]}}, "cart_items", "empty_cart_title"),
    ],
)
def test_default_cart_shows_one_state_without_view_mode(context, present, absent):
    dispatcher = RenderDispatcher(build_default_registry())
    tree = load_slot_tree(get_default_configuration("cart")["slots"], page_type="cart")
    ids = _rendered_ids(dispatcher.render(tree, context, mode="storefront", viewport="desktop"))
    assert present in ids
    assert absent not in ids
    assert "header_title" in ids


def test_non_mapping_context_flags_do_not_abort_render(dispatcher):
    extra = {"promo": {"id": "promo", "type": "text", "content": "promo", "metadata": {"featureFlag": "show_promo"}}}
    page = dispatcher.render(_tree(extra, flags={"show_promo": True}), {**CONTEXT, "feature_flags": ["a"]}, viewport="desktop")
    assert page.find("promo") is not None
    assert page.find("first").content == "Hat"


def test_feature_flag_gate_reads_tree_flags(dispatcher):
    extra = {"promo": {"id": "promo", "type": "text", "content": "promo", "metadata": {"featureFlag": "show_promo"}}}
    off = dispatcher.render(_tree(extra, flags={"show_promo": False}), CONTEXT, viewport="desktop")
    on = dispatcher.render(_tree(extra, flags={"show_promo": True}), CONTEXT, viewport="desktop")
    assert off.find("promo") is None
    assert on.find("promo") is not None


def test_feature_flags_exposed_to_templates_without_mutating_context(dispatcher):
    extra = {"flag_text": {"id": "flag_text", "type": "text", "content": "{{#if feature_flags.beta}}beta{{/if}}"}}
    context = dict(CONTEXT)
    page = dispatcher.render(_tree(extra, flags={"beta": True}), context, viewport="desktop")
    assert page.find("flag_text").content == "beta"
    assert "feature_flags" not in context


def test_unknown_component_becomes_placeholder(dispatcher, caplog):
    extra = {"widget": {"id": "widget", "type": "component", "metadata": {"component": "NoSuchWidget"}}}
    with caplog.at_level(logging.WARNING):
        page = dispatcher.render(_tree(extra), CONTEXT, viewport="desktop")
    node = page.find("widget")
    assert node.placeholder is True
    assert node.component == "NoSuchWidget"
    assert "NoSuchWidget" in node.content
    assert page.find("first").content == "Hat"
    assert "UnknownComponent" in caplog.text


def test_failing_component_is_contained():
    def explode(slot, context, mode):
        raise RuntimeError("boom")

    dispatcher = RenderDispatcher(ComponentRegistry({"Exploding": explode}))
    extra = {"bad": {"id": "bad", "type": "component", "component": "Exploding"}}
    page = dispatcher.render(_tree(extra), CONTEXT, viewport="desktop")
    assert page.find("bad").placeholder is True
    assert page.find("bad").data["reason"] == "render_failed"
    assert page.find("cta") is not None


def test_component_receives_mode():
    seen = []

    def renderer(slot, context, mode):
        seen.append(mode)
        return RenderNode(type="component", content=f"{mode}:{context['product']['name']}")

    dispatcher = RenderDispatcher(ComponentRegistry({"Echo": renderer}))
    extra = {"echo": {"id": "echo", "type": "component", "metadata": {"component": "Echo"}}}
    page = dispatcher.render(_tree(extra), CONTEXT, mode="editor", viewport="desktop")
    assert page.find("echo").content == "editor:Hat"
    assert page.find("echo").component == "Echo"
    assert seen == ["editor"]


def test_builtin_components_use_demo_data_in_editor_only():
    dispatcher = RenderDispatcher(build_default_registry())
    extra = {"items": {"id": "items", "type": "component", "metadata": {"component": "CartItems"}}}
    editor = dispatcher.render(_tree(extra), CONTEXT, mode="editor", viewport="desktop")
    assert "Cart Item 1" in editor.find("items").content
    assert editor.find("items").data["demo"] is True

    storefront = dispatcher.render(_tree(extra), CONTEXT, mode="storefront", viewport="desktop")
    assert storefront.find("items").content == ""
    assert storefront.find("items").data["demo"] is False


def test_builtin_component_uses_live_data():
    dispatcher = RenderDispatcher(build_default_registry())
    extra = {"gallery": {"id": "gallery", "type": "component", "component": "ProductGallery"}}
    context = {"product": {"name": "Hat", "images": [{"url": "a.png", "alt": "front"}]}}
    page = dispatcher.render(_tree(extra), context, mode="storefront", viewport="desktop")
    assert 'src="a.png"' in page.find("gallery").content


def test_image_slot_emits_src(dispatcher):
    extra = {"pic": {"id": "pic", "type": "image", "content": "{{product.image}}", "metadata": {"alt": "{{product.name}}"}}}
    page = dispatcher.render(_tree(extra), {"product": {"image": "p.png", "name": "Hat"}}, viewport="desktop")
    pic = page.find("pic")
    assert pic.tag == "img"
    assert pic.attributes == {"src": "p.png", "alt": "Hat"}


def test_disabled_slot_not_rendered(dispatcher):
    extra = {"off": {"id": "off", "type": "text", "enabled": False}}
    assert dispatcher.render(_tree(extra), CONTEXT, viewport="desktop").find("off") is None


def test_render_is_repeatable(dispatcher):
    tree = _tree()
    first = dispatcher.render(tree, CONTEXT, mode="editor", viewport="tablet")
    second = dispatcher.render(tree, CONTEXT, mode="editor", viewport="tablet")
    assert first.model_dump() == second.model_dump()
