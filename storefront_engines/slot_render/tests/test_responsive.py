import pytest

from storefront_engines.slot_config.models import Slot
from storefront_engines.slot_render.responsive import ResponsiveResolver, resolve_col_span

editor = ResponsiveResolver("editor")
storefront = ResponsiveResolver("storefront")


@pytest.mark.parametrize(
    "viewport,expected",
    [
        ("tablet", "hidden block"),
        ("mobile", "hidden block"),
        ("desktop", "lg:hidden md:block"),
    ],
)
def test_editor_transform_examples(viewport, expected):
    assert editor.transform_classes("lg:hidden md:block", viewport) == expected


def test_tablet_drops_wide_prefixes_mobile_keeps_everything():
    classes = "p-2  sm:p-4 xl:p-8 2xl:p-10"
    assert editor.transform_classes(classes, "tablet") == "p-2 p-4"
    assert editor.transform_classes(classes, "mobile") == "p-2 p-4 p-8 p-10"
    assert editor.transform_classes(classes, "desktop") == "p-2 sm:p-4 xl:p-8 2xl:p-10"


def test_storefront_is_pass_through():
    assert storefront.transform_classes("lg:hidden  md:block", "mobile") == "lg:hidden  md:block"
    assert storefront.is_visible(Slot(id="s", className="hidden"), "mobile") is True


def test_editor_visibility_follows_cascade():
    slot = Slot(id="s", className="hidden xl:block")
    assert editor.is_visible(slot, "tablet") is False
    assert editor.is_visible(slot, "desktop") is True
    assert editor.is_visible(slot, "mobile") is True

    wide_hidden = Slot(id="d", className="block lg:hidden")
    assert editor.is_visible(wide_hidden, "tablet") is False
    assert editor.is_visible(wide_hidden, "desktop") is False

    tablet_up = Slot(id="t", className="hidden md:block xl:hidden")
    assert editor.is_visible(tablet_up, "tablet") is True
    assert editor.is_visible(tablet_up, "desktop") is False


@pytest.mark.parametrize("viewport", ["mobile", "tablet"])
@pytest.mark.parametrize(
    "class_name",
    ["hidden lg:block", "block lg:hidden", "hidden sm:block", "block xl:hidden", "md:hidden", "flex 2xl:hidden"],
)
def test_visibility_agrees_with_rewritten_classes(viewport, class_name):
    rewritten = editor.transform_classes(class_name, viewport)
    survivors = [token for token in rewritten.split() if token in ("hidden", "block", "flex")]
    expected = not survivors or survivors[-1] != "hidden"
    assert editor.is_visible(Slot(id="s", className=class_name), viewport) is expected


def test_tablet_applies_lg_for_both_rewrite_and_visibility():
    slot = Slot(id="s", className="hidden lg:block")
    assert editor.transform_classes(slot.class_name, "tablet") == "hidden block"
    assert editor.is_visible(slot, "tablet") is True


def test_visibility_uses_processed_class_when_given():
    slot = Slot(id="s", className="{{#if settings.hide}}hidden{{/if}} block")
    assert editor.is_visible(slot, "desktop", "hidden") is False
    assert editor.is_visible(slot, "desktop", " block") is True


def test_unknown_viewport_treated_as_desktop():
    assert editor.transform_classes("md:flex", "watch") == "md:flex"


@pytest.mark.parametrize(
    "col_span,view_mode,expected",
    [
        (None, None, ""),
        (6, None, "col-span-6"),
        ("4", None, "col-span-4"),
        ("col-span-12 lg:col-span-9", None, "col-span-12 lg:col-span-9"),
        ({"emptyCart": 12, "withProducts": 8}, "withProducts", "col-span-8"),
        ({"default": 6, "emptyCart": 12}, "other", "col-span-6"),
        ({"emptyCart": 12}, "withProducts", "col-span-12"),
    ],
)
def test_resolve_col_span(col_span, view_mode, expected):
    assert resolve_col_span(col_span, view_mode) == expected
