from fastapi.testclient import TestClient

from storefront_engines.server import create_app
from storefront_engines.slot_config.repository import InMemorySlotConfigurationRepository
from storefront_engines.slot_config.service import SlotConfigurationService, set_slot_configuration_service

HEADERS = {"X-Store-Id": "store_routes", "X-Env": "dev"}


def _setup():
    set_slot_configuration_service(SlotConfigurationService(repo=InMemorySlotConfigurationRepository()))
    return TestClient(create_app())


def _layout():
    return {
        "root": {"id": "root", "type": "grid", "className": "gap-4"},
        "title": {"id": "title", "type": "text", "content": "{{product.name}}", "parentId": "root"},
    }


def test_draft_publish_roundtrip():
    client = _setup()
    resp_draft = client.get("/slot-configurations/product/draft", headers=HEADERS)
    assert resp_draft.status_code == 200
    assert resp_draft.json()["status"] == "draft"

    resp_save = client.put("/slot-configurations/product/draft", json={"slots": _layout()}, headers=HEADERS)
    assert resp_save.status_code == 200
    assert resp_save.json()["slots"]["root"]["className"] == "gap-4"

    resp_publish = client.post("/slot-configurations/product/publish", headers=HEADERS)
    assert resp_publish.status_code == 200
    assert resp_publish.json()["version"] == 1

    resp_published = client.get("/slot-configurations/product/published", headers=HEADERS)
    assert resp_published.status_code == 200
    assert set(resp_published.json()["slots"]) == {"root", "title"}

    resp_versions = client.get("/slot-configurations/product/versions", headers=HEADERS)
    assert [v["version"] for v in resp_versions.json()["versions"]] == [1]


def test_invalid_tree_returns_envelope():
    client = _setup()
    layout = _layout()
    layout["title"]["parentId"] = "nowhere"
    resp = client.put("/slot-configurations/product/draft", json={"slots": layout}, headers=HEADERS)
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["code"] == "slot_config.invalid_tree"
    assert body["error"]["details"]["error"] == "OrphanSlotError"


def test_missing_store_header_is_rejected():
    client = _setup()
    resp = client.get("/slot-configurations/product/draft")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "http.exception"


def test_published_not_found_envelope():
    client = _setup()
    resp = client.get("/slot-configurations/cart/published", headers=HEADERS)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "slot_configuration.not_found"


def test_page_types_and_health():
    client = _setup()
    assert client.get("/slot-configurations/page-types").json() == {"page_types": ["cart", "product"]}
    assert client.get("/health").json()["status"] == "ok"
