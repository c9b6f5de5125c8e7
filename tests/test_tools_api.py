"""
HTTP surface: /health, /tools and the /call envelope.
"""

import asyncio

import pytest

from commerce_tools.core.chatwoot_client import get_labeler
from commerce_tools.main import app
from commerce_tools.routers import tools as tools_router


def call(client, name, **arguments):
    return client.post("/call", json={"name": name, "arguments": arguments})


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_tools_metadata(client):
    res = client.get("/tools")

    assert res.status_code == 200
    tools = {t["name"]: t for t in res.json()["tools"]}
    assert set(tools) == {"list_products", "get_product", "create_cart", "add_to_cart", "get_cart"}
    assert tools["add_to_cart"]["inputSchema"]["required"] == ["cart_id", "product_id", "qty"]


def test_unknown_path(client):
    res = client.get("/nope")
    assert res.status_code == 404
    assert res.json() == {"error": "NOT_FOUND"}


def test_wrong_method_on_known_path(client):
    res = client.get("/call")
    assert res.status_code == 404
    assert res.json() == {"error": "NOT_FOUND"}


def test_unknown_tool(client):
    res = call(client, "delete_everything")
    assert res.status_code == 400
    assert res.json() == {"error": "UNKNOWN_TOOL", "name": "delete_everything"}


def test_malformed_body_is_treated_as_empty_arguments(client):
    res = client.post("/call", content=b"{not json", headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json() == {"error": "UNKNOWN_TOOL", "name": None}


def test_deeply_nested_body_is_treated_as_empty_arguments(client):
    res = client.post("/call", content=b"[" * 100_000, headers={"content-type": "application/json"})
    assert res.status_code == 400
    assert res.json() == {"error": "UNKNOWN_TOOL", "name": None}


def test_non_object_arguments_fall_back_to_validation(client):
    res = client.post("/call", json={"name": "get_product", "arguments": "oops"})
    assert res.status_code == 404
    assert res.json() == {"error": "PRODUCT_NOT_FOUND"}


# ---- catalog ----


def test_list_products_hides_unavailable(client):
    res = call(client, "list_products")

    assert res.status_code == 200
    assert [p["id"] for p in res.json()["products"]] == [1, 2]


def test_list_products_search_is_case_insensitive(client):
    res = call(client, "list_products", query="ACCESS")
    assert [p["name"] for p in res.json()["products"]] == ["Cap"]


@pytest.mark.parametrize(
    "arguments, expected_ids",
    [
        ({"limit": 1}, [1]),
        ({"limit": 0}, [1]),
        ({"limit": 1, "offset": 1}, [2]),
        ({"offset": -5}, [1, 2]),
        ({"limit": "abc"}, [1, 2]),
    ],
)
def test_list_products_pagination(client, arguments, expected_ids):
    res = call(client, "list_products", **arguments)
    assert [p["id"] for p in res.json()["products"]] == expected_ids


def test_get_product_returns_unavailable_products(client):
    res = call(client, "get_product", product_id=3)

    assert res.status_code == 200
    product = res.json()["product"]
    assert product["name"] == "Hoodie"
    assert product["available"] is False
    assert product["price_200"] == 10.0


@pytest.mark.parametrize("product_id", [999, "abc", None])
def test_get_product_not_found(client, product_id):
    res = call(client, "get_product", product_id=product_id)
    assert res.status_code == 404
    assert res.json() == {"error": "PRODUCT_NOT_FOUND"}


# ---- carts ----


def test_create_cart_is_idempotent(client):
    first = call(client, "create_cart", conversation_id="conv-1").json()
    second = call(client, "create_cart", conversation_id="conv-1").json()

    assert first["cart_id"] == second["cart_id"]


def test_create_cart_requires_conversation(client):
    res = call(client, "create_cart")
    assert res.status_code == 400
    assert res.json() == {"error": "INVALID_ARGUMENT", "argument": "conversation_id"}


def test_add_to_cart_and_get_cart(client, labeler):
    cart_id = call(client, "create_cart", conversation_id="conv-1").json()["cart_id"]

    call(client, "add_to_cart", cart_id=cart_id, product_id=2, qty=1)
    res = call(client, "add_to_cart", cart_id=cart_id, product_id="1", qty=2, conversation_id="conv-1")

    assert res.status_code == 200
    assert res.json() == {
        "cart_id": cart_id,
        "items": [
            {"product_id": 1, "qty": 2, "unit_price": 5.0, "name": "Polo Shirt"},
            {"product_id": 2, "qty": 1, "unit_price": 3.0, "name": "Cap"},
        ],
        "total": 13.0,
    }
    assert labeler.calls == [
        ("conv-1", {"intent:purchase", f"cart:{cart_id}", "product:1"})
    ]
    assert call(client, "get_cart", cart_id=cart_id).json() == res.json()


def test_add_to_cart_insufficient_stock_reports_stock(client):
    assert call(client, "add_to_cart", cart_id="c1", product_id=1, qty=10).status_code == 200

    res = call(client, "add_to_cart", cart_id="c1", product_id=1, qty=1)

    assert res.status_code == 409
    assert res.json() == {"error": "INSUFFICIENT_STOCK", "stock": 10}


@pytest.mark.parametrize("qty", [0, -1, 1.5, "two", None])
def test_add_to_cart_invalid_qty(client, qty):
    res = call(client, "add_to_cart", cart_id="c1", product_id=1, qty=qty)

    assert res.status_code == 400
    assert res.json() == {"error": "INVALID_QTY"}
    assert call(client, "get_cart", cart_id="c1").json()["items"] == []


def test_add_to_cart_unavailable_product(client):
    res = call(client, "add_to_cart", cart_id="c1", product_id=3, qty=1)
    assert res.status_code == 404
    assert res.json() == {"error": "PRODUCT_NOT_FOUND"}


def test_add_to_cart_requires_cart_id(client):
    res = call(client, "add_to_cart", product_id=1, qty=1)
    assert res.status_code == 400
    assert res.json() == {"error": "INVALID_ARGUMENT", "argument": "cart_id"}


def test_get_unknown_cart_is_empty(client):
    res = call(client, "get_cart", cart_id="nonexistent-id")

    assert res.status_code == 200
    assert res.json() == {"cart_id": "nonexistent-id", "items": [], "total": 0}


def test_add_to_cart_succeeds_when_labeling_breaks(client):
    class BrokenLabeler:
        def tag_conversation(self, conversation_id, labels):
            raise ConnectionError("chatwoot down")

    app.dependency_overrides[get_labeler] = lambda: BrokenLabeler()

    res = call(client, "add_to_cart", cart_id="c1", product_id=2, qty=3, conversation_id="conv-1")

    assert res.status_code == 200
    assert res.json()["items"][0]["qty"] == 3


def test_internal_error_is_generic(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("connection to db-host-17 refused")

    monkeypatch.setattr(tools_router.product_service, "list_products", boom)

    res = call(client, "list_products")

    assert res.status_code == 500
    assert res.json() == {"error": "INTERNAL_ERROR", "message": "Internal server error"}


def test_internal_error_rolls_back_off_the_event_loop(client, session, monkeypatch):
    rollbacks = []

    def record_rollback():
        try:
            asyncio.get_running_loop()
            rollbacks.append("event loop")
        except RuntimeError:
            rollbacks.append("worker thread")

    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(tools_router.product_service, "list_products", boom)
    monkeypatch.setattr(session, "rollback", record_rollback)

    res = call(client, "list_products")

    assert res.status_code == 500
    assert rollbacks == ["worker thread"]


# ---- integers beyond database column range ----


def test_get_product_with_huge_id_is_not_found(client):
    res = call(client, "get_product", product_id=10**30)
    assert res.status_code == 404
    assert res.json() == {"error": "PRODUCT_NOT_FOUND"}


def test_add_to_cart_with_huge_product_id_is_not_found(client):
    res = call(client, "add_to_cart", cart_id="c1", product_id=str(10**30), qty=1)
    assert res.status_code == 404
    assert res.json() == {"error": "PRODUCT_NOT_FOUND"}


def test_list_products_with_huge_offset_is_empty(client):
    res = call(client, "list_products", offset=10**30)
    assert res.status_code == 200
    assert res.json() == {"products": []}


def test_add_to_cart_with_huge_qty_reports_stock(client):
    res = call(client, "add_to_cart", cart_id="c1", product_id=1, qty=10**30)

    assert res.status_code == 409
    assert res.json() == {"error": "INSUFFICIENT_STOCK", "stock": 10}
    assert call(client, "get_cart", cart_id="c1").json()["items"] == []
