import json

import pytest

from wingshop.repositories.storage_repo import MemoryStorage, SqlStorage
from wingshop.schemas.cart_schema import CartLine
from wingshop.services.cart_service import CART_STORAGE_KEY, CartStore


def _line(product_id="prod_hot", price_id="price_hot_single", price=899, qty=1, currency="usd"):
    return CartLine(productId=product_id, priceId=price_id, name="Hot Sauce", price=price, qty=qty, currency=currency)


def test_add_merges_same_variant_and_persists():
    storage = MemoryStorage()
    cart = CartStore(storage)
    cart.add(_line(), 2)
    cart.add(_line(), 3)
    assert len(cart.items) == 1
    assert cart.count == 5
    saved = json.loads(storage.get_item(CART_STORAGE_KEY))
    assert saved[0]["productId"] == "prod_hot"
    assert saved[0]["qty"] == 5


def test_variants_are_separate_lines():
    cart = CartStore(MemoryStorage())
    cart.add(_line(price_id="price_hot_single"))
    cart.add(_line(price_id="price_hot_gallon", price=5999))
    assert len(cart.items) == 2
    assert cart.subtotal == 899 + 5999


def test_quantity_is_capped():
    cart = CartStore(MemoryStorage(), max_qty=99)
    cart.add(_line(), 98)
    cart.add(_line(), 5)
    assert cart.items[0].qty == 99
    cart.set_qty("prod_hot", 500)
    assert cart.items[0].qty == 99


def test_add_rejects_non_positive_qty():
    cart = CartStore(MemoryStorage())
    with pytest.raises(ValueError):
        cart.add(_line(), 0)


def test_remove_without_price_id_drops_all_variants():
    cart = CartStore(MemoryStorage())
    cart.add(_line(price_id="price_hot_single"))
    cart.add(_line(price_id="price_hot_gallon"))
    cart.add(_line(product_id="prod_mild", price_id=None))
    cart.remove("prod_hot")
    assert [it.product_id for it in cart.items] == ["prod_mild"]


def test_remove_with_none_price_id_targets_that_variant():
    cart = CartStore(MemoryStorage())
    cart.add(_line(price_id=None))
    cart.add(_line(price_id="price_hot_gallon"))
    cart.remove("prod_hot", None)
    assert [it.price_id for it in cart.items] == ["price_hot_gallon"]


def test_set_qty_zero_removes():
    cart = CartStore(MemoryStorage())
    cart.add(_line(), 3)
    cart.set_qty("prod_hot", 0, "price_hot_single")
    assert cart.items == []
    assert cart.count == 0


def test_subtotal_skips_unpriced_lines_and_currency_from_first_line():
    cart = CartStore(MemoryStorage())
    assert cart.currency is None
    cart.add(_line(price=None, currency="usd"), 2)
    cart.add(_line(product_id="prod_mild", price=799, currency="eur"), 1)
    assert cart.subtotal == 799
    assert cart.currency == "usd"


def test_items_are_copies():
    cart = CartStore(MemoryStorage())
    cart.add(_line(), 1)
    items = cart.items
    items[0].qty = 50
    assert cart.count == 1


@pytest.mark.parametrize("raw", ["not json", json.dumps({"a": 1}), json.dumps([{"qty": 2}])])
def test_unreadable_storage_hydrates_empty(raw):
    cart = CartStore(MemoryStorage({CART_STORAGE_KEY: raw}))
    assert cart.items == []


def test_hydrates_existing_cart():
    stored = json.dumps([{"productId": "prod_hot", "priceId": None, "name": "Hot", "price": 899, "qty": 2}])
    cart = CartStore(MemoryStorage({CART_STORAGE_KEY: stored}))
    assert cart.count == 2
    assert cart.items[0].price_id is None


def test_clear_persists_empty_list():
    storage = MemoryStorage()
    cart = CartStore(storage)
    cart.add(_line())
    cart.clear()
    assert json.loads(storage.get_item(CART_STORAGE_KEY)) == []


def test_sql_storage_is_namespaced(db):
    local = SqlStorage(db, "client-a", "local")
    other = SqlStorage(db, "client-b", "local")
    CartStore(local).add(_line(), 2)
    assert CartStore(SqlStorage(db, "client-a", "local")).count == 2
    assert CartStore(other).count == 0
    assert local.keys() == [CART_STORAGE_KEY]
    local.remove_item(CART_STORAGE_KEY)
    assert local.get_item(CART_STORAGE_KEY) is None


# routes

ITEM = {"productId": "prod_hot", "priceId": "price_hot_single", "name": "Hot Sauce", "price": 899, "currency": "usd"}


def test_add_item_to_cart(client):
    res = client.post("/api/cart/items", json={"item": ITEM, "qty": 2})
    assert res.status_code == 200
    body = res.json()
    assert body["count"] == 2
    assert body["subtotal"] == 1798
    assert res.cookies["cart_uuid"] == body["cart_uuid"]


def test_get_cart(client):
    res = client.get("/api/cart")
    assert res.status_code == 200
    body = res.json()
    assert body["items"] == []
    assert body["currency"] is None


def test_cart_updates_across_requests(client):
    client.post("/api/cart/items", json={"item": ITEM, "qty": 1})
    client.post("/api/cart/items", json={"item": {**ITEM, "priceId": "price_hot_gallon", "price": 5999}})

    res = client.patch("/api/cart/items", json={"productId": "prod_hot", "priceId": "price_hot_single", "qty": 4})
    assert res.json()["count"] == 5

    res = client.request("DELETE", "/api/cart/items", json={"productId": "prod_hot", "priceId": "price_hot_gallon"})
    body = res.json()
    assert [it["priceId"] for it in body["items"]] == ["price_hot_single"]

    res = client.delete("/api/cart")
    assert res.json()["count"] == 0


def test_add_item_rejects_zero_qty(client):
    res = client.post("/api/cart/items", json={"item": ITEM, "qty": 0})
    assert res.status_code == 422


def test_persist_and_reload_round_trip():
    storage = MemoryStorage()
    cart = CartStore(storage)
    cart.add(_line(product_id="b", price_id=None, price=500), 2)
    cart.add(_line(product_id="a", price_id="p1"), 1)
    reloaded = CartStore(storage)
    assert reloaded.items == cart.items
