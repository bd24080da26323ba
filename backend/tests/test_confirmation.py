import asyncio

from wingshop.repositories.storage_repo import MemoryStorage, SqlStorage
from wingshop.services.cart_service import CART_STORAGE_KEY
from wingshop.services.confirmation_service import (
    STATE_CONFIRMED,
    STATE_NOT_FOUND,
    STATE_PAYMENT_INCOMPLETE,
    ClearCartOnArrival,
    ConfirmationService,
    cart_cookie_names,
)
from wingshop.services.order_service import OrderService
from wingshop.services.payment_service import PaymentService

ITEMS = [{"productId": "prod_hot", "priceId": "price_hot_single", "name": "Hot Sauce", "price": 899, "qty": 2}]


def _paid_intent(gateway):
    pi = PaymentService(gateway).create_payment_intent(ITEMS, ship_cents=599)["payment_intent_id"]
    gateway.confirm_payment_intent(pi, "pm_card_visa", "http://localhost/return")
    return pi


def test_cart_cookie_names():
    assert cart_cookie_names(["cart_uuid", "session", "MiniCart", "last_pi"]) == ["cart_uuid", "MiniCart"]


def test_clear_cart_on_arrival_runs_once():
    local = MemoryStorage({CART_STORAGE_KEY: "[]", "theme": "dark"})
    session = MemoryStorage({"checkout_cart_draft": "{}"})
    purger = ClearCartOnArrival(lambda: [local, session])
    assert purger.run() is True
    assert purger.run() is False
    assert local.keys() == ["theme"]
    assert session.keys() == []
    assert purger.purges == 1


def test_clear_cart_retry_catches_late_writes():
    local = MemoryStorage()
    cleared = []
    purger = ClearCartOnArrival(lambda: [local], on_clear=lambda: cleared.append(True))
    purger.run()
    local.set_item(CART_STORAGE_KEY, "[]")
    asyncio.run(purger.retry())
    assert local.get_item(CART_STORAGE_KEY) is None
    assert purger.purges == 1 + len(ClearCartOnArrival.RETRY_DELAYS)
    assert len(cleared) == purger.purges


def test_view_states(gateway):
    svc = ConfirmationService(OrderService(gateway))
    assert svc.view(None) == {"state": STATE_NOT_FOUND, "back_to": "/checkout"}
    assert svc.view("pi_unknown")["state"] == STATE_NOT_FOUND

    incomplete = svc.view("pi_x", "failed")
    assert incomplete["state"] == STATE_PAYMENT_INCOMPLETE
    assert incomplete["back_to"] == "/checkout?retry=1"

    pi = _paid_intent(gateway)
    confirmed = svc.view(pi, "succeeded")
    assert confirmed["state"] == STATE_CONFIRMED
    assert confirmed["order"]["id"] == pi


def test_stripe_redirect_sets_cookies(client):
    res = client.get(
        "/checkout/confirmation/stripe-redirect",
        params={"payment_intent": "pi_123", "redirect_status": "succeeded"},
        follow_redirects=False,
    )
    assert res.status_code == 303
    assert res.headers["location"] == "/checkout/confirmation"
    cookies = [c.lower() for c in res.headers.get_list("set-cookie")]
    [pi_cookie] = [c for c in cookies if c.startswith("last_pi=")]
    [status_cookie] = [c for c in cookies if c.startswith("last_redirect_status=")]
    for c in (pi_cookie, status_cookie):
        assert "httponly" in c
        assert "secure" in c
        assert "samesite=lax" in c
        assert "max-age=1800" in c
    assert pi_cookie.startswith("last_pi=pi_123")


def test_stripe_redirect_without_params_sets_nothing(client):
    res = client.get("/checkout/confirmation/stripe-redirect", follow_redirects=False)
    assert res.status_code == 303
    assert res.headers.get_list("set-cookie") == []


def test_confirmation_not_found(client):
    res = client.get("/checkout/confirmation")
    assert res.status_code == 200
    assert res.json()["state"] == STATE_NOT_FOUND


def test_confirmation_incomplete_keeps_cart(client, db):
    client.post("/api/cart/items", json={"item": ITEMS[0], "qty": 1})
    client_id = client.cookies["cart_uuid"]
    res = client.get("/checkout/confirmation", params={"pi": "pi_1", "redirect_status": "requires_payment_method"})
    assert res.json()["state"] == STATE_PAYMENT_INCOMPLETE
    assert SqlStorage(db, client_id).get_item(CART_STORAGE_KEY) is not None


def test_confirmation_clears_cart(client, gateway, db):
    client.post("/api/cart/items", json={"item": ITEMS[0], "qty": 2})
    client_id = client.cookies["cart_uuid"]
    SqlStorage(db, client_id, "session").set_item("cart_draft", "{}")
    pi = _paid_intent(gateway)

    res = client.get("/checkout/confirmation", params={"pi": pi})
    assert res.status_code == 200
    body = res.json()
    assert body["state"] == STATE_CONFIRMED
    assert body["order"]["cart"][0]["name"] == "Hot Sauce (12oz)"

    assert SqlStorage(db, client_id, "local").keys() == []
    assert SqlStorage(db, client_id, "session").keys() == []
    expired = [c.lower() for c in res.headers.get_list("set-cookie")]
    assert any(c.startswith("cart_uuid=") and "max-age=0" in c for c in expired)


def test_confirmation_without_reference_does_not_purge(client, db):
    client.post("/api/cart/items", json={"item": ITEMS[0], "qty": 1})
    client_id = client.cookies["cart_uuid"]
    res = client.get("/checkout/confirmation")
    assert res.json()["state"] == STATE_NOT_FOUND
    assert SqlStorage(db, client_id).get_item(CART_STORAGE_KEY) is not None
    assert not any(c.lower().startswith("cart_uuid=") for c in res.headers.get_list("set-cookie"))
