import pytest

from wingshop.schemas.address_schema import Address
from wingshop.services.order_math import (
    TaxPolicy,
    breakdown,
    estimate_tax,
    format_money,
    round_half_up,
    sanitize,
    sanitize_line,
    sanitize_units,
    shipping_for,
    subtotal_from,
    to_minor_units,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (12.99, 1299),
        (5, 500),
        (99, 9900),
        (1299, 1299),
        ("8.5", 850),
        (0.125, 13),
        ("abc", 0),
        (-3, 0),
        (None, 0),
    ],
)
def test_to_minor_units_heuristic(raw, expected):
    assert to_minor_units(raw) == expected


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_sanitize_line_maps_aliases():
    line = sanitize_line({"id": "p1", "title": "Hot", "quantity": "3", "unit_amount": 1500})
    assert line.product_id == "p1"
    assert line.name == "Hot"
    assert line.qty == 3
    assert line.price == 1500
    assert line.price_id is None


def test_sanitize_line_clamps_quantity():
    assert sanitize_line({"productId": "p", "qty": 0}).qty == 1
    assert sanitize_line({"productId": "p", "qty": "junk"}).qty == 1


def test_sanitize_drops_lines_without_id():
    lines = sanitize([{"productId": "a", "price": 1000}, {"name": "no id"}, "garbage"])
    assert [l.product_id for l in lines] == ["a"]


def test_subtotal_and_flat_shipping():
    lines = sanitize([{"productId": "a", "price": 899, "qty": 2}, {"productId": "b", "qty": 1}])
    assert subtotal_from(lines) == 1798
    assert shipping_for(0) == 0
    assert shipping_for(7499) == 599
    assert shipping_for(7500) == 0


def test_estimate_tax_rate_and_shipping():
    assert estimate_tax(1000, policy=TaxPolicy(rate=0.0)) == 0
    assert estimate_tax(1000, policy=TaxPolicy(rate=0.08)) == 80
    assert estimate_tax(1000, 500, policy=TaxPolicy(rate=0.08)) == 80
    assert estimate_tax(1000, 500, policy=TaxPolicy(rate=0.08, include_shipping=True)) == 120
    # half-up on the exact half cent
    assert estimate_tax(1010, policy=TaxPolicy(rate=0.05)) == 51


def test_estimate_tax_origin_state_gate():
    policy = TaxPolicy(rate=0.08, origin_state="NY")
    assert estimate_tax(1000, to_address=Address(state="ny", postal_code="14411"), policy=policy) == 80
    assert estimate_tax(1000, to_address=Address(state="PA", postal_code="15001"), policy=policy) == 0
    assert estimate_tax(1000, policy=policy) == 0


def test_breakdown_scenario():
    lines = sanitize(
        [
            {"productId": "prod_hot", "priceId": "price_hot_single", "price": 8.99, "qty": 2},
            {"productId": "prod_hot", "priceId": "price_hot_gallon", "price": 5999, "qty": 1},
        ]
    )
    totals = breakdown(lines, policy=TaxPolicy(rate=0.07))
    assert totals.subtotal == 7797
    assert totals.shipping == 0
    assert totals.tax == 546
    assert totals.total == 8343


def test_breakdown_components_are_non_negative_and_sum():
    lines = sanitize([{"productId": "a", "price": 10.0, "qty": 1}])
    totals = breakdown(lines, policy=TaxPolicy(rate=0.0))
    assert (totals.subtotal, totals.shipping, totals.tax) == (1000, 599, 0)
    assert totals.total == totals.subtotal + totals.shipping + totals.tax


def test_format_money():
    assert format_money(1299) == "$12.99"
    assert format_money(123456, "usd") == "$1,234.56"
    assert format_money(500, "eur") == "5.00 EUR"


def test_subtotal_is_order_independent():
    lines = sanitize([{"productId": "a", "price": 1000, "qty": 3}, {"productId": "b", "price": 250, "qty": 1}])
    assert subtotal_from(lines) == 3250
    assert subtotal_from(list(reversed(lines))) == 3250


def test_flat_rate_breakdown_scenario():
    totals = breakdown(sanitize([{"id": "A", "price": 1000, "qty": 2}]), policy=TaxPolicy(rate=0.0))
    assert totals.model_dump() == {"subtotal": 2000, "shipping": 599, "tax": 0, "total": 2599}
    assert shipping_for(5000) == 599


def test_zero_rate_means_zero_tax_everywhere():
    policy = TaxPolicy(rate=0.0, include_shipping=True, origin_state="NY")
    assert estimate_tax(99999, 5000, Address(state="NY", postal_code="14411"), policy) == 0


def test_sanitize_units_keeps_lines_without_id():
    units = sanitize_units([{"name": "Hot Sauce Gallon", "quantity": 4}, {"title": "Mild", "qty": "2"}, "garbage"])
    assert [(u.name, u.qty) for u in units] == [("Hot Sauce Gallon", 4), ("Mild", 2)]


def test_sanitize_line_defaults_and_price_id():
    line = sanitize_line({"id": "p", "priceId": "", "price": 5})
    assert line.qty == 1
    assert line.price_id is None
    assert line.price == 500


def test_breakdown_ignores_origin_state():
    lines = sanitize([{"productId": "a", "price": 1000, "qty": 1}])
    totals = breakdown(lines, shipping_cents=500, policy=TaxPolicy(rate=0.08, include_shipping=True, origin_state="NY"))
    assert totals.tax == 120
    assert totals.total == 1000 + 500 + 120
