import logging

import pytest

from shiprocket_fulfillment.amounts import (
    THREE_DECIMAL_CURRENCIES,
    ZERO_DECIMAL_CURRENCIES,
    currency_divisor,
    line_item_total,
    normalize_amount,
    sum_line_item_totals,
)
from shiprocket_fulfillment.models import LineItem


def test_normalize_amount_uses_currency_minor_units():
    assert normalize_amount(None, "USD") == 0
    assert normalize_amount(1000, "JPY") == 1000
    assert normalize_amount(1000, "USD") == 10.0
    assert normalize_amount(1000, "KWD") == 1.0


def test_currency_code_is_case_insensitive():
    assert normalize_amount(1000, "jpy") == 1000
    assert normalize_amount(1000, "kwd") == 1.0


@pytest.mark.parametrize("currency", ["USD", "INR", "EUR", "XYZ", "", None])
def test_other_currencies_divide_by_hundred(currency, caplog):
    caplog.set_level(logging.DEBUG, logger="shiprocket_fulfillment.amounts")

    assert currency_divisor(currency) == 100
    assert normalize_amount(12345, currency) == pytest.approx(123.45)

    missing_currency_logged = any(
        "No currency code supplied" in record.getMessage() for record in caplog.records
    )
    assert missing_currency_logged is (not currency)


def test_currency_sets_do_not_overlap():
    assert not ZERO_DECIMAL_CURRENCIES & THREE_DECIMAL_CURRENCIES
    for code in ZERO_DECIMAL_CURRENCIES:
        assert currency_divisor(code) == 1
    for code in THREE_DECIMAL_CURRENCIES:
        assert currency_divisor(code) == 1000


def test_normalize_amount_is_deterministic():
    first = normalize_amount(4599, "INR")
    second = normalize_amount(4599, "INR")
    assert first == second == pytest.approx(45.99)


def test_line_item_total_prefers_original_total():
    item = LineItem(original_total=500, subtotal=400, total=450, unit_price=100, quantity=2)
    assert line_item_total(item) == 500


def test_line_item_total_falls_back_in_order():
    assert line_item_total(LineItem(subtotal=400, total=450, unit_price=100, quantity=2)) == 400
    assert line_item_total(LineItem(total=450, unit_price=100, quantity=2)) == 450
    assert line_item_total(LineItem(unit_price=100, quantity=2)) == 200
    assert line_item_total(LineItem(quantity=2)) == 0
    assert line_item_total(None) == 0


def test_line_item_total_keeps_zero_original_total():
    assert line_item_total(LineItem(original_total=0, unit_price=100, quantity=2)) == 0


def test_sum_line_item_totals():
    items = [LineItem(original_total=500), LineItem(unit_price=200, quantity=3)]
    assert sum_line_item_totals(items) == 1100
    assert sum_line_item_totals([]) == 0
    assert sum_line_item_totals(None) == 0
