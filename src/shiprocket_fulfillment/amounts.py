"""Conversion of minor-unit order amounts into the major-unit values Shiprocket expects."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

from .models import LineItem

LOGGER = logging.getLogger(__name__)

Number = Union[int, float]

ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF",
        "CLP",
        "DJF",
        "GNF",
        "JPY",
        "KMF",
        "KRW",
        "MGA",
        "PYG",
        "RWF",
        "UGX",
        "VND",
        "VUV",
        "XAF",
        "XOF",
        "XPF",
    }
)

THREE_DECIMAL_CURRENCIES = frozenset(
    {
        "BHD",
        "IQD",
        "JOD",
        "KWD",
        "LYD",
        "OMR",
        "TND",
    }
)

DEFAULT_DIVISOR = 100


def currency_divisor(currency_code: Optional[str]) -> int:
    """Return the minor-unit divisor for an ISO 4217 currency code."""

    if not currency_code:
        LOGGER.debug("No currency code supplied; assuming %d minor units", DEFAULT_DIVISOR)
        return DEFAULT_DIVISOR

    code = str(currency_code).upper()
    if code in ZERO_DECIMAL_CURRENCIES:
        return 1
    if code in THREE_DECIMAL_CURRENCIES:
        return 1000
    return DEFAULT_DIVISOR


def normalize_amount(amount: Optional[Number], currency_code: Optional[str]) -> float:
    """Convert a raw minor-unit amount into a major-unit value.

    Call this exactly once per raw amount; the result is not meant to be
    normalized again.
    """

    divisor = currency_divisor(currency_code)
    return float(amount or 0) / divisor


def line_item_total(item: Optional[LineItem]) -> float:
    """Pick the best available total for a line item, in minor units."""

    if item is None:
        return 0

    if item.original_total is not None:
        return item.original_total
    if item.subtotal is not None:
        return item.subtotal
    if item.total is not None:
        return item.total
    if item.unit_price is not None:
        return item.unit_price * (item.quantity or 0)
    return 0


def sum_line_item_totals(items: Optional[Iterable[LineItem]]) -> float:
    return sum((line_item_total(item) for item in items or ()), 0)


__all__ = [
    "THREE_DECIMAL_CURRENCIES",
    "ZERO_DECIMAL_CURRENCIES",
    "currency_divisor",
    "line_item_total",
    "normalize_amount",
    "sum_line_item_totals",
]
