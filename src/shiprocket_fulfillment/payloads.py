"""Request bodies for Shiprocket order and shipment creation."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from .amounts import line_item_total, normalize_amount, sum_line_item_totals
from .client import ShiprocketClient
from .models import Address, LineItem, Order, PickupLocation, coerce_number
from .shipment import ShipmentSpec

LOGGER = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

CountryNameResolver = Callable[[Optional[str]], str]


class LineItemTotalsProvider(Protocol):
    """Host service computing tax-inclusive totals for a line item.

    Returned mappings carry ``original_total`` (minor units) and ``tax_lines``
    (a list of mappings with a ``rate``).
    """

    def get_line_item_totals(self, item: LineItem, order: Order) -> Mapping[str, Any]:
        ...


def build_forward_order(
    order: Order,
    items: Sequence[LineItem],
    pickup_location: PickupLocation,
    *,
    channel_id: Any,
    shipment: ShipmentSpec,
    country_name: CountryNameResolver,
    totals_provider: Optional[LineItemTotalsProvider] = None,
    cod: bool = False,
    gstin: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the body for ``orders/create`` and ``orders/create/adhoc``."""

    billing = order.billing_address or Address()
    shipping = order.shipping_address or Address()
    currency = order.currency_code

    payload: Dict[str, Any] = {
        "order_id": order.reference,
        "order_date": date.today().isoformat(),
        "pickup_location": pickup_location.pickup_location,
        "channel_id": _maybe_int(channel_id),
        "billing_customer_name": billing.first_name,
        "billing_last_name": billing.last_name,
        "billing_address": billing.address_1,
        "billing_address_2": billing.address_2,
        "billing_city": billing.city,
        "billing_state": billing.province,
        "billing_country": country_name(billing.country_code),
        "billing_pincode": _maybe_int(billing.postal_code),
        "billing_email": order.email,
        "billing_phone": _maybe_int(billing.phone),
        "shipping_is_billing": False,
        "shipping_customer_name": shipping.first_name,
        "shipping_last_name": shipping.last_name,
        "shipping_address": shipping.address_1,
        "shipping_address_2": shipping.address_2,
        "shipping_city": shipping.city,
        "shipping_state": shipping.province,
        "shipping_country": country_name(shipping.country_code),
        "shipping_pincode": _maybe_int(shipping.postal_code),
        "shipping_email": order.email,
        "shipping_phone": _maybe_int(shipping.phone),
        "order_items": [build_order_item(item, order, totals_provider) for item in items],
        "payment_method": "COD" if cod else "Prepaid",
        "shipping_charges": normalize_amount(order.shipping_price, currency),
        "total_discount": normalize_amount(order.discount_total, currency),
        "sub_total": normalize_amount(sum_line_item_totals(order.items), currency),
    }
    payload.update(_dimension_fields(shipment))

    if gstin:
        payload["customer_gstin"] = gstin

    return payload


def build_forward_shipment(
    order: Order,
    items: Sequence[LineItem],
    pickup_location: PickupLocation,
    *,
    courier_id: Any,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Build the body for the ``shipments/create/forward-shipment`` wrapper."""

    payload = build_forward_order(order, items, pickup_location, **kwargs)
    payload["courier_id"] = _maybe_int(courier_id) or courier_id
    return payload


def build_return_order(
    order: Order,
    items: Sequence[LineItem],
    pickup_location: PickupLocation,
    *,
    channel_id: Any,
    shipment: ShipmentSpec,
    country_name: CountryNameResolver,
    totals_provider: Optional[LineItemTotalsProvider] = None,
) -> Dict[str, Any]:
    """Build the body for ``orders/create/return``.

    The customer's shipping address is where the courier picks the parcel up;
    the account's pickup location (warehouse) receives it.
    """

    customer = order.shipping_address or Address()
    currency = order.currency_code

    payload: Dict[str, Any] = {
        "order_id": f"{order.reference}-R",
        "order_date": date.today().isoformat(),
        "channel_id": _maybe_int(channel_id),
        "pickup_customer_name": customer.first_name,
        "pickup_last_name": customer.last_name,
        "pickup_address": customer.address_1,
        "pickup_address_2": customer.address_2,
        "pickup_city": customer.city,
        "pickup_state": customer.province,
        "pickup_country": country_name(customer.country_code),
        "pickup_pincode": _maybe_int(customer.postal_code),
        "pickup_email": order.email,
        "pickup_phone": _maybe_int(customer.phone),
        "shipping_customer_name": pickup_location.name or pickup_location.pickup_location,
        "shipping_address": pickup_location.address,
        "shipping_address_2": pickup_location.address_2,
        "shipping_city": pickup_location.city,
        "shipping_state": pickup_location.state,
        "shipping_country": pickup_location.country,
        "shipping_pincode": _maybe_int(pickup_location.pin_code),
        "shipping_email": pickup_location.email,
        "shipping_phone": _maybe_int(pickup_location.phone),
        "order_items": [build_order_item(item, order, totals_provider) for item in items],
        "payment_method": "Prepaid",
        "total_discount": normalize_amount(order.discount_total, currency),
        "sub_total": normalize_amount(sum_line_item_totals(items), currency),
    }
    payload.update(_dimension_fields(shipment))
    return payload


def build_return_shipment(
    order: Order,
    items: Sequence[LineItem],
    pickup_location: PickupLocation,
    *,
    courier_id: Any,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Build the body for the ``shipments/create/return-shipment`` wrapper."""

    payload = build_return_order(order, items, pickup_location, **kwargs)
    payload["courier_id"] = _maybe_int(courier_id) or courier_id
    return payload


def build_order_item(
    item: LineItem,
    order: Order,
    totals_provider: Optional[LineItemTotalsProvider] = None,
) -> Dict[str, Any]:
    """Map a host line item onto a Shiprocket ``order_items`` entry."""

    if totals_provider is not None:
        totals = totals_provider.get_line_item_totals(item, order)
    else:
        totals = {"original_total": line_item_total(item), "tax_lines": item.tax_lines}

    original_total = totals.get("original_total")
    if original_total is None:
        original_total = line_item_total(item)

    order_item: Dict[str, Any] = {
        "name": item.title,
        "sku": item.sku,
        "units": item.quantity,
        "selling_price": normalize_amount(original_total, order.currency_code),
        "tax": _sum_tax_rates(totals.get("tax_lines") or []),
    }

    hsn = _maybe_int(item.hs_code)
    if hsn is not None:
        order_item["hsn"] = hsn

    return order_item


def submit_forward_order(
    client: ShiprocketClient, payload: Mapping[str, Any], inventory_sync: bool
) -> Dict[str, Any]:
    """Create the order on the channel (inventory synced) or as an adhoc order."""

    if inventory_sync:
        response = client.create_channel_order(payload)
    else:
        response = client.create_custom_order(payload)
    LOGGER.info("Shiprocket: newOrder response %s", response)
    return response


def _dimension_fields(shipment: ShipmentSpec) -> Dict[str, float]:
    return {
        "length": shipment.length_cm,
        "breadth": shipment.width_cm,
        "height": shipment.height_cm,
        "weight": shipment.weight_kg,
    }


def _sum_tax_rates(tax_lines: List[Mapping[str, Any]]) -> float:
    total = 0
    for line in tax_lines:
        rate = coerce_number(line.get("rate")) if isinstance(line, Mapping) else None
        if rate:
            total += rate
    return total


def _maybe_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    # leading digits only, so "8471.30" and "560001-A" keep their integer prefix
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


__all__ = [
    "LineItemTotalsProvider",
    "build_forward_order",
    "build_forward_shipment",
    "build_order_item",
    "build_return_order",
    "build_return_shipment",
    "submit_forward_order",
]
