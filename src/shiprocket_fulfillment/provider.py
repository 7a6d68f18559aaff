"""Shiprocket fulfillment provider exposed to the host order-management system."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pycountry

from .amounts import normalize_amount, sum_line_item_totals
from .client import ShiprocketClient, ShiprocketError
from .config import ProviderConfig
from .models import LineItem, Order, PickupLocation, coerce_number
from .payloads import (
    LineItemTotalsProvider,
    build_forward_order,
    build_forward_shipment,
    build_return_order,
    build_return_shipment,
    submit_forward_order,
)
from .shipment import ShipmentSpec, dimension_value, resolve_shipment

LOGGER = logging.getLogger(__name__)

TOKEN_TTL = timedelta(days=9)

# Shipment statuses up to 5 (and 11) are still before pickup.
LAST_CANCELLABLE_STATUS = 5
CANCELLABLE_STATUS_EXCEPTIONS = frozenset({11})

COURIER_ID_KEYS = ("id", "courier_id", "courier_company_id")


class ShiprocketFulfillmentProvider:
    """Fulfillment provider backed by Shiprocket.

    Methods accept the host framework's plain mappings and convert them into
    :mod:`shiprocket_fulfillment.models` records before building requests.
    """

    identifier = "shiprocket"

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[ShiprocketClient] = None,
        totals_provider: Optional[LineItemTotalsProvider] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._client = client or ShiprocketClient(
            config.base_url, config.token, timeout=config.timeout_seconds
        )
        self._totals_provider = totals_provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._token = config.token
        self._token_expires_at: Optional[datetime] = (
            self._clock() + TOKEN_TTL if config.token else None
        )

    @property
    def client(self) -> ShiprocketClient:
        return self._client

    # Token lifecycle

    def ensure_token(self) -> None:
        """Refresh the API token when it is missing or past its TTL."""
        if self._token and self._token_expires_at is None:
            return
        if self._token_expires_at and self._clock() < self._token_expires_at:
            return
        self._refresh_token()

    def _refresh_token(self) -> None:
        if not self._config.has_credentials:
            if not self._token:
                raise ShiprocketError(
                    "Shiprocket: Missing credentials. Provide email/password or a valid token."
                )
            LOGGER.warning("Shiprocket: Token TTL elapsed and no credentials to refresh it")
            return

        LOGGER.info("Refreshing Shiprocket API token")
        token = self._client.login(self._config.email, self._config.password)
        self._token = token
        self._client.set_token(token)
        self._token_expires_at = self._clock() + TOKEN_TTL

    # Options and validation

    def get_fulfillment_options(self) -> List[Dict[str, Any]]:
        self.ensure_token()
        return self._client.list_couriers("active")

    def validate_option(self, data: Mapping[str, Any]) -> bool:
        self.ensure_token()
        couriers = self._client.list_couriers("active")
        return any(courier.get("id") == data.get("id") for courier in couriers)

    def validate_fulfillment_data(
        self, option_data: Mapping[str, Any], data: Mapping[str, Any], context: Any = None
    ) -> Dict[str, Any]:
        return {**option_data, **data}

    def can_calculate(self, data: Any = None) -> bool:
        return self._config.pricing == "calculated"

    # Pricing

    def calculate_price(
        self, option_data: Mapping[str, Any], data: Any, context: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Look up the courier's rate for the cart described by ``context``."""
        if self._config.pricing == "flat_rate":
            raise ShiprocketError("Shiprocket: Pricing strategy is set to flat_rate")

        self.ensure_token()

        items = [LineItem.from_dict(item) for item in context.get("items") or []]
        weight = sum(
            ((dimension_value(item, "weight") or 0) / 1000 for item in items), 0.0
        )

        pickup = self._first_pickup_location()
        shipping_address = context.get("shipping_address") or {}
        customer_postcode = shipping_address.get("postal_code")
        is_return = bool(context.get("is_return")) or bool(items and items[0].is_return)
        if is_return:
            pickup_postcode, delivery_postcode = customer_postcode, pickup.pin_code
        else:
            pickup_postcode, delivery_postcode = pickup.pin_code, customer_postcode

        if not pickup_postcode or not delivery_postcode:
            raise ShiprocketError(
                "Shiprocket: Missing pickup or delivery postal code for rate calculation."
            )

        subtotal = coerce_number(context.get("subtotal"))
        declared_value = normalize_amount(
            subtotal if subtotal is not None else sum_line_item_totals(items),
            context.get("currency_code"),
        )
        metadata = context.get("metadata") or {}

        serviceability = self._client.check_serviceability(
            {
                "pickup_postcode": _postcode(pickup_postcode),
                "delivery_postcode": _postcode(delivery_postcode),
                "cod": bool(metadata.get("isCOD")),
                "weight": weight,
                "declared_value": declared_value,
            }
        )
        companies = (serviceability or {}).get("available_courier_companies") or []
        selected = [
            company
            for company in companies
            if company.get("courier_company_id") == option_data.get("id")
        ]
        rate = coerce_number(selected[0].get("rate")) if selected else None
        if not selected:
            LOGGER.warning(
                "Courier %s not offered for %s -> %s",
                option_data.get("id"),
                pickup_postcode,
                delivery_postcode,
            )

        return {
            "calculated_amount": math.floor((rate or 0) * 100 + 0.5),
            "is_calculated_price_tax_inclusive": False,
        }

    # Fulfillment

    def create_fulfillment(
        self,
        data: Mapping[str, Any],
        items: Optional[Sequence[Mapping[str, Any]]],
        order: Optional[Mapping[str, Any]],
        fulfillment: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create a Shiprocket order (or wrapper shipment) for a fulfillment."""
        self.ensure_token()

        raw_order = order or (fulfillment or {}).get("order")
        if not raw_order:
            raise ShiprocketError("Shiprocket: Missing order context for fulfillment.")
        from_order = Order.from_dict(raw_order)

        if from_order.shipping_address is None or from_order.billing_address is None:
            raise ShiprocketError("Shiprocket: Missing shipping or billing address.")

        requested_items = [LineItem.from_dict(item) for item in items or []]
        fulfillment_items = requested_items or from_order.items
        shipment = self._resolve_shipment(fulfillment_items, from_order)

        pickup = self._first_pickup_location()
        courier_id = resolve_courier_id(data)
        if not courier_id:
            raise ShiprocketError("Shiprocket: Courier ID missing from method data.")

        metadata = from_order.metadata
        options = dict(
            channel_id=self._config.channel_id,
            shipment=shipment,
            country_name=country_name,
            totals_provider=self._totals_provider,
            cod=bool(metadata.get("isCOD")),
            gstin=metadata.get("gstin"),
        )

        if self._config.forward_action == "create_fulfillment" and not self._is_split(
            len(requested_items)
        ):
            payload = build_forward_shipment(
                from_order, fulfillment_items, pickup, courier_id=courier_id, **options
            )
            response = self._client.create_forward_shipment(payload)
        else:
            if self._config.forward_action == "create_fulfillment":
                LOGGER.warning(
                    "Shiprocket: Split shipments can't be created via API. "
                    "Creating a Shiprocket Order instead."
                )
            payload = build_forward_order(from_order, fulfillment_items, pickup, **options)
            response = submit_forward_order(self._client, payload, self._config.inventory_sync)

        return {"data": response, "labels": []}

    def create_return_fulfillment(
        self,
        data: Optional[Mapping[str, Any]],
        items: Optional[Sequence[Mapping[str, Any]]],
        order: Optional[Mapping[str, Any]],
        return_request: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Create a Shiprocket return order (or wrapper shipment) for a return."""
        self.ensure_token()
        return_request = return_request or {}

        raw_order = order or return_request.get("order")
        if not raw_order:
            raise ShiprocketError("Shiprocket: Missing order context for return fulfillment.")
        from_order = Order.from_dict(raw_order)

        shipping_method = return_request.get("shipping_method") or {}
        method_data = data or shipping_method.get("data") or shipping_method
        courier_id = resolve_courier_id(method_data)
        if not courier_id:
            raise ShiprocketError("Shiprocket: Courier ID missing from return method data.")

        if from_order.shipping_address is None:
            raise ShiprocketError("Shiprocket: Missing shipping address for return.")

        return_items = [LineItem.from_dict(item) for item in items or []] or from_order.items
        shipment = self._resolve_shipment(return_items, from_order)
        pickup = self._first_pickup_location()

        options = dict(
            channel_id=self._config.channel_id,
            shipment=shipment,
            country_name=country_name,
            totals_provider=self._totals_provider,
        )

        if self._config.return_action == "create_fulfillment" and not self._is_split(
            len(return_items)
        ):
            payload = build_return_shipment(
                from_order, return_items, pickup, courier_id=courier_id, **options
            )
            response = self._client.create_return_shipment(payload)
        else:
            if self._config.return_action == "create_fulfillment":
                LOGGER.warning(
                    "Shiprocket: Split shipments can't be created via API. "
                    "Creating a Shiprocket Return Order instead."
                )
            payload = build_return_order(from_order, return_items, pickup, **options)
            response = self._client.create_return_order(payload)

        return {"data": response, "labels": []}

    def cancel_fulfillment(self, data: Mapping[str, Any]) -> None:
        """Cancel the AWB and order behind a fulfillment that has not shipped yet."""
        self.ensure_token()

        nested = data.get("data") if isinstance(data.get("data"), Mapping) else {}
        shipment_id = data.get("shipment_id") or nested.get("shipment_id")
        awb_code = data.get("awb_code") or nested.get("awb_code")
        order_id = data.get("order_id") or nested.get("order_id")

        if not shipment_id:
            raise ShiprocketError("Shiprocket: Unable to cancel shipment. shipment_id not found.")

        details = self._client.get_shipment(shipment_id) or {}
        status = coerce_number(details.get("status"))
        if (
            status is not None
            and status > LAST_CANCELLABLE_STATUS
            and status not in CANCELLABLE_STATUS_EXCEPTIONS
        ):
            raise ShiprocketError(
                "Shiprocket: Shipment has already been shipped, cannot be cancelled."
            )

        if awb_code:
            self._client.cancel_shipments([awb_code])
        if order_id:
            self._client.cancel_orders([order_id])
        LOGGER.info("Cancelled Shiprocket shipment %s", shipment_id)

    def _resolve_shipment(self, items: Sequence[LineItem], order: Order) -> ShipmentSpec:
        metadata = order.metadata
        return resolve_shipment(
            items,
            self._config.length_unit,
            metadata.get("shipment_length"),
            metadata.get("shipment_width"),
            metadata.get("shipment_height"),
            metadata.get("shipment_weight"),
        )

    def _first_pickup_location(self) -> PickupLocation:
        locations = self._client.list_pickup_locations() or {}
        addresses = locations.get("shipping_address") or []
        if not addresses:
            raise ShiprocketError("Shiprocket: No pickup location found.")
        return PickupLocation.from_dict(addresses[0])

    def _is_split(self, item_count: int) -> bool:
        return item_count > 1 and self._config.multiple_items == "split_shipment"


def resolve_courier_id(data: Optional[Mapping[str, Any]]) -> Optional[Any]:
    """Find the courier id in shipping-method data, looking one level deep."""
    if not data:
        return None
    nested = data.get("data") if isinstance(data.get("data"), Mapping) else {}
    for source in (data, nested):
        for key in COURIER_ID_KEYS:
            value = source.get(key)
            if value:
                return value
    return None


def country_name(alpha2: Optional[str]) -> str:
    """Render an ISO alpha-2 country code as an English display name."""
    if not alpha2:
        return ""
    code = alpha2.strip().upper()
    country = pycountry.countries.get(alpha_2=code)
    if country is None:
        return code
    return getattr(country, "common_name", None) or country.name


def _postcode(value: Any) -> Any:
    number = coerce_number(value)
    return int(number) if number is not None else value


__all__ = ["ShiprocketFulfillmentProvider", "country_name", "resolve_courier_id"]
