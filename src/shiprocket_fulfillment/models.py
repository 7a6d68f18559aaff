"""Host order-management records consumed by the Shiprocket integration."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

Number = Union[int, float]

VARIANT_KEYS = ("variant", "product_variant", "productVariant")


@dataclass(frozen=True)
class Variant:
    """Product variant carrying the catalogue-level SKU, HS code and dimensions."""

    sku: Optional[str] = None
    hs_code: Optional[str] = None
    length: Optional[Number] = None
    width: Optional[Number] = None
    height: Optional[Number] = None
    weight: Optional[Number] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Variant":
        return cls(
            sku=_coerce_optional_str(data.get("sku")),
            hs_code=_coerce_optional_str(data.get("hs_code")),
            length=coerce_number(data.get("length")),
            width=coerce_number(data.get("width")),
            height=coerce_number(data.get("height")),
            weight=coerce_number(data.get("weight")),
        )


@dataclass(frozen=True)
class LineItem:
    """Order line item. Amounts are in minor currency units."""

    id: Optional[str] = None
    title: Optional[str] = None
    quantity: Number = 0
    unit_price: Optional[Number] = None
    original_total: Optional[Number] = None
    subtotal: Optional[Number] = None
    total: Optional[Number] = None
    weight: Optional[Number] = None
    length: Optional[Number] = None
    width: Optional[Number] = None
    height: Optional[Number] = None
    variant: Optional[Variant] = None
    tax_lines: List[Dict[str, Any]] = field(default_factory=list)
    is_return: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        variant_data = _first_mapping(data, VARIANT_KEYS)
        tax_lines = data.get("tax_lines")
        return cls(
            id=_coerce_optional_str(data.get("id")),
            title=_coerce_optional_str(data.get("title")),
            quantity=coerce_number(data.get("quantity")) or 0,
            unit_price=coerce_number(data.get("unit_price")),
            original_total=coerce_number(data.get("original_total")),
            subtotal=coerce_number(data.get("subtotal")),
            total=coerce_number(data.get("total")),
            weight=coerce_number(data.get("weight")),
            length=coerce_number(data.get("length")),
            width=coerce_number(data.get("width")),
            height=coerce_number(data.get("height")),
            variant=Variant.from_dict(variant_data) if variant_data is not None else None,
            tax_lines=[dict(line) for line in tax_lines if isinstance(line, Mapping)]
            if isinstance(tax_lines, list)
            else [],
            is_return=bool(data.get("is_return")),
        )

    @property
    def sku(self) -> Optional[str]:
        return self.variant.sku if self.variant else None

    @property
    def hs_code(self) -> Optional[str]:
        return self.variant.hs_code if self.variant else None


@dataclass(frozen=True)
class Address:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Address":
        return cls(
            first_name=_coerce_optional_str(data.get("first_name")),
            last_name=_coerce_optional_str(data.get("last_name")),
            address_1=_coerce_optional_str(data.get("address_1")),
            address_2=_coerce_optional_str(data.get("address_2")),
            city=_coerce_optional_str(data.get("city")),
            province=_coerce_optional_str(data.get("province")),
            postal_code=_coerce_optional_str(data.get("postal_code")),
            phone=_coerce_optional_str(data.get("phone")),
            country_code=_coerce_optional_str(data.get("country_code")),
        )


@dataclass(frozen=True)
class Order:
    """Order aggregate as handed over by the host framework."""

    id: str
    display_id: Optional[str] = None
    email: Optional[str] = None
    currency_code: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    shipping_methods: List[Dict[str, Any]] = field(default_factory=list)
    discount_total: Optional[Number] = None
    subtotal: Optional[Number] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Order":
        identifier = data.get("id")
        if identifier is None:
            raise ValueError("Order payload missing 'id'.")
        billing = data.get("billing_address")
        shipping = data.get("shipping_address")
        methods = data.get("shipping_methods")
        metadata = data.get("metadata")
        return cls(
            id=str(identifier),
            display_id=_coerce_optional_str(data.get("display_id")),
            email=_coerce_optional_str(data.get("email")),
            currency_code=_coerce_optional_str(data.get("currency_code")),
            items=[LineItem.from_dict(item) for item in data.get("items") or []],
            billing_address=Address.from_dict(billing) if isinstance(billing, Mapping) else None,
            shipping_address=Address.from_dict(shipping) if isinstance(shipping, Mapping) else None,
            shipping_methods=[dict(method) for method in methods or [] if isinstance(method, Mapping)],
            discount_total=coerce_number(data.get("discount_total")),
            subtotal=coerce_number(data.get("subtotal")),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )

    @property
    def reference(self) -> str:
        """Identifier shown to the carrier: the display id when the host has one."""

        return self.display_id or self.id

    @property
    def shipping_price(self) -> Number:
        if not self.shipping_methods:
            return 0
        method = self.shipping_methods[0]
        for key in ("price", "amount"):
            value = coerce_number(method.get(key))
            if value is not None:
                return value
        return 0


@dataclass(frozen=True)
class PickupLocation:
    """Warehouse registered in the Shiprocket account."""

    pickup_location: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pin_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PickupLocation":
        return cls(
            pickup_location=str(data.get("pickup_location") or ""),
            name=_coerce_optional_str(data.get("name")),
            email=_coerce_optional_str(data.get("email")),
            phone=_coerce_optional_str(data.get("phone")),
            address=_coerce_optional_str(data.get("address")),
            address_2=_coerce_optional_str(data.get("address_2")),
            city=_coerce_optional_str(data.get("city")),
            state=_coerce_optional_str(data.get("state")),
            country=_coerce_optional_str(data.get("country")),
            pin_code=_coerce_optional_str(data.get("pin_code")),
        )


def _first_mapping(data: Mapping[str, Any], keys) -> Optional[Mapping[str, Any]]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, Mapping):
            return value
    return None


def coerce_number(value: Any) -> Optional[Number]:
    """Parse a numeric field from free-form host data; unparseable values become ``None``."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _coerce_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


__all__ = ["Address", "LineItem", "Order", "PickupLocation", "Variant", "coerce_number"]
