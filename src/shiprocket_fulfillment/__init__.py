"""Shiprocket fulfillment integration package."""

from __future__ import annotations

from .amounts import line_item_total, normalize_amount, sum_line_item_totals
from .client import ShiprocketClient, ShiprocketError
from .config import ProviderConfig, load_config
from .provider import ShiprocketFulfillmentProvider
from .shipment import (
    IncompleteShipmentDataError,
    InvalidConfigurationError,
    ShipmentSpec,
    resolve_shipment,
)

__all__ = [
    "IncompleteShipmentDataError",
    "InvalidConfigurationError",
    "ProviderConfig",
    "ShipmentSpec",
    "ShiprocketClient",
    "ShiprocketError",
    "ShiprocketFulfillmentProvider",
    "line_item_total",
    "load_config",
    "normalize_amount",
    "resolve_shipment",
    "sum_line_item_totals",
]
