"""Resolution of the parcel dimensions and weight declared to Shiprocket.

Shiprocket expects centimetres and kilograms. Dimensions and weight either come
from manual overrides stored on the order, or are derived from the line items:
the dimensions of the item with the largest volumetric weight, and the summed
physical weight of every item.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .models import LineItem, Number, coerce_number

LOGGER = logging.getLogger(__name__)

SUPPORTED_LENGTH_UNITS = ("mm", "cm", "inches")

VOLUMETRIC_DIVISOR = 5000
CUBIC_INCH_TO_CUBIC_CM = 16.387064
INCH_TO_CM = 2.54
GRAMS_PER_KILOGRAM = 1000

DIMENSION_FIELDS = ("length", "width", "height", "weight")


class ShipmentResolutionError(ValueError):
    """Raised when shipment dimensions cannot be resolved."""


class InvalidConfigurationError(ShipmentResolutionError):
    """Raised when the configured length unit is not supported."""


class IncompleteShipmentDataError(ShipmentResolutionError):
    """Raised when dimensions or weight are missing for a shipment."""


@dataclass(frozen=True)
class ShipmentSpec:
    length_cm: float
    width_cm: float
    height_cm: float
    weight_kg: float


def resolve_shipment(
    items: Sequence[LineItem],
    length_unit: Optional[str],
    length: Any = None,
    width: Any = None,
    height: Any = None,
    weight: Any = None,
) -> ShipmentSpec:
    """Resolve the shipment dimensions (cm) and weight (kg) for a set of items.

    When all four manual overrides are present and non-zero they are used
    directly, with only the linear dimensions converted from ``length_unit``.
    Otherwise every item must carry length, width, height and weight (variant
    values first), and the shipment takes the dimensions of the item with the
    largest volumetric weight and the sum of all item weights in grams.
    """

    unit = _validate_unit(length_unit)
    overrides = [coerce_number(value) for value in (length, width, height, weight)]

    if all(overrides):
        manual_length, manual_width, manual_height, manual_weight = overrides
        spec = ShipmentSpec(
            length_cm=to_centimeters(manual_length, unit),
            width_cm=to_centimeters(manual_width, unit),
            height_cm=to_centimeters(manual_height, unit),
            weight_kg=manual_weight,
        )
    else:
        LOGGER.info(
            "Shiprocket: Item dimensions and weight not found in order's metadata. "
            "Using largest item's dimensions and sum of weights"
        )
        spec = _resolve_from_items(items, unit)

    if min(spec.length_cm, spec.width_cm, spec.height_cm, spec.weight_kg) <= 0:
        raise IncompleteShipmentDataError(
            "Shiprocket: Shipment dimensions and weight must be greater than zero"
        )
    return spec


def dimension_value(item: LineItem, field_name: str) -> Optional[Number]:
    """Return a dimension or weight for an item, preferring the variant's value."""

    if item.variant is not None:
        value = getattr(item.variant, field_name)
        if value is not None:
            return value
    return getattr(item, field_name)


def volumetric_weight(length: Number, width: Number, height: Number, unit: str) -> float:
    unit = _validate_unit(unit)
    if unit == "mm":
        return (length * width * height) / (VOLUMETRIC_DIVISOR * 1000)
    if unit == "cm":
        return (length * width * height) / VOLUMETRIC_DIVISOR
    return (length * width * height * CUBIC_INCH_TO_CUBIC_CM) / VOLUMETRIC_DIVISOR


def to_centimeters(value: Number, unit: str) -> float:
    unit = _validate_unit(unit)
    if unit == "mm":
        return value / 10
    if unit == "cm":
        return value
    return value * INCH_TO_CM


def _resolve_from_items(items: Sequence[LineItem], unit: str) -> ShipmentSpec:
    if not items:
        raise IncompleteShipmentDataError(
            "Shiprocket: Missing item dimensions or weight for shipment calculations"
        )

    dimensions = [_item_dimensions(item) for item in items]

    sum_of_weights = 0.0
    largest_index = 0
    largest_volume = None
    for index, (item_length, item_width, item_height, item_weight) in enumerate(dimensions):
        sum_of_weights += item_weight / GRAMS_PER_KILOGRAM
        volume = volumetric_weight(item_length, item_width, item_height, unit)
        # Strict comparison keeps the first item on ties.
        if largest_volume is None or volume > largest_volume:
            largest_index = index
            largest_volume = volume

    item_length, item_width, item_height, _ = dimensions[largest_index]
    LOGGER.debug(
        "Using dimensions of item %s (volumetric weight %s)",
        items[largest_index].id,
        largest_volume,
    )
    return ShipmentSpec(
        length_cm=to_centimeters(item_length, unit),
        width_cm=to_centimeters(item_width, unit),
        height_cm=to_centimeters(item_height, unit),
        weight_kg=sum_of_weights,
    )


def _item_dimensions(item: LineItem) -> Tuple[Number, Number, Number, Number]:
    values = tuple(dimension_value(item, name) for name in DIMENSION_FIELDS)
    if not all(values):
        raise IncompleteShipmentDataError(
            "Shiprocket: Missing item dimensions or weight for shipment calculations"
        )
    return values  # type: ignore[return-value]


def _validate_unit(unit: Optional[str]) -> str:
    if unit not in SUPPORTED_LENGTH_UNITS:
        raise InvalidConfigurationError(
            "Shiprocket: Please add a length_unit. Supported values are "
            + ", ".join(SUPPORTED_LENGTH_UNITS)
        )
    return unit


__all__ = [
    "IncompleteShipmentDataError",
    "InvalidConfigurationError",
    "SUPPORTED_LENGTH_UNITS",
    "ShipmentResolutionError",
    "ShipmentSpec",
    "dimension_value",
    "resolve_shipment",
    "to_centimeters",
    "volumetric_weight",
]
