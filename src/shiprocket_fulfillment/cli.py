"""Command line access to the Shiprocket account behind the provider."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from .client import ShiprocketError
from .config import load_config
from .provider import ShiprocketFulfillmentProvider

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and operate a Shiprocket account.")
    parser.add_argument("--env-file", default=".env", help="Dotenv file with SHIPROCKET_* settings.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("couriers", help="List active couriers.")
    subparsers.add_parser("pickup-locations", help="List registered pickup locations.")

    serviceability = subparsers.add_parser("serviceability", help="Check courier serviceability.")
    serviceability.add_argument("--pickup", required=True, help="Pickup postcode.")
    serviceability.add_argument("--delivery", required=True, help="Delivery postcode.")
    serviceability.add_argument("--weight", required=True, type=float, help="Weight in kg.")
    serviceability.add_argument("--cod", action="store_true", help="Cash on delivery.")
    serviceability.add_argument("--declared-value", type=float, default=None)

    cancel = subparsers.add_parser("cancel", help="Cancel a shipment that has not shipped.")
    cancel.add_argument("--shipment-id", required=True)
    cancel.add_argument("--awb", default=None, help="AWB code to cancel.")
    cancel.add_argument("--order-id", default=None, help="Shiprocket order id to cancel.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``shiprocket-fulfillment`` command."""
    args = build_parser().parse_args(argv)
    config = load_config(env_file=args.env_file)
    logging.basicConfig(level=config.log_level.upper())

    provider = ShiprocketFulfillmentProvider(config)
    try:
        result = _run(provider, args)
    except ShiprocketError as exc:
        LOGGER.error("%s", exc)
        return 1
    finally:
        provider.client.close()

    if result is not None:
        json.dump(result, sys.stdout, indent=2, default=str)
        sys.stdout.write("\n")
    return 0


def _run(provider: ShiprocketFulfillmentProvider, args: argparse.Namespace) -> Any:
    if args.command == "couriers":
        return provider.get_fulfillment_options()

    provider.ensure_token()
    client = provider.client
    if args.command == "pickup-locations":
        return client.list_pickup_locations()
    if args.command == "serviceability":
        return client.check_serviceability(
            {
                "pickup_postcode": args.pickup,
                "delivery_postcode": args.delivery,
                "weight": args.weight,
                "cod": args.cod,
                "declared_value": args.declared_value,
            }
        )
    provider.cancel_fulfillment(
        {"shipment_id": args.shipment_id, "awb_code": args.awb, "order_id": args.order_id}
    )
    return {"cancelled": args.shipment_id}


if __name__ == "__main__":
    sys.exit(main())
