"""Configuration handling for the Shiprocket fulfillment provider."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Sequence

from dotenv import load_dotenv

from .client import DEFAULT_BASE_URL

PRICING_STRATEGIES = ("flat_rate", "calculated")
MULTIPLE_ITEMS_STRATEGIES = ("single_shipment", "split_shipment")
CREATE_ACTIONS = ("create_order", "create_fulfillment")


@dataclass(frozen=True)
class ProviderConfig:
    """Provider options as registered with the host framework."""

    channel_id: str
    email: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    pricing: str = "calculated"
    length_unit: str = "cm"
    multiple_items: str = "single_shipment"
    inventory_sync: bool = False
    forward_action: str = "create_order"
    return_action: str = "create_order"
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: int = 30
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)


def load_config(env_file: Optional[str] = ".env") -> ProviderConfig:
    """Load provider configuration from environment variables."""
    if env_file:
        load_dotenv(dotenv_path=env_file, override=False)

    config = ProviderConfig(
        channel_id=_require_env("SHIPROCKET_CHANNEL_ID"),
        email=os.environ.get("SHIPROCKET_EMAIL") or None,
        password=os.environ.get("SHIPROCKET_PASSWORD") or None,
        token=os.environ.get("SHIPROCKET_TOKEN") or None,
        pricing=_env_choice("SHIPROCKET_PRICING", PRICING_STRATEGIES, "calculated"),
        # Validated by the shipment resolver when dimensions are computed.
        length_unit=os.environ.get("SHIPROCKET_LENGTH_UNIT", "cm").strip(),
        multiple_items=_env_choice(
            "SHIPROCKET_MULTIPLE_ITEMS", MULTIPLE_ITEMS_STRATEGIES, "single_shipment"
        ),
        inventory_sync=_env_bool("SHIPROCKET_INVENTORY_SYNC", default=False),
        forward_action=_env_choice("SHIPROCKET_FORWARD_ACTION", CREATE_ACTIONS, "create_order"),
        return_action=_env_choice("SHIPROCKET_RETURN_ACTION", CREATE_ACTIONS, "create_order"),
        base_url=os.environ.get("SHIPROCKET_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        timeout_seconds=_env_int("SHIPROCKET_TIMEOUT_SECONDS", default=30, minimum=1),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )
    if not config.token and not config.has_credentials:
        raise ValueError(
            "Missing Shiprocket credentials: set SHIPROCKET_TOKEN or "
            "SHIPROCKET_EMAIL and SHIPROCKET_PASSWORD"
        )
    return config


def _require_env(key: str) -> str:
    value = os.environ.get(key)
    if not value:
        raise ValueError(f"Missing required environment variable: {key}")
    return value


def _env_bool(key: str, default: bool = True) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"0", "false", "no", "off", ""}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _env_choice(key: str, choices: Sequence[str], default: str) -> str:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(f"{key} must be one of {', '.join(choices)}; got {value!r}")
    return normalized


def _env_int(key: str, *, default: int, minimum: int) -> int:
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value for {key}: {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}: {value}")
    return value


__all__ = ["ProviderConfig", "load_config"]
