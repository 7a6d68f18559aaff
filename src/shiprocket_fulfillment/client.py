"""Client for the Shiprocket external REST API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests import Response

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://apiv2.shiprocket.in/v1/external"


class ShiprocketError(RuntimeError):
    """Raised when Shiprocket rejects a request or cannot be reached."""


class ShiprocketClient:
    """Thin wrapper around the Shiprocket HTTP API.

    Every call is single-shot. Failures are logged with the response body and
    re-raised as :class:`ShiprocketError` naming the failed operation.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        *,
        timeout: int = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        self.set_token(token)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ShiprocketClient":  # pragma: no cover - context manager glue
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - context manager glue
        self.close()

    def set_token(self, token: Optional[str]) -> None:
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        else:
            self._session.headers.pop("Authorization", None)

    def login(self, email: str, password: str) -> str:
        """Exchange account credentials for an API token."""

        payload = self._request(
            "POST",
            "auth/login",
            "Shiprocket Auth: Failed to login",
            json={"email": email, "password": password},
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise ShiprocketError("Shiprocket: Failed to refresh token.")
        return str(token)

    # Orders

    def get_order(self, order_id: Any) -> Dict[str, Any]:
        payload = self._request(
            "GET", f"orders/show/{order_id}", "Shiprocket Order: Failed to retrieveById"
        )
        return _unwrap(payload, "data")

    def create_custom_order(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST",
            "orders/create/adhoc",
            "Shiprocket Order: Failed to createCustom",
            json=dict(order),
        )

    def create_channel_order(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST",
            "orders/create",
            "Shiprocket Order: Failed to createForChannel",
            json=dict(order),
        )

    def cancel_orders(self, order_ids: List[Any]) -> None:
        self._request(
            "POST",
            "orders/cancel",
            "Shiprocket Order: Failed to cancelOrder",
            json={"ids": list(order_ids)},
        )

    def cancel_shipments(self, awbs: List[str]) -> Any:
        payload = self._request(
            "POST",
            "orders/cancel/shipment/awbs",
            "Shiprocket Order: Failed to cancelShipment",
            json={"awbs": list(awbs)},
        )
        return payload.get("message") if isinstance(payload, dict) else payload

    # Shipments

    def get_shipment(self, shipment_id: Any) -> Dict[str, Any]:
        payload = self._request(
            "GET", f"shipments/{shipment_id}", "Shiprocket Shipment: Failed to retrieveById"
        )
        return _unwrap(payload, "data")

    # Couriers

    def list_couriers(self, courier_type: str = "active") -> List[Dict[str, Any]]:
        payload = self._request(
            "GET",
            "courier/courierListWithCounts",
            "Shiprocket Courier: Failed to retrieveAll",
            params={"type": courier_type},
        )
        couriers = _unwrap(payload, "courier_data")
        return couriers if isinstance(couriers, list) else []

    def check_serviceability(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self._request(
            "GET",
            "courier/serviceability",
            "Shiprocket Courier: Failed to getServiceability",
            params=_query_params(params),
        )
        return _unwrap(payload, "data")

    # Company

    def list_pickup_locations(self) -> Dict[str, Any]:
        payload = self._request(
            "GET",
            "settings/company/pickup",
            "Shiprocket Company: Failed to retrieveAll pickup locations",
        )
        return _unwrap(payload, "data")

    # Returns

    def create_return_order(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST",
            "orders/create/return",
            "Shiprocket Return: Failed to createReturn",
            json=dict(order),
        )

    # Wrapper endpoints create the order, assign the AWB and request pickup in one call.

    def create_forward_shipment(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            "shipments/create/forward-shipment",
            "Shiprocket Wrapper: Failed to create forward shipment",
            json=dict(order),
        )
        return _unwrap(payload, "payload")

    def create_return_shipment(self, order: Mapping[str, Any]) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            "shipments/create/return-shipment",
            "Shiprocket Wrapper: Failed to create reverse shipment",
            json=dict(order),
        )
        return _unwrap(payload, "payload")

    def _request(self, method: str, path: str, failure_message: str, **kwargs: Any) -> Any:
        url = self._build_url(path)
        LOGGER.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            LOGGER.error("%s: %s", failure_message, exc)
            raise ShiprocketError(failure_message) from exc
        _raise_for_status(response, failure_message)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ShiprocketError(f"{failure_message}; response was not JSON") from exc

    def _build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"


def _raise_for_status(response: Response, failure_message: str) -> None:
    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        body = (response.text or "").strip()
        snippet = body if len(body) < 512 else f"{body[:512]}..."
        LOGGER.error("%s (%s): %s", failure_message, response.status_code, snippet)
        raise ShiprocketError(failure_message) from exc


def _unwrap(payload: Any, key: str) -> Any:
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def _query_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = int(value)
        query[key] = value
    return query


__all__ = ["DEFAULT_BASE_URL", "ShiprocketClient", "ShiprocketError"]
