from __future__ import annotations

import json

import pytest
import requests
import responses

from shiprocket_fulfillment.client import ShiprocketClient, ShiprocketError

BASE_URL = "https://shiprocket.example/v1/external"


def build_client(token: str | None = "token") -> ShiprocketClient:
    return ShiprocketClient(BASE_URL, token)


@responses.activate
def test_login_returns_token():
    client = build_client(token=None)
    responses.add(responses.POST, f"{BASE_URL}/auth/login", json={"token": "fresh"}, status=200)

    assert client.login("ops@example.com", "secret") == "fresh"
    assert json.loads(responses.calls[0].request.body) == {
        "email": "ops@example.com",
        "password": "secret",
    }


@responses.activate
def test_login_without_token_in_response_fails():
    client = build_client(token=None)
    responses.add(responses.POST, f"{BASE_URL}/auth/login", json={}, status=200)

    with pytest.raises(ShiprocketError, match="Failed to refresh token"):
        client.login("ops@example.com", "secret")


@responses.activate
def test_requests_carry_bearer_token():
    client = build_client()
    responses.add(
        responses.GET,
        f"{BASE_URL}/courier/courierListWithCounts",
        json={"courier_data": [{"id": 1, "name": "Delhivery"}]},
        status=200,
    )

    couriers = client.list_couriers("active")

    assert couriers == [{"id": 1, "name": "Delhivery"}]
    request = responses.calls[0].request
    assert request.headers["Authorization"] == "Bearer token"
    assert "type=active" in request.url


@responses.activate
def test_set_token_replaces_authorization_header():
    client = build_client(token=None)
    client.set_token("other")
    responses.add(responses.GET, f"{BASE_URL}/shipments/55", json={"data": {"status": 3}})

    assert client.get_shipment(55) == {"status": 3}
    assert responses.calls[0].request.headers["Authorization"] == "Bearer other"


@responses.activate
def test_create_custom_order_posts_payload():
    client = build_client()
    responses.add(
        responses.POST,
        f"{BASE_URL}/orders/create/adhoc",
        json={"order_id": 77, "shipment_id": 88},
        status=200,
    )

    response = client.create_custom_order({"order_id": "1001"})

    assert response == {"order_id": 77, "shipment_id": 88}
    assert json.loads(responses.calls[0].request.body) == {"order_id": "1001"}


@responses.activate
def test_create_channel_order_uses_channel_endpoint():
    client = build_client()
    responses.add(responses.POST, f"{BASE_URL}/orders/create", json={"order_id": 1}, status=200)

    assert client.create_channel_order({"order_id": "1001"}) == {"order_id": 1}


@responses.activate
def test_wrapper_endpoints_unwrap_payload():
    client = build_client()
    responses.add(
        responses.POST,
        f"{BASE_URL}/shipments/create/forward-shipment",
        json={"status": 1, "payload": {"awb_code": "AWB1"}},
        status=200,
    )
    responses.add(
        responses.POST,
        f"{BASE_URL}/shipments/create/return-shipment",
        json={"status": 1, "payload": {"awb_code": "AWB2"}},
        status=200,
    )

    assert client.create_forward_shipment({"courier_id": 1}) == {"awb_code": "AWB1"}
    assert client.create_return_shipment({"courier_id": 1}) == {"awb_code": "AWB2"}


@responses.activate
def test_get_order_unwraps_data():
    client = build_client()
    responses.add(
        responses.GET,
        f"{BASE_URL}/orders/show/321",
        json={"data": {"id": 321, "status": "NEW"}},
        status=200,
    )

    assert client.get_order(321) == {"id": 321, "status": "NEW"}
    assert responses.calls[0].request.headers["Authorization"] == "Bearer token"


@responses.activate
def test_check_serviceability_sends_query_parameters():
    client = build_client()
    responses.add(
        responses.GET,
        f"{BASE_URL}/courier/serviceability",
        json={"data": {"available_courier_companies": []}},
        status=200,
    )

    result = client.check_serviceability(
        {"pickup_postcode": 560001, "delivery_postcode": 400001, "cod": False, "weight": 1.5, "declared_value": None}
    )

    assert result == {"available_courier_companies": []}
    url = responses.calls[0].request.url
    assert "pickup_postcode=560001" in url
    assert "cod=0" in url
    assert "declared_value" not in url


@responses.activate
def test_cancel_endpoints():
    client = build_client()
    responses.add(responses.POST, f"{BASE_URL}/orders/cancel", body="", status=200)
    responses.add(
        responses.POST,
        f"{BASE_URL}/orders/cancel/shipment/awbs",
        json={"message": "Bulk Shipment cancellation is in progress."},
        status=200,
    )

    assert client.cancel_orders([12]) is None
    assert client.cancel_shipments(["AWB1"]) == "Bulk Shipment cancellation is in progress."
    assert json.loads(responses.calls[0].request.body) == {"ids": [12]}
    assert json.loads(responses.calls[1].request.body) == {"awbs": ["AWB1"]}


@responses.activate
def test_http_error_is_wrapped_with_operation_name():
    client = build_client()
    responses.add(
        responses.POST,
        f"{BASE_URL}/orders/create/return",
        json={"message": "Invalid data"},
        status=422,
    )

    with pytest.raises(ShiprocketError, match="Shiprocket Return: Failed to createReturn") as excinfo:
        client.create_return_order({"order_id": "1"})

    assert isinstance(excinfo.value.__cause__, requests.HTTPError)


@responses.activate
def test_connection_error_is_wrapped():
    client = build_client()
    responses.add(
        responses.GET,
        f"{BASE_URL}/settings/company/pickup",
        body=requests.ConnectionError("unreachable"),
    )

    with pytest.raises(ShiprocketError, match="Failed to retrieveAll pickup locations"):
        client.list_pickup_locations()
