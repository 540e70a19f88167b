"""
API tests for checkout and orders

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import patch

from factorybay.core.exceptions import PermissionDeniedError, ValidationError


@patch("factorybay.api.orders.OrderService")
def test_checkout_with_empty_cart(mock_service, customer_client, sample_shipping_address):
    mock_service.return_value.create_order_from_cart.side_effect = ValidationError("Your cart is empty")

    response = customer_client.post("/api/v1/orders", json={"shippingAddress": sample_shipping_address})

    assert response.status_code == 400
    assert response.json()["message"] == "Your cart is empty"
    args = mock_service.return_value.create_order_from_cart.call_args[0]
    assert args[0] == "user-1"
    assert args[2] == "SHIP"


def test_checkout_requires_complete_address(customer_client):
    response = customer_client.post("/api/v1/orders", json={"shippingAddress": {"fullName": "Jane"}})
    assert response.status_code == 422


@patch("factorybay.api.orders.OrderService")
def test_foreign_order_is_forbidden(mock_service, customer_client):
    mock_service.return_value.get_order_for_user.side_effect = PermissionDeniedError("Unauthorized")

    response = customer_client.get("/api/v1/orders/order-9")

    assert response.status_code == 403
    mock_service.return_value.get_order_for_user.assert_called_once_with("order-9", "user-1", is_admin=False)


@patch("factorybay.api.orders.CartRepository")
def test_summary_for_collection(mock_cart, customer_client):
    mock_cart.return_value.get_cart_items.return_value = []

    response = customer_client.get("/api/v1/orders/summary?deliveryMethod=COLLECT")

    assert response.json()["data"] == {"subtotal": 0, "shipping": 0.0, "total": 0}


def test_invalid_status_is_rejected(admin_client):
    response = admin_client.patch("/api/v1/orders/order-1/status", json={"status": "LOST"})
    assert response.status_code == 422
