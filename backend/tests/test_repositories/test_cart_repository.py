"""
Unit tests for CartRepository

Author: TM3
Date: 2025-10-17
"""
import pytest

from factorybay.core.exceptions import NotFoundError, ValidationError
from factorybay.repositories.cart_repository import CartRepository

CART_ITEM = {
    "id": "item-1",
    "userId": "user-1",
    "variantId": "var-1",
    "quantity": 3,
    "addedAt": "2025-10-17T10:00:00+00:00",
}


class TestAddToCart:

    def test_existing_line_is_incremented(self, queue_results, run_call):
        session = queue_results([{"item": CART_ITEM}])

        item = CartRepository(session).add_to_cart("user-1", "var-1", 2)

        assert item.quantity == 3
        assert session.run.call_count == 1
        query, params = run_call(0)
        assert "c.quantity + $quantity" in query
        assert params["quantity"] == 2

    def test_new_line_is_created(self, queue_results):
        session = queue_results([], [{"item": {**CART_ITEM, "quantity": 1}}])

        item = CartRepository(session).add_to_cart("user-1", "var-1")

        assert item.quantity == 1
        assert session.run.call_count == 2

    def test_unknown_variant(self, queue_results):
        session = queue_results([], [])

        with pytest.raises(NotFoundError, match="Product variant not found"):
            CartRepository(session).add_to_cart("user-1", "ghost")


class TestUpdateQuantity:

    def test_zero_quantity_removes_line_and_raises(self, queue_results, run_call):
        session = queue_results([])

        with pytest.raises(ValidationError, match="Quantity must be greater than 0"):
            CartRepository(session).update_cart_item_quantity("user-1", "var-1", 0)

        query, _ = run_call(0)
        assert "DETACH DELETE c" in query

    def test_missing_line(self, queue_results):
        session = queue_results([])
        with pytest.raises(NotFoundError, match="Cart item not found"):
            CartRepository(session).update_cart_item_quantity("user-1", "var-9", 2)

    def test_quantity_is_set(self, queue_results, run_call):
        session = queue_results([{"item": {**CART_ITEM, "quantity": 7}}])

        item = CartRepository(session).update_cart_item_quantity("user-1", "var-1", 7)

        assert item.quantity == 7
        _, params = run_call(0)
        assert params["quantity"] == 7


class TestCartReads:

    def test_items_with_details_and_line_total(self, queue_results, sample_product_data, sample_variant_data):
        session = queue_results([
            {"item": CART_ITEM, "variant": sample_variant_data, "product": sample_product_data},
        ])

        items = CartRepository(session).get_cart_items("user-1")

        assert len(items) == 1
        assert items[0].variant.size == "M"
        assert items[0].line_total == pytest.approx(149.97)

    def test_empty_cart_count_is_zero(self, queue_results):
        session = queue_results([{"total": None}])
        assert CartRepository(session).get_cart_count("user-1") == 0

    def test_cart_total(self, queue_results):
        session = queue_results([{"total": 99.5}])
        assert CartRepository(session).get_cart_total("user-1") == 99.5
