"""
Unit tests for PromotionalCategoryRepository

Author: TM3
Date: 2025-10-17
"""
import pytest

from factorybay.core.exceptions import ValidationError
from factorybay.domain.promotion import PromotionalCategoryCreate, PromotionalCategoryUpdate
from factorybay.repositories.promotional_category_repository import PromotionalCategoryRepository


def promo_node(category_id="promo-1", name="Summer Sale", display_order=0, **extra):
    node = {
        "id": category_id,
        "name": name,
        "slug": name.lower().replace(" ", "-"),
        "description": None,
        "displayOrder": display_order,
        "isActive": True,
        "startDate": None,
        "endDate": None,
        "createdAt": 1729123200000,
        "updatedAt": 1729123200000,
    }
    node.update(extra)
    return node


def item_row(allocated=10, sold=0):
    return {
        "item": {"id": "item-1", "allocatedQuantity": allocated, "soldQuantity": sold, "addedAt": 1729123200000},
        "categoryId": "promo-1",
        "productId": "prod-1",
    }


class TestPromotionalCategories:

    def test_create_derives_slug_and_defaults_active(self, queue_results, run_call):
        session = queue_results([{"c": promo_node()}])

        category = PromotionalCategoryRepository(session).create_category(
            PromotionalCategoryCreate(name="Summer Sale", display_order=1)
        )

        assert category.slug == "summer-sale"
        _, params = run_call(0)
        assert params["slug"] == "summer-sale"
        assert params["isActive"] is True
        assert params["displayOrder"] == 1
        assert params["startDate"] is None

    def test_active_only_filters_and_orders(self, queue_results, run_call):
        session = queue_results([{"c": promo_node()}, {"c": promo_node("promo-2", "New In", 1)}])

        categories = PromotionalCategoryRepository(session).get_all_categories(active_only=True)

        assert [c.id for c in categories] == ["promo-1", "promo-2"]
        query, _ = run_call(0)
        assert "c.isActive = true" in query
        assert "ORDER BY c.displayOrder ASC" in query

    def test_update_sets_only_given_fields(self, queue_results, run_call):
        session = queue_results([{"c": promo_node(isActive=False)}])

        category = PromotionalCategoryRepository(session).update_category(
            "promo-1", PromotionalCategoryUpdate(is_active=False)
        )

        assert category.is_active is False
        query, params = run_call(0)
        assert "c.isActive = $isActive" in query
        assert "c.name" not in query
        assert params["isActive"] is False

    def test_update_without_fields_returns_current(self, queue_results, run_call):
        session = queue_results([{"c": promo_node()}])

        category = PromotionalCategoryRepository(session).update_category("promo-1", PromotionalCategoryUpdate())

        assert category.name == "Summer Sale"
        query, _ = run_call(0)
        assert "SET" not in query

    def test_update_missing_category(self, queue_results):
        session = queue_results([])

        result = PromotionalCategoryRepository(session).update_category(
            "ghost", PromotionalCategoryUpdate(name="Winter")
        )

        assert result is None

    def test_delete_reports_whether_deleted(self, queue_results):
        session = queue_results([{"deleted": 1}], [{"deleted": 0}])
        repo = PromotionalCategoryRepository(session)

        assert repo.delete_category("promo-1") is True
        assert repo.delete_category("promo-1") is False


class TestPromotionalItems:

    def test_add_product_starts_with_nothing_sold(self, queue_results, run_call):
        session = queue_results([item_row(allocated=10)])

        item = PromotionalCategoryRepository(session).add_product("promo-1", "prod-1", 10)

        assert item.allocated_quantity == 10
        assert item.remaining_quantity == 10
        query, params = run_call(0)
        assert "ON CREATE SET" in query
        assert "r.soldQuantity = 0" in query
        assert params["allocated"] == 10

    def test_add_to_missing_category_or_product(self, queue_results):
        session = queue_results([])

        assert PromotionalCategoryRepository(session).add_product("ghost", "prod-1", 5) is None

    def test_negative_allocation_is_refused(self, mock_session):
        with pytest.raises(ValidationError):
            PromotionalCategoryRepository(mock_session).update_item_quantity("promo-1", "prod-1", -1)

        mock_session.run.assert_not_called()

    def test_update_quantity_of_missing_item(self, queue_results):
        session = queue_results([])

        assert PromotionalCategoryRepository(session).update_item_quantity("promo-1", "prod-9", 3) is None

    def test_remove_product(self, queue_results):
        session = queue_results([{"removed": 1}])

        assert PromotionalCategoryRepository(session).remove_product("promo-1", "prod-1") is True

    def test_listed_products_have_quantity_left(self, queue_results, run_call, sample_product_data, sample_variant_data):
        session = queue_results([{"product": sample_product_data, "variants": [sample_variant_data]}])

        products = PromotionalCategoryRepository(session).get_products_by_category("promo-1")

        assert products[0].variants[0].id == "var-1"
        query, params = run_call(0)
        assert "r.allocatedQuantity > r.soldQuantity" in query
        assert params == {"categoryId": "promo-1", "limit": 20}

    def test_item_details_compute_remaining(self, queue_results, sample_product_data):
        session = queue_results([{
            "product": sample_product_data,
            "variants": [],
            "allocatedQuantity": 10,
            "soldQuantity": 10,
        }])

        items = PromotionalCategoryRepository(session).get_category_items_with_details("promo-1")

        assert items[0].remaining_quantity == 0
        assert items[0].to_dict()["product"]["id"] == "prod-1"

    def test_categories_of_a_product(self, queue_results):
        session = queue_results([{"category": promo_node(), "allocatedQuantity": 8, "soldQuantity": 3}])

        promotions = PromotionalCategoryRepository(session).get_product_categories("prod-1")

        assert promotions[0].category.id == "promo-1"
        assert promotions[0].remaining_quantity == 5


class TestMoveQuantity:

    def test_move_within_available_quantity(self, queue_results, run_call):
        session = queue_results([{"moved": 1}])

        moved = PromotionalCategoryRepository(session).move_quantity("prod-1", "promo-1", "promo-2", 4)

        assert moved is True
        query, params = run_call(0)
        assert "src.allocatedQuantity - src.soldQuantity >= $quantity" in query
        assert "dst.allocatedQuantity = dst.allocatedQuantity + $quantity" in query
        assert params["fromId"] == "promo-1"
        assert params["toId"] == "promo-2"

    def test_move_more_than_available_changes_nothing(self, queue_results):
        session = queue_results([{"moved": 0}])

        assert PromotionalCategoryRepository(session).move_quantity("prod-1", "promo-1", "promo-2", 50) is False

    @pytest.mark.parametrize("quantity,target", [(0, "promo-2"), (3, "promo-1")])
    def test_invalid_moves_are_refused(self, mock_session, quantity, target):
        with pytest.raises(ValidationError):
            PromotionalCategoryRepository(mock_session).move_quantity("prod-1", "promo-1", target, quantity)

        mock_session.run.assert_not_called()
