"""
API tests for the promotional category endpoints

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import patch

from factorybay.domain.product import ProductWithVariants
from factorybay.domain.promotion import PromotionalCategory, PromotionalCategoryItem

SUMMER = PromotionalCategory(id="promo-1", name="Summer Sale", slug="summer-sale", display_order=0)


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_list_active_categories(mock_repo, client):
    mock_repo.return_value.get_all_categories.return_value = [SUMMER]

    response = client.get("/api/v1/promotional-categories?activeOnly=true")

    assert response.status_code == 200
    assert response.json()["data"][0]["slug"] == "summer-sale"
    mock_repo.return_value.get_all_categories.assert_called_once_with(active_only=True)


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_missing_category_is_404(mock_repo, client):
    mock_repo.return_value.get_category_by_id.return_value = None

    response = client.get("/api/v1/promotional-categories/ghost")

    assert response.status_code == 404
    assert response.json()["detail"] == "Promotional category not found"


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_storefront_products(mock_repo, client, sample_product_data):
    mock_repo.return_value.get_products_by_category.return_value = [
        ProductWithVariants.model_validate(sample_product_data)
    ]

    response = client.get("/api/v1/promotional-categories/promo-1/products?limit=5")

    assert response.json()["count"] == 1
    mock_repo.return_value.get_products_by_category.assert_called_once_with("promo-1", limit=5)


def test_create_requires_admin(customer_client):
    response = customer_client.post("/api/v1/promotional-categories", json={"name": "Summer Sale"})

    assert response.status_code == 403


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_admin_creates_category(mock_repo, admin_client):
    mock_repo.return_value.create_category.return_value = SUMMER

    response = admin_client.post(
        "/api/v1/promotional-categories",
        json={"name": "Summer Sale", "displayOrder": 2, "startDate": "2026-12-01"},
    )

    assert response.status_code == 201
    assert response.json()["message"] == "Promotional category created successfully"
    body = mock_repo.return_value.create_category.call_args[0][0]
    assert body.display_order == 2
    assert body.start_date == "2026-12-01"


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_delete_missing_category(mock_repo, admin_client):
    mock_repo.return_value.delete_category.return_value = False

    assert admin_client.delete("/api/v1/promotional-categories/ghost").status_code == 404


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_add_item(mock_repo, admin_client):
    mock_repo.return_value.add_product.return_value = PromotionalCategoryItem(
        id="item-1", category_id="promo-1", product_id="prod-1", allocated_quantity=10
    )

    response = admin_client.post(
        "/api/v1/promotional-categories/promo-1/items",
        json={"productId": "prod-1", "allocatedQuantity": 10},
    )

    assert response.status_code == 201
    assert response.json()["data"]["allocatedQuantity"] == 10
    mock_repo.return_value.add_product.assert_called_once_with("promo-1", "prod-1", 10)


def test_negative_allocation_is_rejected(admin_client):
    response = admin_client.post(
        "/api/v1/promotional-categories/promo-1/items",
        json={"productId": "prod-1", "allocatedQuantity": -1},
    )

    assert response.status_code == 422


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_update_quantity_of_missing_item(mock_repo, admin_client):
    mock_repo.return_value.update_item_quantity.return_value = None

    response = admin_client.patch(
        "/api/v1/promotional-categories/promo-1/items/prod-9",
        json={"allocatedQuantity": 3},
    )

    assert response.status_code == 404
    assert response.json()["detail"] == "Product not found in category"


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_move_with_insufficient_quantity(mock_repo, admin_client):
    mock_repo.return_value.move_quantity.return_value = False

    response = admin_client.post(
        "/api/v1/promotional-categories/move",
        json={"productId": "prod-1", "fromCategoryId": "promo-1", "toCategoryId": "promo-2", "quantity": 50},
    )

    assert response.status_code == 400
    assert "sufficient quantity" in response.json()["detail"]
    mock_repo.return_value.move_quantity.assert_called_once_with("prod-1", "promo-1", "promo-2", 50)


@patch("factorybay.api.promotions.PromotionalCategoryRepository")
def test_promotions_of_a_product(mock_repo, admin_client):
    mock_repo.return_value.get_product_categories.return_value = []

    response = admin_client.get("/api/v1/promotional-categories/by-product/prod-1")

    assert response.status_code == 200
    mock_repo.return_value.get_product_categories.assert_called_once_with("prod-1")
