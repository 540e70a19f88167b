"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.

Author: TM3
Date: 2025-10-17
"""
import pytest
from neo4j.exceptions import ConstraintError

from factorybay.core.exceptions import ConflictError, NotFoundError
from factorybay.domain.product import ProductCreate, ProductFilters, ProductUpdate, VariantCreate
from factorybay.repositories.product_repository import (
    ProductRepository,
    _build_where,
    map_product_with_variants,
)


class TestBuildWhere:
    """Catalog filter translation"""

    def test_no_filters(self):
        assert _build_where(None) == ("", {})
        assert _build_where(ProductFilters()) == ("", {})

    def test_all_filters_combined(self):
        where, params = _build_where(ProductFilters(
            category="SHIRT",
            brand="Hugo Boss",
            gender="MEN",
            min_price=10,
            max_price=0,
            search="oxford",
        ))

        assert where.startswith("WHERE ")
        assert where.count(" AND ") == 5
        assert params == {
            "category": "SHIRT",
            "brand": "Hugo Boss",
            "gender": "MEN",
            "minPrice": 10,
            "maxPrice": 0,
            "search": "oxford",
        }

    def test_search_is_case_insensitive_on_name_and_brand(self):
        where, _ = _build_where(ProductFilters(search="Boss"))
        assert "toLower(p.name) CONTAINS toLower($search)" in where
        assert "toLower(p.brand) CONTAINS toLower($search)" in where


class TestProductMapping:

    def test_null_variants_are_dropped(self, sample_product_data, sample_variant_data):
        product = map_product_with_variants({"product": sample_product_data, "variants": [None, sample_variant_data]})

        assert product.id == "prod-1"
        assert product.stock_price == 49.99
        assert len(product.variants) == 1
        assert product.total_stock == 5

    def test_discount_percentage(self, sample_product_data):
        product = map_product_with_variants({"product": sample_product_data, "variants": []})
        assert product.discount_percentage == 44

    def test_no_discount_when_stock_price_is_higher(self, sample_product_data):
        data = {**sample_product_data, "stockPrice": 100.0, "retailPrice": 90.0}
        assert map_product_with_variants({"product": data, "variants": []}).discount_percentage == 0

    def test_api_output_is_camel_case(self, sample_product_data):
        output = map_product_with_variants({"product": sample_product_data, "variants": []}).to_dict()
        assert output["stockPrice"] == 49.99
        assert output["retailPrice"] == 89.99
        assert "stock_price" not in output


class TestProductRepository:

    def test_get_product_by_id_returns_none_when_not_found(self, mock_session):
        assert ProductRepository(mock_session).get_product_by_id("nope") is None

    def test_get_all_products_passes_filters_and_limit(self, queue_results, run_call, sample_product_data):
        session = queue_results([{"product": sample_product_data, "variants": []}])

        products = ProductRepository(session).get_all_products(ProductFilters(brand="Hugo Boss"), limit=5)

        assert len(products) == 1
        query, params = run_call(0)
        assert "p.brand = $brand" in query
        assert "ORDER BY p.createdAt DESC" in query
        assert params == {"limit": 5, "brand": "Hugo Boss"}

    def test_get_product_count(self, queue_results):
        session = queue_results([{"total": 12}])
        assert ProductRepository(session).get_product_count() == 12

    def test_create_product_with_variants(self, queue_results, run_call, sample_product_data, sample_variant_data):
        session = queue_results([], [], [{"product": sample_product_data, "variants": [sample_variant_data]}])
        data = ProductCreate(
            name="Classic Oxford Shirt",
            brand="Hugo Boss",
            category="SHIRT",
            gender="MEN",
            stock_price=49.99,
            retail_price=89.99,
            sku="HB-OX-001",
            variants=[VariantCreate(size="M", color="White", stock_quantity=5)],
        )

        product = ProductRepository(session).create_product(data)

        _, props = run_call(0)
        assert props["props"]["stockPrice"] == 49.99
        assert "variants" not in props["props"]
        _, variant_params = run_call(1)
        assert variant_params["variants"][0]["productId"] == props["props"]["id"]
        assert variant_params["variants"][0]["stockQuantity"] == 5
        assert product.variants[0].size == "M"

    def test_create_product_duplicate_sku(self, mock_session):
        mock_session.run.side_effect = ConstraintError("already exists")
        data = ProductCreate(
            name="Shirt", brand="B", category="SHIRT", gender="MEN",
            stock_price=1, retail_price=2, sku="DUP-1",
        )

        with pytest.raises(ConflictError, match="DUP-1"):
            ProductRepository(mock_session).create_product(data)

    def test_update_missing_product(self, queue_results):
        session = queue_results([])
        with pytest.raises(NotFoundError):
            ProductRepository(session).update_product("ghost", ProductUpdate(name="New"))

    def test_update_only_sends_given_fields(self, queue_results, run_call, sample_product_data):
        session = queue_results([{"id": "prod-1"}], [{"product": sample_product_data, "variants": []}])

        ProductRepository(session).update_product("prod-1", ProductUpdate(stock_price=39.99))

        _, params = run_call(0)
        assert set(params["updates"]) == {"stockPrice", "updatedAt"}

    def test_add_variant_to_missing_product(self, queue_results):
        session = queue_results([])
        with pytest.raises(NotFoundError, match="Product not found"):
            ProductRepository(session).add_variant("ghost", VariantCreate(size="S", color="Red"))

    def test_delete_product_reports_existence(self, queue_results):
        session = queue_results([{"deletedId": "prod-1"}], [])
        repo = ProductRepository(session)

        assert repo.delete_product("prod-1") is True
        assert repo.delete_product("prod-1") is False

    def test_variant_with_product(self, queue_results, sample_product_data, sample_variant_data):
        session = queue_results([{"variant": sample_variant_data, "product": sample_product_data}])

        variant = ProductRepository(session).get_variant_with_product("var-1")

        assert variant.color == "White"
        assert variant.product.name == "Classic Oxford Shirt"

    def test_search_products_matches_name_and_brand(self, queue_results, run_call):
        session = queue_results([])

        ProductRepository(session).search_products("oxford", limit=10)

        query, params = run_call(0)
        assert "toLower(p.brand) CONTAINS toLower($search)" in query
        assert params == {"limit": 10, "search": "oxford"}

    def test_products_by_category(self, queue_results, run_call):
        session = queue_results([])

        ProductRepository(session).get_products_by_category("SHIRT")

        _, params = run_call(0)
        assert params == {"limit": 50, "category": "SHIRT"}
