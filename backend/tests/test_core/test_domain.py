"""
Unit tests for shared domain helpers

Author: TM3
Date: 2025-10-17
"""
import pytest

from factorybay.domain.base import slugify
from factorybay.domain.hierarchy import CustomFilter, HierarchyIssue, HierarchyReport
from factorybay.domain.user import UserPreference


class TestSlugify:

    @pytest.mark.parametrize("name,slug", [
        ("Leather Jackets", "leather-jackets"),
        ("Men's Jackets & Coats", "men-s-jackets-coats"),
        ("  T-Shirts  ", "t-shirts"),
        ("50% Off!", "50-off"),
        ("---", ""),
    ])
    def test_slugify(self, name, slug):
        assert slugify(name) == slug


class TestGraphModel:

    def test_accepts_camel_and_snake_case(self):
        from_graph = CustomFilter.model_validate({"id": "f", "name": "Men", "slug": "men", "isFeatured": True})
        from_code = CustomFilter(id="f", name="Men", slug="men", is_featured=True)

        assert from_graph == from_code
        assert from_code.to_dict()["isFeatured"] is True

    def test_report_splits_issues(self):
        report = HierarchyReport(valid=False, issues=[
            HierarchyIssue(type="error", category="cycle", message="a"),
            HierarchyIssue(type="warning", category="orphaned-product", message="b"),
        ])

        assert [i.message for i in report.errors] == ["a"]
        assert [i.message for i in report.warnings] == ["b"]
        assert report.to_dict()["checksRun"] == 0

    def test_price_range_stored_as_json_string(self):
        prefs = UserPreference.model_validate({"priceRange": '{"min": 10, "max": 80}'})
        assert prefs.price_range.max == 80
