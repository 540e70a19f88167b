"""
Unit tests for FilterMaintenanceService

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import MagicMock, patch

import pytest
from neo4j.exceptions import Neo4jError

from factorybay.core.exceptions import ConflictError, ValidationError
from factorybay.domain.hierarchy import CustomFilter, HierarchyIssue
from factorybay.domain.product import Product
from factorybay.services.filter_maintenance_service import (
    FilterMaintenanceService,
    HierarchyConfig,
    determine_filters_for_product,
    load_hierarchy_config,
)


@pytest.fixture
def config():
    return HierarchyConfig.model_validate({
        "filters": [
            {"name": "Men", "level": 0},
            {"name": "Tops", "level": 1, "parents": ["Men"]},
            {"name": "Premium Items", "level": 1, "parents": ["Men"]},
            {"name": "Shirts", "level": 2, "parents": ["Tops"]},
        ],
        "premiumBrands": ["Hugo Boss"],
        "categoryMappings": {"SHIRT": ["Tops", "Shirts"]},
        "genderMappings": {"MEN": "Men"},
        "productNamePatterns": {"oxford": ["Shirts"], "linen": ["Summer Essentials"]},
    })


@pytest.fixture
def filter_map():
    return {"Men": "f-men", "Tops": "f-tops", "Shirts": "f-shirts", "Premium Items": "f-premium"}


@pytest.fixture
def service(mock_session):
    svc = FilterMaintenanceService(mock_session)
    svc.filters = MagicMock()
    return svc


class TestDetermineFilters:

    def test_all_rules_applied_once(self, config, filter_map, sample_product_data):
        product = Product.model_validate(sample_product_data)

        assert determine_filters_for_product(product, config, filter_map) == [
            "f-men", "f-tops", "f-shirts", "f-premium",
        ]

    def test_unknown_filter_names_are_ignored(self, config, filter_map, sample_product_data):
        product = Product.model_validate({
            **sample_product_data,
            "name": "Linen Trousers",
            "description": None,
            "brand": "Zara",
            "category": "PANTS",
            "gender": "WOMEN",
        })

        assert determine_filters_for_product(product, config, filter_map) == []

    def test_patterns_match_description(self, config, filter_map, sample_product_data):
        product = Product.model_validate({
            **sample_product_data,
            "name": "Button Down",
            "description": "Soft OXFORD weave",
            "brand": "Zara",
            "category": "ACCESSORIES",
            "gender": "UNISEX",
        })

        assert determine_filters_for_product(product, config, filter_map) == ["f-shirts"]


class TestDefaultConfig:

    def test_default_hierarchy_is_consistent(self):
        config = load_hierarchy_config()

        FilterMaintenanceService._check_seed_parents(config)
        names = [f.name for f in config.filters]
        assert len(names) == len(set(names))
        assert {"Men", "Women", "Collections"} <= {f.name for f in config.filters if f.level == 0}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_hierarchy_config(str(tmp_path / "missing.json"))


class TestSeedFilters:

    def test_refuses_when_filters_exist(self, service, config):
        with patch.object(service, "count_filters", return_value=5):
            with pytest.raises(ConflictError, match="already contains 5 filters"):
                service.seed_filters(config)

        service.filters.create_filter.assert_not_called()

    def test_unknown_parent_is_rejected_before_writes(self, service):
        bad = HierarchyConfig.model_validate({"filters": [{"name": "Tops", "level": 1, "parents": ["Ghost"]}]})

        with pytest.raises(ValidationError, match='Unknown parent "Ghost"'):
            service.seed_filters(bad)

        service.filters.create_filter.assert_not_called()

    def test_parent_on_same_level_is_rejected(self, service):
        bad = HierarchyConfig.model_validate({
            "filters": [{"name": "A", "level": 1}, {"name": "B", "level": 1, "parents": ["A"]}],
        })

        with pytest.raises(ValidationError, match="lower level"):
            service.seed_filters(bad)

    def test_roots_created_first_with_resolved_parents(self, service, config):
        service.filters.create_filter.side_effect = lambda name, parent_ids, is_featured: CustomFilter(
            id=f"id-{name}", name=name, slug=name.lower()
        )

        with patch.object(service, "count_filters", return_value=0):
            created = service.seed_filters(config)

        calls = [(c.args[0], c.kwargs["parent_ids"]) for c in service.filters.create_filter.call_args_list]
        assert calls == [
            ("Men", []),
            ("Premium Items", ["id-Men"]),
            ("Tops", ["id-Men"]),
            ("Shirts", ["id-Tops"]),
        ]
        assert created["Shirts"] == "id-Shirts"

    def test_clear_existing(self, service, config):
        service.filters.create_filter.side_effect = lambda name, parent_ids, is_featured: CustomFilter(
            id=name, name=name, slug=name
        )

        with patch.object(service, "count_filters", return_value=3), \
                patch.object(service, "clear_filters", return_value=3) as clear:
            service.seed_filters(config, clear_existing=True)

        clear.assert_called_once()


class TestRecalculateLevels:

    def test_converges(self, queue_results):
        session = queue_results([{"count": 3}], [{"count": 4}], [{"count": 1}], [{"count": 0}])

        result = FilterMaintenanceService(session).recalculate_levels()

        assert result == {"roots": 3, "iterations": 3, "updated": 5, "converged": True}

    def test_stops_at_max_iterations(self, queue_results):
        session = queue_results([{"count": 1}], [{"count": 2}], [{"count": 2}])

        result = FilterMaintenanceService(session).recalculate_levels(max_iterations=2)

        assert result["converged"] is False
        assert result["iterations"] == 2

    def test_level_distribution(self, queue_results):
        session = queue_results([{"level": 0, "count": 3}, {"level": 1, "count": 8}])
        assert FilterMaintenanceService(session).get_level_distribution() == {0: 3, 1: 8}


class TestValidateHierarchy:

    def test_warnings_do_not_invalidate(self, service):
        warning = HierarchyIssue(type="warning", category="orphaned-product", message="inactive")
        with patch.object(service, "check_for_cycles", return_value=[]), \
                patch.object(service, "check_level_consistency", return_value=[]), \
                patch.object(service, "check_orphaned_filters", return_value=[]), \
                patch.object(service, "check_duplicate_names", return_value=[]), \
                patch.object(service, "check_orphaned_products", return_value=[warning]), \
                patch.object(service, "count_filters", return_value=12):
            report = service.validate_hierarchy()

        assert report.valid
        assert report.checks_run == 5
        assert report.total_filters == 12
        assert report.warnings == [warning]

    def test_level_errors(self, queue_results):
        session = queue_results(
            [{"childId": "c", "childName": "Shirts", "childLevel": 1,
              "parentId": "p", "parentName": "Tops", "parentLevel": 1}],
            [{"filterId": "c", "filterName": "Shirts", "actualLevel": 1, "expectedLevel": 2}],
        )

        issues = FilterMaintenanceService(session).check_level_consistency()

        assert [i.message for i in issues] == [
            'Level inconsistency: "Shirts" (level 1) has parent "Tops" (level 1)',
            'Incorrect level: "Shirts" has level 1, expected 2',
        ]
        assert all(i.type == "error" for i in issues)

    def test_cycle_query_failure_is_not_fatal(self, mock_session):
        mock_session.run.side_effect = Neo4jError("boom")

        assert FilterMaintenanceService(mock_session).check_for_cycles() == []


class TestAssignProducts:

    def test_assignment_statistics(self, queue_results, config, sample_product_data):
        session = queue_results([{
            "product": sample_product_data,
        }, {
            "product": {**sample_product_data, "id": "prod-2", "name": "Scarf", "description": None,
                        "brand": "Zara", "category": "ACCESSORIES", "gender": "UNISEX"},
        }])
        service = FilterMaintenanceService(session)
        service.filters = MagicMock()
        service.filters.get_all_filters.return_value = [
            CustomFilter(id="f-men", name="Men", slug="men"),
            CustomFilter(id="f-shirts", name="Shirts", slug="shirts"),
        ]

        stats = service.assign_products(config)

        assert stats.total_products == 2
        assert stats.assigned_products == 1
        assert stats.unassigned_products == 1
        assert stats.total_assignments == 2
        assert stats.assignments_by_filter == {"Men": 1, "Shirts": 1}
        service.filters.tag_product_with_filters.assert_called_once_with("prod-1", ["f-men", "f-shirts"])
