"""
Unit tests for CustomFilterRepository

These tests validate the hierarchy logic without requiring a Neo4j instance.

Author: TM3
Date: 2025-10-17
"""
import re

import pytest

from factorybay.domain.hierarchy import CustomFilter
from factorybay.repositories.custom_filter_repository import (
    CustomFilterRepository,
    build_filter_tree,
    generate_filter_id,
)


def make_filter(filter_id, name, parent_ids=None, level=0):
    parent_ids = parent_ids or []
    return CustomFilter(
        id=filter_id,
        name=name,
        slug=name.lower(),
        level=level,
        parent_ids=parent_ids,
        parent_id=parent_ids[0] if parent_ids else None,
    )


class TestFilterIds:

    def test_generated_id_format(self):
        assert re.fullmatch(r"filter-\d{13}-[a-z0-9]{7}", generate_filter_id())

    def test_generated_ids_are_unique(self):
        assert len({generate_filter_id() for _ in range(50)}) == 50


class TestBuildFilterTree:
    """Tree reconstruction from the flat filter list"""

    def test_multi_parent_filter_appears_under_each_parent(self):
        filters = [
            make_filter("men", "Men"),
            make_filter("collections", "Collections"),
            make_filter("jackets", "Jackets", ["men"], level=1),
            make_filter("premium", "Premium Items", ["collections"], level=1),
            make_filter("leather", "Leather Jackets", ["jackets", "premium"], level=2),
        ]

        roots = build_filter_tree(filters)

        assert [r.id for r in roots] == ["men", "collections"]
        jackets = roots[0].children[0]
        premium = roots[1].children[0]
        assert [c.id for c in jackets.children] == ["leather"]
        assert [c.id for c in premium.children] == ["leather"]

    def test_filter_with_missing_parents_becomes_root(self):
        filters = [
            make_filter("tops", "Tops", ["deleted-parent"], level=1),
            make_filter("men", "Men"),
        ]

        roots = build_filter_tree(filters)

        assert {r.id for r in roots} == {"tops", "men"}

    def test_duplicate_rows_are_ignored(self):
        filters = [make_filter("men", "Men"), make_filter("men", "Men")]
        assert len(build_filter_tree(filters)) == 1

    def test_empty_input(self):
        assert build_filter_tree([]) == []

    def test_cycle_is_cut_instead_of_recursing(self):
        filters = [
            make_filter("r", "Root"),
            make_filter("a", "A", ["r", "b"], level=1),
            make_filter("b", "B", ["a"], level=2),
        ]

        roots = build_filter_tree(filters)

        assert [r.id for r in roots] == ["r"]
        a = roots[0].children[0]
        assert [c.id for c in a.children] == ["b"]
        assert a.children[0].children == []
        # Serializable, no circular reference
        assert roots[0].to_dict()["children"][0]["children"][0]["id"] == "b"

    def test_filters_only_in_a_cycle_become_roots(self):
        filters = [
            make_filter("a", "A", ["b"], level=1),
            make_filter("b", "B", ["a"], level=1),
        ]

        roots = build_filter_tree(filters)

        assert [r.id for r in roots] == ["a"]
        assert [c.id for c in roots[0].children] == ["b"]
        assert roots[0].children[0].children == []


class TestCreateFilter:

    def test_create_root_filter_has_level_zero(self, queue_results, run_call, filter_node):
        # Arrange: only the CREATE query runs
        session = queue_results([{"filter": filter_node("filter-1", "Men")}])

        # Act
        created = CustomFilterRepository(session).create_filter("Men")

        # Assert
        assert created.level == 0
        assert created.parent_ids == []
        _, params = run_call(0)
        assert params["level"] == 0
        assert params["slug"] == "men"
        assert session.run.call_count == 1

    def test_create_child_filter_uses_max_parent_level(self, queue_results, run_call, filter_node):
        session = queue_results(
            [{"maxLevel": 1}],
            [{"filter": filter_node("filter-9", "Leather Jackets", level=2)}],
            [{"parentIds": ["premium", "jackets"]}],
        )

        created = CustomFilterRepository(session).create_filter(
            "Leather Jackets",
            parent_ids=["premium", "jackets", "premium"],
        )

        _, lookup_params = run_call(0)
        assert lookup_params["parentIds"] == ["premium", "jackets"]
        _, create_params = run_call(1)
        assert create_params["level"] == 2
        edge_query, edge_params = run_call(2)
        assert "CHILD_OF" in edge_query
        assert edge_params["parentIds"] == ["premium", "jackets"]
        assert created.parent_ids == ["jackets", "premium"]
        assert created.parent_id == "jackets"

    def test_unknown_parent_is_not_reported(self, queue_results, filter_node):
        session = queue_results(
            [{"maxLevel": None}],
            [{"filter": filter_node("filter-3", "Orphan")}],
            [{"parentIds": []}],
        )

        created = CustomFilterRepository(session).create_filter("Orphan", parent_ids=["ghost"])

        assert created.level == 0
        assert created.parent_ids == []
        assert created.parent_id is None

    def test_only_existing_parents_are_reported(self, queue_results, filter_node):
        session = queue_results(
            [{"maxLevel": 0}],
            [{"filter": filter_node("filter-4", "Jackets", level=1)}],
            [{"parentIds": ["men"]}],
        )

        created = CustomFilterRepository(session).create_filter("Jackets", parent_ids=["men", "ghost"])

        assert created.parent_ids == ["men"]
        assert created.parent_id == "men"


class TestGetFilters:

    def test_get_filter_by_id_sorts_parent_ids(self, queue_results, filter_node):
        session = queue_results([
            {"filter": filter_node("leather", "Leather Jackets", level=2), "parentIds": ["premium", "jackets"]}
        ])

        f = CustomFilterRepository(session).get_filter_by_id("leather")

        assert f.parent_ids == ["jackets", "premium"]
        assert f.parent_id == "jackets"

    def test_get_filter_by_id_returns_none_when_missing(self, mock_session):
        assert CustomFilterRepository(mock_session).get_filter_by_id("nope") is None

    def test_get_all_filters_returns_one_row_per_filter(self, queue_results, filter_node):
        session = queue_results([
            {"filter": filter_node("men", "Men"), "parentIds": []},
            {"filter": filter_node("leather", "Leather Jackets", level=2), "parentIds": ["premium", "jackets"]},
        ])

        filters = CustomFilterRepository(session).get_all_filters()

        assert [f.id for f in filters] == ["men", "leather"]
        assert filters[0].parent_id is None
        assert filters[1].parent_ids == ["jackets", "premium"]

    def test_product_counts_include_zero_for_unmatched_filters(self, queue_results):
        session = queue_results([{"filterId": "men", "productCount": 4}])

        counts = CustomFilterRepository(session).get_product_counts_for_filters(["men", "women"])

        assert counts == {"men": 4, "women": 0}

    def test_product_counts_for_no_filters_skips_query(self, mock_session):
        assert CustomFilterRepository(mock_session).get_product_counts_for_filters([]) == {}
        mock_session.run.assert_not_called()

    def test_breadcrumb_follows_returned_trail(self, queue_results, filter_node):
        session = queue_results([{
            "trail": [
                filter_node("men", "Men"),
                filter_node("outerwear", "Outerwear", level=1),
                filter_node("jackets", "Jackets", level=2),
            ]
        }])

        trail = CustomFilterRepository(session).get_filter_breadcrumb("jackets")

        assert [f.name for f in trail] == ["Men", "Outerwear", "Jackets"]

    def test_breadcrumb_of_missing_filter_is_empty(self, mock_session):
        assert CustomFilterRepository(mock_session).get_filter_breadcrumb("nope") == []


class TestValidateNoCycles:
    """Cycle prevention when assigning parents"""

    def test_no_parents_is_always_valid(self, mock_session):
        result = CustomFilterRepository(mock_session).validate_no_cycles("a", [])

        assert result.valid
        mock_session.run.assert_not_called()

    def test_missing_child_is_invalid(self, queue_results):
        session = queue_results([])

        result = CustomFilterRepository(session).validate_no_cycles("ghost", ["men"])

        assert not result.valid
        assert result.error == "Child filter not found"

    def test_self_parent_is_rejected_before_path_query(self, queue_results):
        session = queue_results([{"id": "jackets", "name": "Jackets"}])

        result = CustomFilterRepository(session).validate_no_cycles("jackets", ["jackets"])

        assert not result.valid
        assert result.error == 'Cannot add "Jackets" as its own parent'
        assert result.conflicting_parent.id == "jackets"
        assert session.run.call_count == 1

    def test_missing_parent_is_invalid(self, queue_results):
        session = queue_results([{"id": "jackets", "name": "Jackets"}], [])

        result = CustomFilterRepository(session).validate_no_cycles("jackets", ["ghost"])

        assert not result.valid
        assert result.error == "Parent filter with id ghost not found"
        assert result.conflicting_parent is None

    def test_descendant_as_parent_is_rejected(self, queue_results):
        session = queue_results(
            [{"id": "men", "name": "Men"}],
            [{"id": "jackets", "name": "Jackets"}],
            [{"createsCycle": True}],
        )

        result = CustomFilterRepository(session).validate_no_cycles("men", ["jackets"])

        assert not result.valid
        assert result.error == (
            'Cannot add "Jackets" as parent of "Men" because "Men" is already an ancestor of "Jackets"'
        )
        assert result.conflicting_parent.to_dict() == {"id": "jackets", "name": "Jackets"}

    def test_unrelated_parents_are_valid(self, queue_results):
        session = queue_results(
            [{"id": "leather", "name": "Leather Jackets"}],
            [{"id": "jackets", "name": "Jackets"}],
            [{"createsCycle": False}],
            [{"id": "premium", "name": "Premium Items"}],
            [{"createsCycle": False}],
        )

        result = CustomFilterRepository(session).validate_no_cycles("leather", ["jackets", "premium"])

        assert result.valid
        assert session.run.call_count == 5


class TestUpdateFilterParents:

    def test_cycle_is_refused_without_writes(self, queue_results):
        session = queue_results(
            [{"id": "men", "name": "Men"}],
            [{"id": "jackets", "name": "Jackets"}],
            [{"createsCycle": True}],
        )

        result = CustomFilterRepository(session).update_filter_parents("men", ["jackets"])

        assert not result.success
        assert result.data == {"conflictingParent": {"id": "jackets", "name": "Jackets"}}
        # Only the three validation reads ran
        assert session.run.call_count == 3

    def test_parents_replaced_and_level_recomputed(self, queue_results, run_call):
        session = queue_results(
            [{"id": "leather", "name": "Leather Jackets"}],
            [{"id": "jackets", "name": "Jackets"}],
            [{"createsCycle": False}],
            [],                  # delete old edges
            [],                  # create new edges
            [{"level": 3}],      # recompute own level
            [],                  # no children
        )

        result = CustomFilterRepository(session).update_filter_parents("leather", ["jackets", "jackets"])

        assert result.success
        assert result.data == {"level": 3}
        delete_query, _ = run_call(3)
        assert "DELETE r" in delete_query
        _, edge_params = run_call(4)
        assert edge_params["parentIds"] == ["jackets"]

    def test_clearing_parents_of_missing_filter(self, queue_results):
        session = queue_results([])

        result = CustomFilterRepository(session).update_filter_parents("ghost", [])

        assert not result.success
        assert result.error == "Filter not found"

    def test_descendant_levels_follow_changed_node(self, queue_results, run_call):
        session = queue_results(
            [{"filter": {"id": "tops", "name": "Tops", "slug": "tops", "level": 1}, "parentIds": ["men"]}],
            [],                          # delete old edges
            [{"level": 0}],              # now a root
            [{"id": "shirts"}],          # children of tops
            [],                          # update shirts
            [],                          # children of shirts
        )

        result = CustomFilterRepository(session).update_filter_parents("tops", [])

        assert result.success
        assert result.data == {"level": 0}
        update_query, update_params = run_call(4)
        assert "maxParentLevel + 1" in update_query
        assert update_params["id"] == "shirts"


class TestDeleteFilter:

    def test_missing_filter(self, queue_results):
        session = queue_results([])
        result = CustomFilterRepository(session).delete_filter("ghost")
        assert result.error == "Filter not found"

    @pytest.mark.parametrize("child_count,product_count,error", [
        (2, 0, "Cannot delete filter with child filters"),
        (0, 3, "Cannot delete filter with tagged products"),
    ])
    def test_delete_is_blocked(self, queue_results, child_count, product_count, error):
        session = queue_results([{"childCount": child_count, "productCount": product_count}])

        result = CustomFilterRepository(session).delete_filter("jackets")

        assert not result.success
        assert result.error == error
        assert session.run.call_count == 1

    def test_delete_leaf_filter(self, queue_results, run_call):
        session = queue_results([{"childCount": 0, "productCount": 0}], [])

        result = CustomFilterRepository(session).delete_filter("belts")

        assert result.success
        delete_query, params = run_call(1)
        assert "DETACH DELETE" in delete_query
        assert params == {"id": "belts"}


class TestProductTagging:

    def test_tagging_replaces_existing_edges(self, queue_results, run_call):
        session = queue_results([], [])

        CustomFilterRepository(session).tag_product_with_filters("prod-1", ["men", "shirts"])

        delete_query, _ = run_call(0)
        assert "DELETE r" in delete_query
        _, params = run_call(1)
        assert params == {"productId": "prod-1", "filterIds": ["men", "shirts"]}

    def test_tagging_with_no_filters_only_clears(self, queue_results):
        session = queue_results([])

        CustomFilterRepository(session).tag_product_with_filters("prod-1", [])

        assert session.run.call_count == 1

    def test_full_products_drop_null_variants(self, queue_results, sample_product_data, sample_variant_data):
        session = queue_results([
            {"product": sample_product_data, "variants": [sample_variant_data, None]},
        ])

        products = CustomFilterRepository(session).get_full_products_by_filters(["men"], limit=10)

        assert len(products) == 1
        assert [v.id for v in products[0].variants] == ["var-1"]


class TestFilterTreeFromGraph:

    def test_tree_is_built_from_all_filters(self, queue_results, filter_node):
        session = queue_results([
            {"filter": filter_node("men", "Men"), "parentIds": []},
            {"filter": filter_node("tops", "Tops", level=1), "parentIds": ["men"]},
        ])

        roots = CustomFilterRepository(session).get_all_filters_tree()

        assert [r.id for r in roots] == ["men"]
        assert [c.id for c in roots[0].children] == ["tops"]


class TestFeaturedFilters:

    def test_featuring_keeps_parent_ids(self, queue_results, run_call, filter_node):
        session = queue_results([
            {"filter": filter_node("leather", "Leather Jackets", level=2, isFeatured=True),
             "parentIds": ["premium", "jackets"]},
        ])

        f = CustomFilterRepository(session).update_filter_featured_status("leather", True)

        assert f.is_featured
        assert f.parent_ids == ["jackets", "premium"]
        query, _ = run_call(0)
        assert "collect(p.id) AS parentIds" in query

    def test_featured_list_has_parent_ids(self, queue_results, filter_node):
        session = queue_results([
            {"filter": filter_node("tops", "Tops", level=1, isFeatured=True), "parentIds": ["men"]},
        ])

        featured = CustomFilterRepository(session).get_featured_filters()

        assert featured[0].parent_id == "men"

    def test_product_filters_have_parent_ids(self, queue_results, filter_node):
        session = queue_results([
            {"filter": filter_node("shirts", "Shirts", level=2), "parentIds": ["tops"]},
        ])

        filters = CustomFilterRepository(session).get_product_filters("prod-1")

        assert filters[0].parent_ids == ["tops"]
