"""
Custom Filter Repository - Data Access Layer for the filter hierarchy

Custom filters are facet tags arranged in a multi-parent DAG:

    (child:CustomFilter)-[:CHILD_OF]->(parent:CustomFilter)
    (p:Product)-[:TAGGED_WITH]->(f:CustomFilter)

level is 0 for a root and 1 + max(parent levels) otherwise. Every write that
changes parent edges recomputes levels top-down from the changed node.
Traversals and path checks run in Cypher; this class only orchestrates them.

Author: TM3
Date: 2025-10-17
"""
import logging
import secrets
import string
from typing import Dict, Iterable, List, Optional, Set

from neo4j import Session

from factorybay.core.database import execute, fetch_all, fetch_one, now_millis
from factorybay.domain.base import OperationResult, slugify
from factorybay.domain.hierarchy import (
    ConflictingParent,
    CustomFilter,
    CustomFilterWithChildren,
    CycleValidation,
)
from factorybay.domain.product import ProductWithVariants
from factorybay.repositories.product_repository import map_product_with_variants

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_filter_id() -> str:
    """filter-<epoch ms>-<7 random base36 chars>"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(7))
    return f"filter-{now_millis()}-{suffix}"


def build_filter_tree(filters: Iterable[CustomFilter]) -> List[CustomFilterWithChildren]:
    """
    Rebuild the hierarchy from a flat list of filters.

    A filter with several parents is attached under each of them. Filters
    without parents, or whose parents are all absent from the list, are
    returned as roots. Input order is preserved among siblings.

    A child already on the path from its root is skipped, so a corrupted
    graph with a cycle still yields a finite tree. Filters reachable only
    through a cycle are added as extra roots.
    """
    by_id: Dict[str, CustomFilter] = {}
    for f in filters:
        by_id.setdefault(f.id, f)

    children: Dict[str, List[str]] = {filter_id: [] for filter_id in by_id}
    root_ids: List[str] = []
    for f in by_id.values():
        parent_ids = f.parent_ids or ([f.parent_id] if f.parent_id else [])
        present = [p for p in dict.fromkeys(parent_ids) if p in by_id]
        for parent_id in present:
            children[parent_id].append(f.id)
        if not present:
            root_ids.append(f.id)

    visited: Set[str] = set()

    def build(filter_id: str, path: Set[str]) -> CustomFilterWithChildren:
        visited.add(filter_id)
        node = CustomFilterWithChildren(**by_id[filter_id].model_dump())
        path = path | {filter_id}
        for child_id in children[filter_id]:
            if child_id in path:
                logger.warning(f"Cycle detected below filter {filter_id} at {child_id}")
                continue
            node.children.append(build(child_id, path))
        return node

    roots = [build(filter_id, set()) for filter_id in root_ids]
    for filter_id in by_id:
        if filter_id not in visited:
            roots.append(build(filter_id, set()))
    return roots


class CustomFilterRepository:
    """
    Repository for CustomFilter data access

    All Cypher for the filter hierarchy is centralized here.
    Returns CustomFilter domain models, not raw dictionaries.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _map_row_to_filter(row: dict) -> CustomFilter:
        """
        Map a {filter, parentIds?} row to a CustomFilter.

        parentIds comes from collect() so order is not guaranteed; sort for
        stable output.
        """
        data = dict(row["filter"])
        parent_ids = sorted(p for p in (row.get("parentIds") or []) if p)
        if parent_ids:
            data["parentIds"] = parent_ids
            data["parentId"] = parent_ids[0]
        elif row.get("parentId"):
            data["parentId"] = row["parentId"]
        return CustomFilter.model_validate(data)

    # =========================================================================
    # Create / read
    # =========================================================================

    def create_filter(
        self,
        name: str,
        parent_ids: Optional[List[str]] = None,
        is_featured: bool = False,
    ) -> CustomFilter:
        """
        Create a filter under zero or more parents

        A new node has no descendants, so no cycle check is needed.
        Unknown parent IDs are skipped by the edge query.

        Args:
            name: Display name; slug is derived from it
            parent_ids: IDs of the parent filters
            is_featured: Whether to show the filter prominently

        Returns:
            The created CustomFilter
        """
        parent_ids = list(dict.fromkeys(parent_ids or []))
        filter_id = generate_filter_id()

        level = 0
        if parent_ids:
            row = fetch_one(
                self.session,
                """
                MATCH (p:CustomFilter)
                WHERE p.id IN $parentIds
                RETURN max(p.level) AS maxLevel
                """,
                parentIds=parent_ids,
            )
            if row and row.get("maxLevel") is not None:
                level = row["maxLevel"] + 1

        row = fetch_one(
            self.session,
            """
            CREATE (f:CustomFilter {
                id: $id,
                name: $name,
                slug: $slug,
                level: $level,
                isActive: true,
                isFeatured: $isFeatured,
                createdAt: datetime().epochMillis,
                updatedAt: datetime().epochMillis
            })
            RETURN f {.*} AS filter
            """,
            id=filter_id,
            name=name,
            slug=slugify(name),
            level=level,
            isFeatured=is_featured,
        )

        linked: List[str] = []
        if parent_ids:
            edges = fetch_one(
                self.session,
                """
                MATCH (f:CustomFilter {id: $id})
                UNWIND $parentIds AS parentId
                MATCH (p:CustomFilter {id: parentId})
                CREATE (f)-[:CHILD_OF]->(p)
                RETURN collect(p.id) AS parentIds
                """,
                id=filter_id,
                parentIds=parent_ids,
            )
            linked = edges["parentIds"] if edges else []
            if len(linked) < len(parent_ids):
                logger.warning(f"Filter {filter_id}: skipped unknown parents {sorted(set(parent_ids) - set(linked))}")

        logger.info(f"Created filter {filter_id} ({name}) at level {level}")
        return self._map_row_to_filter({"filter": row["filter"], "parentIds": linked})

    def get_filter_by_id(self, filter_id: str) -> Optional[CustomFilter]:
        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter {id: $id})
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            RETURN f {.*} AS filter, collect(p.id) AS parentIds
            """,
            id=filter_id,
        )
        return self._map_row_to_filter(row) if row else None

    def get_root_filters(self) -> List[CustomFilter]:
        """Filters with no parent, by name"""
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            WHERE NOT (f)-[:CHILD_OF]->(:CustomFilter)
            RETURN f {.*} AS filter
            ORDER BY f.name
            """,
        )
        return [self._map_row_to_filter(row) for row in rows]

    def get_child_filters(self, parent_id: str) -> List[CustomFilter]:
        """Direct children of a filter, by name"""
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)-[:CHILD_OF]->(:CustomFilter {id: $parentId})
            RETURN f {.*} AS filter
            ORDER BY f.name
            """,
            parentId=parent_id,
        )
        return [self._map_row_to_filter({**row, "parentId": parent_id}) for row in rows]

    def get_filter_with_children(self, filter_id: str) -> Optional[CustomFilterWithChildren]:
        """The filter with its full descendant tree, or None if missing"""
        root = self.get_filter_by_id(filter_id)
        if root is None:
            return None
        return self._build_subtree(root, set())

    def _build_subtree(self, f: CustomFilter, path: Set[str]) -> CustomFilterWithChildren:
        node = CustomFilterWithChildren(**f.model_dump())
        path = path | {f.id}
        for child in self.get_child_filters(f.id):
            # A corrupted graph may contain a cycle; never follow it twice
            if child.id in path:
                logger.warning(f"Cycle detected below filter {f.id} at {child.id}")
                continue
            node.children.append(self._build_subtree(child, path))
        return node

    def get_all_filters(self) -> List[CustomFilter]:
        """Every filter once, ordered by level then name, with all parent IDs"""
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            WITH f, collect(p.id) AS parentIds
            RETURN f {.*} AS filter, parentIds
            ORDER BY f.level, f.name
            """,
        )
        return [self._map_row_to_filter(row) for row in rows]

    def get_all_filters_with_parents(self) -> List[CustomFilter]:
        return self.get_all_filters()

    def get_all_filters_tree(self) -> List[CustomFilterWithChildren]:
        return build_filter_tree(self.get_all_filters())

    # =========================================================================
    # Update / delete
    # =========================================================================

    def update_filter(
        self,
        filter_id: str,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[CustomFilter]:
        """Rename and/or toggle a filter. Returns None if it does not exist."""
        sets = ["f.updatedAt = datetime().epochMillis"]
        params = {"id": filter_id}
        if name is not None:
            sets += ["f.name = $name", "f.slug = $slug"]
            params.update(name=name, slug=slugify(name))
        if is_active is not None:
            sets.append("f.isActive = $isActive")
            params["isActive"] = is_active

        row = fetch_one(
            self.session,
            f"""
            MATCH (f:CustomFilter {{id: $id}})
            SET {", ".join(sets)}
            WITH f
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            RETURN f {{.*}} AS filter, collect(p.id) AS parentIds
            """,
            **params,
        )
        return self._map_row_to_filter(row) if row else None

    def update_filter_parents(self, filter_id: str, new_parent_ids: List[str]) -> OperationResult:
        """
        Replace a filter's parents

        Steps:
        1. Refuse if any new parent would create a cycle
        2. Drop all outgoing CHILD_OF edges, create the new ones
        3. Set level = max(new parent levels) + 1, or 0 with no parents
        4. Recompute levels of every descendant, top-down

        Nothing is written when validation fails.

        Returns:
            OperationResult; on cycle, data carries conflictingParent
        """
        new_parent_ids = list(dict.fromkeys(new_parent_ids))

        validation = self.validate_no_cycles(filter_id, new_parent_ids)
        if not validation.valid:
            logger.warning(f"Rejected parent update for {filter_id}: {validation.error}")
            data = None
            if validation.conflicting_parent:
                data = {"conflictingParent": validation.conflicting_parent.to_dict()}
            return OperationResult(success=False, error=validation.error, data=data)

        if not new_parent_ids and self.get_filter_by_id(filter_id) is None:
            return OperationResult(success=False, error="Filter not found")

        execute(
            self.session,
            """
            MATCH (f:CustomFilter {id: $id})-[r:CHILD_OF]->(:CustomFilter)
            DELETE r
            """,
            id=filter_id,
        )

        if new_parent_ids:
            execute(
                self.session,
                """
                MATCH (f:CustomFilter {id: $id})
                UNWIND $parentIds AS parentId
                MATCH (p:CustomFilter {id: parentId})
                CREATE (f)-[:CHILD_OF]->(p)
                """,
                id=filter_id,
                parentIds=new_parent_ids,
            )

        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter {id: $id})
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            WITH f, max(p.level) AS maxParentLevel
            SET f.level = CASE WHEN maxParentLevel IS NULL THEN 0 ELSE maxParentLevel + 1 END,
                f.updatedAt = datetime().epochMillis
            RETURN f.level AS level
            """,
            id=filter_id,
        )
        level = row["level"] if row else 0

        self._recalculate_descendant_levels(filter_id, set())

        logger.info(f"Updated parents of {filter_id} to {new_parent_ids} (level {level})")
        return OperationResult(success=True, data={"level": level})

    def _recalculate_descendant_levels(self, filter_id: str, path: Set[str]) -> None:
        """Recompute each child's level from all its parents, then recurse"""
        path = path | {filter_id}
        children = fetch_all(
            self.session,
            """
            MATCH (c:CustomFilter)-[:CHILD_OF]->(:CustomFilter {id: $id})
            RETURN c.id AS id
            """,
            id=filter_id,
        )
        for child in children:
            child_id = child["id"]
            if child_id in path:
                continue
            execute(
                self.session,
                """
                MATCH (c:CustomFilter {id: $id})-[:CHILD_OF]->(p:CustomFilter)
                WITH c, max(p.level) AS maxParentLevel
                SET c.level = maxParentLevel + 1,
                    c.updatedAt = datetime().epochMillis
                """,
                id=child_id,
            )
            self._recalculate_descendant_levels(child_id, path)

    def delete_filter(self, filter_id: str) -> OperationResult:
        """Delete a filter that has neither child filters nor tagged products"""
        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter {id: $id})
            OPTIONAL MATCH (child:CustomFilter)-[:CHILD_OF]->(f)
            WITH f, count(child) AS childCount
            OPTIONAL MATCH (p:Product)-[:TAGGED_WITH]->(f)
            RETURN childCount, count(p) AS productCount
            """,
            id=filter_id,
        )
        if not row:
            return OperationResult(success=False, error="Filter not found")
        if row["childCount"] > 0:
            return OperationResult(success=False, error="Cannot delete filter with child filters")
        if row["productCount"] > 0:
            return OperationResult(success=False, error="Cannot delete filter with tagged products")

        execute(self.session, "MATCH (f:CustomFilter {id: $id}) DETACH DELETE f", id=filter_id)
        logger.info(f"Deleted filter {filter_id}")
        return OperationResult(success=True)

    def update_filter_featured_status(self, filter_id: str, is_featured: bool) -> Optional[CustomFilter]:
        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter {id: $id})
            SET f.isFeatured = $isFeatured, f.updatedAt = datetime().epochMillis
            WITH f
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            RETURN f {.*} AS filter, collect(p.id) AS parentIds
            """,
            id=filter_id,
            isFeatured=is_featured,
        )
        return self._map_row_to_filter(row) if row else None

    def get_featured_filters(self) -> List[CustomFilter]:
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            WHERE f.isFeatured = true AND f.isActive = true
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            WITH f, collect(p.id) AS parentIds
            RETURN f {.*} AS filter, parentIds
            ORDER BY f.level, f.name
            """,
        )
        return [self._map_row_to_filter(row) for row in rows]

    # =========================================================================
    # Product tagging
    # =========================================================================

    def tag_product_with_filters(self, product_id: str, filter_ids: List[str]) -> None:
        """Replace every TAGGED_WITH edge of a product"""
        execute(
            self.session,
            """
            MATCH (:Product {id: $productId})-[r:TAGGED_WITH]->(:CustomFilter)
            DELETE r
            """,
            productId=product_id,
        )
        if filter_ids:
            execute(
                self.session,
                """
                MATCH (p:Product {id: $productId})
                UNWIND $filterIds AS filterId
                MATCH (f:CustomFilter {id: filterId})
                MERGE (p)-[:TAGGED_WITH]->(f)
                """,
                productId=product_id,
                filterIds=filter_ids,
            )

    def get_product_filters(self, product_id: str) -> List[CustomFilter]:
        rows = fetch_all(
            self.session,
            """
            MATCH (:Product {id: $productId})-[:TAGGED_WITH]->(f:CustomFilter)
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            WITH f, collect(p.id) AS parentIds
            RETURN f {.*} AS filter, parentIds
            ORDER BY f.level, f.name
            """,
            productId=product_id,
        )
        return [self._map_row_to_filter(row) for row in rows]

    def get_products_by_filter(self, filter_id: str, include_children: bool = True) -> List[str]:
        """Product IDs tagged with the filter, or with any descendant when include_children"""
        if include_children:
            query = """
                MATCH (:CustomFilter {id: $id})<-[:CHILD_OF*0..]-(:CustomFilter)<-[:TAGGED_WITH]-(p:Product)
                RETURN DISTINCT p.id AS productId
            """
        else:
            query = """
                MATCH (:CustomFilter {id: $id})<-[:TAGGED_WITH]-(p:Product)
                RETURN DISTINCT p.id AS productId
            """
        return [row["productId"] for row in fetch_all(self.session, query, id=filter_id)]

    def get_products_by_filters(self, filter_ids: List[str]) -> List[str]:
        """Product IDs tagged directly with any of the filters"""
        if not filter_ids:
            return []
        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)-[:TAGGED_WITH]->(f:CustomFilter)
            WHERE f.id IN $filterIds
            RETURN DISTINCT p.id AS productId
            """,
            filterIds=filter_ids,
        )
        return [row["productId"] for row in rows]

    def get_full_products_by_filters(self, filter_ids: List[str], limit: int = 50) -> List[ProductWithVariants]:
        """Products with variants matching any selected filter or its descendants, newest first"""
        if not filter_ids:
            return []
        rows = fetch_all(
            self.session,
            """
            MATCH (selected:CustomFilter)
            WHERE selected.id IN $filterIds
            MATCH (selected)<-[:CHILD_OF*0..]-(:CustomFilter)<-[:TAGGED_WITH]-(p:Product)
            WITH DISTINCT p
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY p.createdAt DESC
            LIMIT $limit
            """,
            filterIds=filter_ids,
            limit=limit,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_product_count_by_filter(self, filter_id: str, include_children: bool = True) -> int:
        if include_children:
            query = """
                MATCH (:CustomFilter {id: $id})<-[:CHILD_OF*0..]-(:CustomFilter)<-[:TAGGED_WITH]-(p:Product)
                RETURN count(DISTINCT p) AS productCount
            """
        else:
            query = """
                MATCH (:CustomFilter {id: $id})<-[:TAGGED_WITH]-(p:Product)
                RETURN count(DISTINCT p) AS productCount
            """
        row = fetch_one(self.session, query, id=filter_id)
        return row["productCount"] if row else 0

    def get_product_counts_for_filters(self, filter_ids: List[str]) -> Dict[str, int]:
        """
        Batch product counts (descendants included).

        Every requested ID is present in the result, 0 when nothing matches.
        """
        if not filter_ids:
            return {}
        rows = fetch_all(
            self.session,
            """
            UNWIND $filterIds AS filterId
            MATCH (:CustomFilter {id: filterId})<-[:CHILD_OF*0..]-(:CustomFilter)<-[:TAGGED_WITH]-(p:Product)
            RETURN filterId, count(DISTINCT p) AS productCount
            """,
            filterIds=filter_ids,
        )
        counts = {filter_id: 0 for filter_id in filter_ids}
        for row in rows:
            counts[row["filterId"]] = row["productCount"]
        return counts

    # =========================================================================
    # Navigation
    # =========================================================================

    def get_filter_breadcrumb(self, filter_id: str) -> List[CustomFilter]:
        """Filters from a root down to filter_id along the shortest path"""
        row = fetch_one(
            self.session,
            """
            MATCH path = (f:CustomFilter {id: $id})-[:CHILD_OF*0..]->(root:CustomFilter)
            WHERE NOT (root)-[:CHILD_OF]->(:CustomFilter)
            WITH path
            ORDER BY length(path) ASC
            LIMIT 1
            RETURN [n IN reverse(nodes(path)) | n {.*}] AS trail
            """,
            id=filter_id,
        )
        if not row or not row.get("trail"):
            return []
        return [CustomFilter.model_validate(node) for node in row["trail"]]

    def get_filters_breadcrumbs(self, filter_ids: List[str]) -> Dict[str, List[CustomFilter]]:
        return {filter_id: self.get_filter_breadcrumb(filter_id) for filter_id in filter_ids}

    def get_all_parent_filter_ids(self, filter_id: str) -> List[str]:
        rows = fetch_all(
            self.session,
            """
            MATCH (:CustomFilter {id: $id})-[:CHILD_OF]->(p:CustomFilter)
            RETURN p.id AS id
            """,
            id=filter_id,
        )
        return [row["id"] for row in rows]

    def get_all_child_filter_ids(self, filter_id: str) -> List[str]:
        """All descendants at any depth"""
        rows = fetch_all(
            self.session,
            """
            MATCH (c:CustomFilter)-[:CHILD_OF*1..]->(:CustomFilter {id: $id})
            RETURN DISTINCT c.id AS id
            """,
            id=filter_id,
        )
        return [row["id"] for row in rows]

    def get_all_ancestor_filter_ids(self, filter_id: str) -> List[str]:
        rows = fetch_all(
            self.session,
            """
            MATCH (:CustomFilter {id: $id})-[:CHILD_OF*1..]->(a:CustomFilter)
            RETURN DISTINCT a.id AS id
            """,
            id=filter_id,
        )
        return [row["id"] for row in rows]

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_no_cycles(self, child_id: str, parent_ids: List[str]) -> CycleValidation:
        """
        Check that making each of parent_ids a parent of child_id keeps the graph acyclic

        A parent is refused when it is the child itself or when the child is
        already one of its ancestors (a CHILD_OF path leads from the parent
        to the child). One path query per candidate parent.
        """
        if not parent_ids:
            return CycleValidation(valid=True)

        child = fetch_one(
            self.session,
            "MATCH (c:CustomFilter {id: $id}) RETURN c.id AS id, c.name AS name",
            id=child_id,
        )
        if not child:
            return CycleValidation(valid=False, error="Child filter not found")

        for parent_id in parent_ids:
            if parent_id == child_id:
                return CycleValidation(
                    valid=False,
                    error=f'Cannot add "{child["name"]}" as its own parent',
                    conflicting_parent=ConflictingParent(id=child["id"], name=child["name"]),
                )

            parent = fetch_one(
                self.session,
                "MATCH (p:CustomFilter {id: $id}) RETURN p.id AS id, p.name AS name",
                id=parent_id,
            )
            if not parent:
                return CycleValidation(valid=False, error=f"Parent filter with id {parent_id} not found")

            row = fetch_one(
                self.session,
                """
                MATCH (p:CustomFilter {id: $parentId}), (c:CustomFilter {id: $childId})
                RETURN EXISTS { MATCH (p)-[:CHILD_OF*1..]->(c) } AS createsCycle
                """,
                parentId=parent_id,
                childId=child_id,
            )
            if row and row["createsCycle"]:
                return CycleValidation(
                    valid=False,
                    error=(
                        f'Cannot add "{parent["name"]}" as parent of "{child["name"]}" '
                        f'because "{child["name"]}" is already an ancestor of "{parent["name"]}"'
                    ),
                    conflicting_parent=ConflictingParent(id=parent["id"], name=parent["name"]),
                )

        return CycleValidation(valid=True)
