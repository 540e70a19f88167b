"""
Category Repository - single-parent category trees

    ladies (L0)
      Clothing (L1)
        Tops (L2)
          Shirts (L3)
    gents (L0)
      Clothing (L1)
        Tops (L2)
          Shirts (L3)   same name, different hierarchy

Each category stores parentId and has a CHILD_OF edge to its parent.
Products hang off leaves only: (p:Product)-[:HAS_CATEGORY]->(c:Category).

Author: TM3
Date: 2025-10-17
"""
import logging
import uuid
from collections import Counter
from typing import Dict, List, Optional

from neo4j import Session

from factorybay.core.database import execute, fetch_all, fetch_one, now_millis
from factorybay.core.exceptions import ConflictError, HierarchyCycleError, NotFoundError, ValidationError
from factorybay.domain.base import OperationResult, slugify
from factorybay.domain.hierarchy import Category, CategoryWithChildren, CycleValidation
from factorybay.domain.product import ProductWithVariants
from factorybay.repositories.product_repository import map_product_with_variants

logger = logging.getLogger(__name__)


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def build_category_tree(categories: List[Category]) -> Dict[str, List[CategoryWithChildren]]:
    """Group root categories by hierarchy and nest children under their parent"""
    nodes = {c.id: CategoryWithChildren(**c.model_dump()) for c in categories}
    tree: Dict[str, List[CategoryWithChildren]] = {}

    for category in categories:
        node = nodes[category.id]
        if category.parent_id:
            parent = nodes.get(category.parent_id)
            if parent is not None:
                parent.children.append(node)
        else:
            tree.setdefault(category.hierarchy, []).append(node)

    return tree


class CategoryRepository:
    """
    Repository for Category data access

    product_count is the number of distinct products on the category itself
    or, for the *_with_descendant_counts style queries, on any descendant.
    """

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _map(row: dict, key: str = "c") -> Category:
        return Category.model_validate(row[key])

    def create_category(
        self,
        name: str,
        hierarchy: str,
        parent_id: Optional[str] = None,
        is_featured: bool = False,
    ) -> Category:
        """
        Create a category, optionally under a parent

        Raises:
            NotFoundError: If parent_id does not exist
        """
        level = 0
        if parent_id:
            parent = fetch_one(
                self.session,
                "MATCH (parent:Category {id: $parentId}) RETURN parent.level AS level",
                parentId=parent_id,
            )
            if not parent:
                raise NotFoundError("Parent category not found")
            level = parent["level"] + 1

        now = now_millis()
        link = (
            "WITH c MATCH (parent:Category {id: $parentId}) CREATE (c)-[:CHILD_OF]->(parent)"
            if parent_id else ""
        )
        row = fetch_one(
            self.session,
            f"""
            CREATE (c:Category {{
                id: $id,
                name: $name,
                slug: $slug,
                hierarchy: $hierarchy,
                parentId: $parentId,
                level: $level,
                isActive: true,
                isFeatured: $isFeatured,
                createdAt: $now,
                updatedAt: $now
            }})
            {link}
            RETURN c {{.*}} AS c
            """,
            id=str(uuid.uuid4()),
            name=name,
            slug=slugify(name),
            hierarchy=hierarchy,
            parentId=parent_id,
            level=level,
            isFeatured=is_featured,
            now=now,
        )
        logger.info(f"Created category {name} in {hierarchy} at level {level}")
        return self._map(row)

    def get_root_categories(self) -> List[Category]:
        """Level 0 categories with product counts rolled up from all descendants"""
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)
            WHERE c.level = 0
            OPTIONAL MATCH (c)<-[:CHILD_OF*0..]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.name
            """,
        )
        return [self._map(row) for row in rows]

    def get_child_categories(self, parent_id: str) -> List[Category]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)-[:CHILD_OF]->(:Category {id: $parentId})
            OPTIONAL MATCH (p:Product)-[:HAS_CATEGORY]->(c)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.name
            """,
            parentId=parent_id,
        )
        return [self._map(row) for row in rows]

    def get_child_categories_with_descendant_counts(self, parent_id: str) -> List[Category]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)-[:CHILD_OF]->(:Category {id: $parentId})
            OPTIONAL MATCH (c)<-[:CHILD_OF*0..]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.name
            """,
            parentId=parent_id,
        )
        return [self._map(row) for row in rows]

    def get_category_by_id(self, category_id: str) -> Optional[Category]:
        row = fetch_one(
            self.session,
            """
            MATCH (c:Category {id: $id})
            OPTIONAL MATCH (p:Product)-[:HAS_CATEGORY]->(c)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            """,
            id=category_id,
        )
        return self._map(row) if row else None

    def get_category_tree(self) -> Dict[str, List[CategoryWithChildren]]:
        """All hierarchies as nested trees, counts include descendants"""
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)
            OPTIONAL MATCH (c)<-[:CHILD_OF*0..]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.level, c.name
            """,
        )
        return build_category_tree([self._map(row) for row in rows])

    def get_categories_by_hierarchy(self, hierarchy: str) -> List[Category]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category {hierarchy: $hierarchy})
            OPTIONAL MATCH (p:Product)-[:HAS_CATEGORY]->(c)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.level, c.name
            """,
            hierarchy=hierarchy,
        )
        return [self._map(row) for row in rows]

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
        is_featured: Optional[bool] = None,
    ) -> Category:
        sets = ["c.updatedAt = $updatedAt"]
        params = {"id": category_id, "updatedAt": now_millis()}
        if name is not None:
            sets += ["c.name = $name", "c.slug = $slug"]
            params.update(name=name, slug=slugify(name))
        if is_active is not None:
            sets.append("c.isActive = $isActive")
            params["isActive"] = is_active
        if is_featured is not None:
            sets.append("c.isFeatured = $isFeatured")
            params["isFeatured"] = is_featured

        row = fetch_one(
            self.session,
            f"""
            MATCH (c:Category {{id: $id}})
            SET {", ".join(sets)}
            RETURN c {{.*}} AS c
            """,
            **params,
        )
        if not row:
            raise NotFoundError("Category not found")
        return self._map(row)

    def delete_category(self, category_id: str) -> OperationResult:
        """Delete a category with no children and no products"""
        row = fetch_one(
            self.session,
            """
            MATCH (c:Category {id: $id})
            OPTIONAL MATCH (child:Category)-[:CHILD_OF]->(c)
            WITH c, count(child) AS childCount
            OPTIONAL MATCH (p:Product)-[:HAS_CATEGORY]->(c)
            RETURN c.name AS name, childCount, count(DISTINCT p) AS productCount
            """,
            id=category_id,
        )
        if not row:
            return OperationResult(success=False, error="Category not found")

        name = row["name"]
        child_count = row["childCount"]
        if child_count > 0:
            return OperationResult(
                success=False,
                error=(
                    f'Cannot delete "{name}" because it has {child_count} child '
                    f'{_plural(child_count, "category", "categories")}. '
                    "Please delete the child categories first."
                ),
            )

        product_count = row["productCount"]
        if product_count > 0:
            return OperationResult(
                success=False,
                error=(
                    f'Cannot delete "{name}" because it has {product_count} '
                    f'{_plural(product_count, "product", "products")} assigned. '
                    "Please remove or reassign the products first."
                ),
            )

        execute(self.session, "MATCH (c:Category {id: $id}) DETACH DELETE c", id=category_id)
        logger.info(f"Deleted category {name}")
        return OperationResult(success=True)

    def move_category(self, category_id: str, new_parent_id: Optional[str]) -> Category:
        """
        Re-parent a category (None makes it a root)

        Raises:
            NotFoundError: Category or new parent missing
            HierarchyCycleError: New parent is the category or one of its descendants
        """
        current = fetch_one(
            self.session,
            "MATCH (c:Category {id: $id}) RETURN c.name AS name",
            id=category_id,
        )
        if not current:
            raise NotFoundError("Category not found")

        new_level = 0
        if new_parent_id:
            parent = fetch_one(
                self.session,
                "MATCH (p:Category {id: $id}) RETURN p.id AS id, p.name AS name, p.level AS level",
                id=new_parent_id,
            )
            if not parent:
                raise NotFoundError("New parent category not found")

            check = self._check_not_descendant(category_id, new_parent_id)
            if not check.valid:
                raise HierarchyCycleError(check.error, conflicting_parent={"id": parent["id"], "name": parent["name"]})
            new_level = parent["level"] + 1

        execute(
            self.session,
            """
            MATCH (c:Category {id: $id})
            OPTIONAL MATCH (c)-[r:CHILD_OF]->(:Category)
            DELETE r
            WITH DISTINCT c
            SET c.parentId = $parentId, c.level = $level, c.updatedAt = $updatedAt
            """,
            id=category_id,
            parentId=new_parent_id,
            level=new_level,
            updatedAt=now_millis(),
        )
        if new_parent_id:
            execute(
                self.session,
                """
                MATCH (c:Category {id: $id}), (parent:Category {id: $parentId})
                CREATE (c)-[:CHILD_OF]->(parent)
                """,
                id=category_id,
                parentId=new_parent_id,
            )

        self._recalculate_descendant_levels(category_id)
        logger.info(f"Moved category {category_id} under {new_parent_id} (level {new_level})")
        return self.get_category_by_id(category_id)

    def _check_not_descendant(self, category_id: str, new_parent_id: str) -> CycleValidation:
        if category_id == new_parent_id:
            return CycleValidation(valid=False, error="Cannot move category to its own descendant")
        row = fetch_one(
            self.session,
            """
            MATCH (c:Category {id: $id}), (newParent:Category {id: $parentId})
            RETURN EXISTS { MATCH (newParent)-[:CHILD_OF*1..]->(c) } AS isDescendant
            """,
            id=category_id,
            parentId=new_parent_id,
        )
        if row and row["isDescendant"]:
            return CycleValidation(valid=False, error="Cannot move category to its own descendant")
        return CycleValidation(valid=True)

    def _recalculate_descendant_levels(self, parent_id: str) -> None:
        rows = fetch_all(
            self.session,
            """
            MATCH (child:Category)-[:CHILD_OF]->(parent:Category {id: $parentId})
            SET child.level = parent.level + 1, child.updatedAt = $updatedAt
            RETURN child.id AS childId
            """,
            parentId=parent_id,
            updatedAt=now_millis(),
        )
        for row in rows:
            self._recalculate_descendant_levels(row["childId"])

    # =========================================================================
    # Product assignment (leaf categories only)
    # =========================================================================

    def validate_leaf_category_for_product(self, category_id: str) -> CycleValidation:
        row = fetch_one(
            self.session,
            """
            MATCH (c:Category {id: $id})
            OPTIONAL MATCH (child:Category)-[:CHILD_OF]->(c)
            RETURN c.name AS name, count(child) AS childCount
            """,
            id=category_id,
        )
        if not row:
            return CycleValidation(valid=False, error=f"Category with ID {category_id} not found")

        child_count = row["childCount"]
        if child_count > 0:
            return CycleValidation(
                valid=False,
                error=(
                    f'Cannot assign products to parent category "{row["name"]}". '
                    f'This category has {child_count} child {_plural(child_count, "category", "categories")}. '
                    "Please assign to a leaf category (one without children)."
                ),
            )
        return CycleValidation(valid=True)

    def assign_product_to_categories(self, product_id: str, category_ids: List[str]) -> None:
        """
        Replace a product's categories

        Raises:
            ValidationError: If any category is missing or has children
        """
        for category_id in category_ids:
            validation = self.validate_leaf_category_for_product(category_id)
            if not validation.valid:
                raise ValidationError(validation.error)

        execute(
            self.session,
            """
            MATCH (:Product {id: $productId})-[r:HAS_CATEGORY]->(:Category)
            DELETE r
            """,
            productId=product_id,
        )
        if category_ids:
            execute(
                self.session,
                """
                MATCH (p:Product {id: $productId})
                UNWIND $categoryIds AS categoryId
                MATCH (c:Category {id: categoryId})
                MERGE (p)-[:HAS_CATEGORY]->(c)
                """,
                productId=product_id,
                categoryIds=category_ids,
            )

    def add_product_to_category(self, product_id: str, category_id: str) -> None:
        """
        Attach a product to one more leaf category, keeping its others

        Raises:
            ValidationError: If the category is missing or has children
            ConflictError: If the product is already in the category
            NotFoundError: If the product does not exist
        """
        validation = self.validate_leaf_category_for_product(category_id)
        if not validation.valid:
            raise ValidationError(validation.error)

        row = fetch_one(
            self.session,
            """
            MATCH (p:Product {id: $productId})
            MATCH (c:Category {id: $categoryId})
            RETURN EXISTS { (p)-[:HAS_CATEGORY]->(c) } AS assigned
            """,
            productId=product_id,
            categoryId=category_id,
        )
        if not row:
            raise NotFoundError("Product not found")
        if row["assigned"]:
            raise ConflictError("Product is already assigned to this category")

        execute(
            self.session,
            """
            MATCH (p:Product {id: $productId})
            MATCH (c:Category {id: $categoryId})
            CREATE (p)-[:HAS_CATEGORY]->(c)
            """,
            productId=product_id,
            categoryId=category_id,
        )

    def remove_product_from_category(self, product_id: str, category_id: str) -> bool:
        row = fetch_one(
            self.session,
            """
            MATCH (:Product {id: $productId})-[r:HAS_CATEGORY]->(:Category {id: $categoryId})
            DELETE r
            RETURN count(*) AS removed
            """,
            productId=product_id,
            categoryId=category_id,
        )
        return bool(row and row["removed"] > 0)

    def get_category_products(self, category_id: str) -> List[ProductWithVariants]:
        """Products attached directly to the category, with variants, by name"""
        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)-[:HAS_CATEGORY]->(:Category {id: $categoryId})
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY p.name
            """,
            categoryId=category_id,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_full_products_by_categories(self, category_ids: List[str], limit: int = 50) -> List[ProductWithVariants]:
        """Products in any of the categories or their descendants, newest first"""
        if not category_ids:
            return []
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)
            WHERE c.id IN $categoryIds
            MATCH (c)<-[:CHILD_OF*0..]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            WITH DISTINCT p
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY p.createdAt DESC
            LIMIT $limit
            """,
            categoryIds=category_ids,
            limit=limit,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_unassigned_products(self, category_id: str, limit: int = 100) -> List[ProductWithVariants]:
        """Products not yet in the category, candidates for adding"""
        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)
            WHERE NOT EXISTS { (p)-[:HAS_CATEGORY]->(:Category {id: $categoryId}) }
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY p.name
            LIMIT $limit
            """,
            categoryId=category_id,
            limit=limit,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_products_by_categories(self, category_ids: List[str], include_descendants: bool = True) -> List[str]:
        if not category_ids:
            return []
        depth = "*0.." if include_descendants else "*0..0"
        rows = fetch_all(
            self.session,
            f"""
            MATCH (c:Category)
            WHERE c.id IN $categoryIds
            MATCH (c)<-[:CHILD_OF{depth}]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            RETURN DISTINCT p.id AS productId
            """,
            categoryIds=category_ids,
        )
        return [row["productId"] for row in rows]

    # =========================================================================
    # Navigation and reporting
    # =========================================================================

    def get_featured_categories(self) -> List[Category]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category {isFeatured: true, isActive: true})
            OPTIONAL MATCH (c)<-[:CHILD_OF*0..]-(:Category)<-[:HAS_CATEGORY]-(p:Product)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {.*, productCount: productCount} AS c
            ORDER BY c.level, c.name
            """,
        )
        return [self._map(row) for row in rows]

    def get_category_path(self, category_id: str) -> List[Category]:
        """Breadcrumb from the root down to the category"""
        rows = fetch_all(
            self.session,
            """
            MATCH path = (:Category {id: $id})-[:CHILD_OF*0..]->(root:Category)
            WHERE NOT (root)-[:CHILD_OF]->(:Category)
            UNWIND nodes(path) AS node
            RETURN node {.*} AS c
            ORDER BY node.level
            """,
            id=category_id,
        )
        return [self._map(row) for row in rows]

    def find_duplicate_names(self) -> List[Dict]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:Category)
            WITH c.name AS name, collect(c {.*}) AS categories
            WHERE size(categories) > 1
            RETURN name, categories
            ORDER BY name
            """,
        )
        return [
            {"name": row["name"], "categories": [Category.model_validate(c) for c in row["categories"]]}
            for row in rows
        ]

    def get_leaf_categories(self, hierarchy: Optional[str] = None) -> List[Category]:
        """Categories without children, the only valid product targets"""
        match = "MATCH (c:Category {hierarchy: $hierarchy})" if hierarchy else "MATCH (c:Category)"
        rows = fetch_all(
            self.session,
            f"""
            {match}
            WHERE NOT EXISTS {{ MATCH (c)<-[:CHILD_OF]-(:Category) }}
            OPTIONAL MATCH (p:Product)-[:HAS_CATEGORY]->(c)
            WITH c, count(DISTINCT p) AS productCount
            RETURN c {{.*, productCount: productCount}} AS c
            ORDER BY c.hierarchy, c.level, c.name
            """,
            hierarchy=hierarchy,
        )
        return [self._map(row) for row in rows]

    def get_leaf_categories_by_hierarchy(self, hierarchy: str) -> List[Category]:
        return self.get_leaf_categories(hierarchy=hierarchy)

    def get_category_statistics(self) -> Dict:
        row = fetch_one(
            self.session,
            """
            MATCH (c:Category)
            OPTIONAL MATCH (c)<-[:HAS_CATEGORY]-(p:Product)
            WITH c, count(DISTINCT p) > 0 AS hasProducts
            RETURN count(c) AS total,
                   sum(CASE WHEN c.isFeatured THEN 1 ELSE 0 END) AS featured,
                   sum(CASE WHEN hasProducts THEN 1 ELSE 0 END) AS withProducts,
                   collect(c.hierarchy) AS hierarchies,
                   collect(c.level) AS levels
            """,
        )
        row = row or {"total": 0, "featured": 0, "withProducts": 0, "hierarchies": [], "levels": []}
        return {
            "totalCategories": row["total"],
            "categoriesByHierarchy": dict(Counter(row["hierarchies"])),
            "categoriesByLevel": dict(sorted(Counter(row["levels"]).items())),
            "featuredCount": row["featured"],
            "categoriesWithProducts": row["withProducts"],
        }
