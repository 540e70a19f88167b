"""
Promotional Category Repository - merchandising shelves with quotas

    (c:PromotionalCategory)-[:HAS_ITEM {id, allocatedQuantity, soldQuantity, addedAt}]->(p:Product)

Quotas can be moved between shelves; a product is listed on a shelf only
while it has quantity left there.

Author: TM3
Date: 2025-10-17
"""
import logging
import uuid
from typing import List, Optional

from neo4j import Session

from factorybay.core.database import fetch_all, fetch_one, now_millis
from factorybay.core.exceptions import ValidationError
from factorybay.domain.base import slugify
from factorybay.domain.product import ProductWithVariants
from factorybay.domain.promotion import (
    ProductPromotion,
    PromotionalCategory,
    PromotionalCategoryCreate,
    PromotionalCategoryItem,
    PromotionalCategoryUpdate,
    PromotionalItemDetails,
)
from factorybay.repositories.product_repository import map_product_with_variants

logger = logging.getLogger(__name__)

# update field -> node property
_UPDATABLE = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "display_order": "displayOrder",
    "is_active": "isActive",
    "start_date": "startDate",
    "end_date": "endDate",
}


class PromotionalCategoryRepository:
    """Repository for promotional categories and their product quotas"""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _map_item(row: dict) -> PromotionalCategoryItem:
        return PromotionalCategoryItem.model_validate({
            **row["item"],
            "categoryId": row["categoryId"],
            "productId": row["productId"],
        })

    # =========================================================================
    # Categories
    # =========================================================================

    def create_category(self, data: PromotionalCategoryCreate) -> PromotionalCategory:
        now = now_millis()
        row = fetch_one(
            self.session,
            """
            CREATE (c:PromotionalCategory {
                id: $id,
                name: $name,
                slug: $slug,
                description: $description,
                displayOrder: $displayOrder,
                isActive: $isActive,
                startDate: $startDate,
                endDate: $endDate,
                createdAt: $now,
                updatedAt: $now
            })
            RETURN c {.*} AS c
            """,
            id=str(uuid.uuid4()),
            name=data.name,
            slug=data.slug or slugify(data.name),
            description=data.description,
            displayOrder=data.display_order,
            isActive=data.is_active,
            startDate=data.start_date,
            endDate=data.end_date,
            now=now,
        )
        logger.info(f"Created promotional category {data.name}")
        return PromotionalCategory.model_validate(row["c"])

    def get_all_categories(self, active_only: bool = False) -> List[PromotionalCategory]:
        where = "WHERE c.isActive = true" if active_only else ""
        rows = fetch_all(
            self.session,
            f"""
            MATCH (c:PromotionalCategory)
            {where}
            RETURN c {{.*}} AS c
            ORDER BY c.displayOrder ASC
            """,
        )
        return [PromotionalCategory.model_validate(row["c"]) for row in rows]

    def get_category_by_id(self, category_id: str) -> Optional[PromotionalCategory]:
        row = fetch_one(
            self.session,
            "MATCH (c:PromotionalCategory {id: $id}) RETURN c {.*} AS c",
            id=category_id,
        )
        return PromotionalCategory.model_validate(row["c"]) if row else None

    def update_category(self, category_id: str, data: PromotionalCategoryUpdate) -> Optional[PromotionalCategory]:
        """
        Apply the fields that were set

        Returns:
            The updated category, or None if it does not exist
        """
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return self.get_category_by_id(category_id)

        sets = ["c.updatedAt = $updatedAt"]
        params = {"id": category_id, "updatedAt": now_millis()}
        for field, value in changes.items():
            prop = _UPDATABLE[field]
            sets.append(f"c.{prop} = ${prop}")
            params[prop] = value

        row = fetch_one(
            self.session,
            f"""
            MATCH (c:PromotionalCategory {{id: $id}})
            SET {", ".join(sets)}
            RETURN c {{.*}} AS c
            """,
            **params,
        )
        return PromotionalCategory.model_validate(row["c"]) if row else None

    def delete_category(self, category_id: str) -> bool:
        """Delete a category and its HAS_ITEM edges; the products stay"""
        row = fetch_one(
            self.session,
            """
            MATCH (c:PromotionalCategory {id: $id})
            DETACH DELETE c
            RETURN count(*) AS deleted
            """,
            id=category_id,
        )
        return bool(row and row["deleted"] > 0)

    # =========================================================================
    # Items
    # =========================================================================

    def add_product(self, category_id: str, product_id: str, allocated_quantity: int) -> Optional[PromotionalCategoryItem]:
        """
        Put a product on the shelf, or reset its allocation if already there

        Returns:
            The item, or None if the category or product does not exist
        """
        if allocated_quantity < 0:
            raise ValidationError("Allocated quantity cannot be negative")

        row = fetch_one(
            self.session,
            """
            MATCH (c:PromotionalCategory {id: $categoryId})
            MATCH (p:Product {id: $productId})
            MERGE (c)-[r:HAS_ITEM]->(p)
            ON CREATE SET r.id = $itemId,
                          r.allocatedQuantity = $allocated,
                          r.soldQuantity = 0,
                          r.addedAt = $now
            ON MATCH SET r.allocatedQuantity = $allocated
            RETURN r {.*} AS item, c.id AS categoryId, p.id AS productId
            """,
            categoryId=category_id,
            productId=product_id,
            itemId=str(uuid.uuid4()),
            allocated=allocated_quantity,
            now=now_millis(),
        )
        return self._map_item(row) if row else None

    def remove_product(self, category_id: str, product_id: str) -> bool:
        row = fetch_one(
            self.session,
            """
            MATCH (:PromotionalCategory {id: $categoryId})-[r:HAS_ITEM]->(:Product {id: $productId})
            DELETE r
            RETURN count(*) AS removed
            """,
            categoryId=category_id,
            productId=product_id,
        )
        return bool(row and row["removed"] > 0)

    def update_item_quantity(self, category_id: str, product_id: str, allocated_quantity: int) -> Optional[PromotionalCategoryItem]:
        """
        Set a product's allocation on a shelf

        Returns:
            The item, or None if the product is not on the shelf
        """
        if allocated_quantity < 0:
            raise ValidationError("Allocated quantity cannot be negative")

        row = fetch_one(
            self.session,
            """
            MATCH (c:PromotionalCategory {id: $categoryId})-[r:HAS_ITEM]->(p:Product {id: $productId})
            SET r.allocatedQuantity = $allocated
            RETURN r {.*} AS item, c.id AS categoryId, p.id AS productId
            """,
            categoryId=category_id,
            productId=product_id,
            allocated=allocated_quantity,
        )
        return self._map_item(row) if row else None

    def get_products_by_category(self, category_id: str, limit: int = 20) -> List[ProductWithVariants]:
        """Products with quantity left on the shelf, newest first"""
        rows = fetch_all(
            self.session,
            """
            MATCH (:PromotionalCategory {id: $categoryId})-[r:HAS_ITEM]->(p:Product)
            WHERE r.allocatedQuantity > r.soldQuantity
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, r, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY r.addedAt DESC
            LIMIT $limit
            """,
            categoryId=category_id,
            limit=limit,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_category_items_with_details(self, category_id: str) -> List[PromotionalItemDetails]:
        """Every product on the shelf with its quota, sold out ones included"""
        rows = fetch_all(
            self.session,
            """
            MATCH (:PromotionalCategory {id: $categoryId})-[r:HAS_ITEM]->(p:Product)
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, r, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants,
                   r.allocatedQuantity AS allocatedQuantity,
                   r.soldQuantity AS soldQuantity
            ORDER BY r.addedAt DESC
            """,
            categoryId=category_id,
        )
        return [
            PromotionalItemDetails(
                product=map_product_with_variants(row),
                allocated_quantity=row["allocatedQuantity"],
                sold_quantity=row["soldQuantity"],
                remaining_quantity=row["allocatedQuantity"] - row["soldQuantity"],
            )
            for row in rows
        ]

    def get_product_categories(self, product_id: str) -> List[ProductPromotion]:
        rows = fetch_all(
            self.session,
            """
            MATCH (c:PromotionalCategory)-[r:HAS_ITEM]->(:Product {id: $productId})
            RETURN c {.*} AS category,
                   r.allocatedQuantity AS allocatedQuantity,
                   r.soldQuantity AS soldQuantity
            ORDER BY c.displayOrder ASC
            """,
            productId=product_id,
        )
        return [
            ProductPromotion(
                category=PromotionalCategory.model_validate(row["category"]),
                allocated_quantity=row["allocatedQuantity"],
                sold_quantity=row["soldQuantity"],
                remaining_quantity=row["allocatedQuantity"] - row["soldQuantity"],
            )
            for row in rows
        ]

    def move_quantity(self, product_id: str, from_category_id: str, to_category_id: str, quantity: int) -> bool:
        """
        Move unsold allocation of a product from one shelf to another

        Returns:
            False if the source shelf has less than quantity left or either
            shelf is missing; nothing is changed in that case
        """
        if quantity <= 0:
            raise ValidationError("Quantity to move must be positive")
        if from_category_id == to_category_id:
            raise ValidationError("Source and target categories must differ")

        row = fetch_one(
            self.session,
            """
            MATCH (:PromotionalCategory {id: $fromId})-[src:HAS_ITEM]->(p:Product {id: $productId})
            WHERE src.allocatedQuantity - src.soldQuantity >= $quantity
            MATCH (target:PromotionalCategory {id: $toId})
            SET src.allocatedQuantity = src.allocatedQuantity - $quantity
            MERGE (target)-[dst:HAS_ITEM]->(p)
            ON CREATE SET dst.id = $itemId,
                          dst.allocatedQuantity = $quantity,
                          dst.soldQuantity = 0,
                          dst.addedAt = $now
            ON MATCH SET dst.allocatedQuantity = dst.allocatedQuantity + $quantity
            RETURN count(dst) AS moved
            """,
            productId=product_id,
            fromId=from_category_id,
            toId=to_category_id,
            quantity=quantity,
            itemId=str(uuid.uuid4()),
            now=now_millis(),
        )
        moved = bool(row and row["moved"] > 0)
        if moved:
            logger.info(f"Moved {quantity} of product {product_id} from {from_category_id} to {to_category_id}")
        return moved
