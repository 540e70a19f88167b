"""
Product Repository - Data Access Layer for Products

Handles all Cypher queries for products and their variants and returns
domain models.

    (v:ProductVariant)-[:VARIANT_OF]->(p:Product)

Author: TM3
Date: 2025-10-17
"""
import logging
import uuid
from typing import Dict, List, Optional, Tuple

from neo4j import Session
from neo4j.exceptions import ConstraintError

from factorybay.core.database import fetch_all, fetch_one, execute, now_iso
from factorybay.core.exceptions import ConflictError, NotFoundError
from factorybay.domain.product import (
    Product,
    ProductCreate,
    ProductFilters,
    ProductUpdate,
    ProductVariant,
    ProductWithVariants,
    VariantCreate,
    VariantUpdate,
    VariantWithProduct,
)

logger = logging.getLogger(__name__)


def map_product_with_variants(row: dict) -> ProductWithVariants:
    """Map a {product, variants} row. Null variants from OPTIONAL MATCH are dropped."""
    variants = [v for v in (row.get("variants") or []) if v]
    return ProductWithVariants.model_validate({**row["product"], "variants": variants})


def _build_where(filters: Optional[ProductFilters]) -> Tuple[str, Dict]:
    """WHERE clause and params for catalog filters"""
    if filters is None:
        return "", {}

    conditions = []
    params: Dict = {}

    if filters.category:
        conditions.append("p.category = $category")
        params["category"] = filters.category
    if filters.brand:
        conditions.append("p.brand = $brand")
        params["brand"] = filters.brand
    if filters.gender:
        conditions.append("p.gender = $gender")
        params["gender"] = filters.gender
    if filters.min_price is not None:
        conditions.append("p.stockPrice >= $minPrice")
        params["minPrice"] = filters.min_price
    if filters.max_price is not None:
        conditions.append("p.stockPrice <= $maxPrice")
        params["maxPrice"] = filters.max_price
    if filters.search:
        conditions.append(
            "(toLower(p.name) CONTAINS toLower($search) OR toLower(p.brand) CONTAINS toLower($search))"
        )
        params["search"] = filters.search

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where_clause, params


class ProductRepository:
    """
    Repository for Product data access

    All Cypher for products is centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_all_products(self, filters: Optional[ProductFilters] = None, limit: int = 50) -> List[ProductWithVariants]:
        """
        List products with their variants, newest first

        Args:
            filters: Optional category/brand/gender/price/search filters
            limit: Max products to return (default: 50)

        Returns:
            List of ProductWithVariants
        """
        where_clause, params = _build_where(filters)
        rows = fetch_all(
            self.session,
            f"""
            MATCH (p:Product)
            {where_clause}
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {{.*}}) AS variants
            RETURN p {{.*}} AS product, variants
            ORDER BY p.createdAt DESC
            LIMIT $limit
            """,
            limit=limit,
            **params,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_product_count(self, filters: Optional[ProductFilters] = None) -> int:
        where_clause, params = _build_where(filters)
        row = fetch_one(
            self.session,
            f"""
            MATCH (p:Product)
            {where_clause}
            RETURN count(p) AS total
            """,
            **params,
        )
        return row["total"] if row else 0

    def get_product_by_id(self, product_id: str) -> Optional[ProductWithVariants]:
        """
        Find product by ID

        Returns:
            ProductWithVariants or None if not found
        """
        row = fetch_one(
            self.session,
            """
            MATCH (p:Product {id: $id})
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, collect(v {.*}) AS variants
            RETURN p {.*} AS product, variants
            """,
            id=product_id,
        )
        return map_product_with_variants(row) if row else None

    def get_products_by_category(self, category: str, limit: int = 50) -> List[ProductWithVariants]:
        return self.get_all_products(ProductFilters(category=category), limit=limit)

    def search_products(self, search_term: str, limit: int = 50) -> List[ProductWithVariants]:
        return self.get_all_products(ProductFilters(search=search_term), limit=limit)

    def get_all_brands(self) -> List[str]:
        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)
            WHERE p.brand IS NOT NULL
            RETURN DISTINCT p.brand AS brand
            ORDER BY brand
            """,
        )
        return [row["brand"] for row in rows]

    def get_variant_by_id(self, variant_id: str) -> Optional[ProductVariant]:
        row = fetch_one(
            self.session,
            "MATCH (v:ProductVariant {id: $id}) RETURN v {.*} AS variant",
            id=variant_id,
        )
        return ProductVariant.model_validate(row["variant"]) if row else None

    def get_variant_with_product(self, variant_id: str) -> Optional[VariantWithProduct]:
        row = fetch_one(
            self.session,
            """
            MATCH (v:ProductVariant {id: $id})-[:VARIANT_OF]->(p:Product)
            RETURN v {.*} AS variant, p {.*} AS product
            """,
            id=variant_id,
        )
        if not row:
            return None
        return VariantWithProduct.model_validate({**row["variant"], "product": row["product"]})

    # =========================================================================
    # Admin writes
    # =========================================================================

    def create_product(self, data: ProductCreate) -> ProductWithVariants:
        """
        Create a product and its variants

        Raises:
            ConflictError: If the SKU is already used
        """
        product_id = str(uuid.uuid4())
        now = now_iso()
        props = data.model_dump(by_alias=True, exclude={"variants"})
        props.update(id=product_id, createdAt=now, updatedAt=now)

        try:
            execute(self.session, "CREATE (p:Product) SET p = $props", props=props)
        except ConstraintError:
            raise ConflictError(f"A product with SKU {data.sku} already exists")

        if data.variants:
            variants = []
            for variant in data.variants:
                v = variant.model_dump(by_alias=True)
                v.update(id=str(uuid.uuid4()), productId=product_id)
                variants.append(v)
            execute(
                self.session,
                """
                MATCH (p:Product {id: $productId})
                UNWIND $variants AS variant
                CREATE (v:ProductVariant)
                SET v = variant
                CREATE (v)-[:VARIANT_OF]->(p)
                """,
                productId=product_id,
                variants=variants,
            )

        logger.info(f"Created product {product_id} ({data.sku}) with {len(data.variants)} variants")
        return self.get_product_by_id(product_id)

    def update_product(self, product_id: str, data: ProductUpdate) -> ProductWithVariants:
        updates = data.model_dump(by_alias=True, exclude_none=True)
        updates["updatedAt"] = now_iso()

        try:
            row = fetch_one(
                self.session,
                """
                MATCH (p:Product {id: $id})
                SET p += $updates
                RETURN p.id AS id
                """,
                id=product_id,
                updates=updates,
            )
        except ConstraintError:
            raise ConflictError(f"A product with SKU {data.sku} already exists")

        if not row:
            raise NotFoundError("Product not found")
        return self.get_product_by_id(product_id)

    def add_variant(self, product_id: str, data: VariantCreate) -> ProductVariant:
        props = data.model_dump(by_alias=True)
        props.update(id=str(uuid.uuid4()), productId=product_id)
        row = fetch_one(
            self.session,
            """
            MATCH (p:Product {id: $productId})
            CREATE (v:ProductVariant)
            SET v = $props
            CREATE (v)-[:VARIANT_OF]->(p)
            RETURN v {.*} AS variant
            """,
            productId=product_id,
            props=props,
        )
        if not row:
            raise NotFoundError("Product not found")
        return ProductVariant.model_validate(row["variant"])

    def update_variant(self, variant_id: str, data: VariantUpdate) -> ProductVariant:
        row = fetch_one(
            self.session,
            """
            MATCH (v:ProductVariant {id: $id})
            SET v += $updates
            RETURN v {.*} AS variant
            """,
            id=variant_id,
            updates=data.model_dump(by_alias=True, exclude_none=True),
        )
        if not row:
            raise NotFoundError("Variant not found")
        return ProductVariant.model_validate(row["variant"])

    def delete_variant(self, variant_id: str) -> bool:
        row = fetch_one(
            self.session,
            """
            MATCH (v:ProductVariant {id: $id})
            WITH v, v.id AS deletedId
            DETACH DELETE v
            RETURN deletedId
            """,
            id=variant_id,
        )
        return row is not None

    def delete_product(self, product_id: str) -> bool:
        """Delete a product together with its variants. False if it did not exist."""
        row = fetch_one(
            self.session,
            """
            MATCH (p:Product {id: $id})
            OPTIONAL MATCH (v:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, p.id AS deletedId, collect(v) AS variants
            FOREACH (variant IN variants | DETACH DELETE variant)
            DETACH DELETE p
            RETURN deletedId
            """,
            id=product_id,
        )
        if row:
            logger.info(f"Deleted product {product_id}")
        return row is not None
