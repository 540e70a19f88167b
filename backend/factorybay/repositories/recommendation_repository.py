"""
Recommendation Repository

Scoring runs in Cypher. Every query only returns products that have at
least one variant in stock.

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from neo4j import Session

from factorybay.core.database import fetch_all
from factorybay.domain.product import ProductWithVariants
from factorybay.repositories.product_repository import map_product_with_variants

# Shared tail: attach variants, keep in-stock products
_IN_STOCK = """
    OPTIONAL MATCH (variant:ProductVariant)-[:VARIANT_OF]->(p)
    WITH p, {score} AS score, collect(variant {{.*}}) AS variants
    WHERE any(v IN variants WHERE v.stockQuantity > 0)
    RETURN p {{.*}} AS product, variants
"""


def _in_stock(score: str = "0") -> str:
    return _IN_STOCK.format(score=score)


class RecommendationRepository:
    """Product recommendations from browsing history, similarity and preferences"""

    def __init__(self, session: Session):
        self.session = session

    def _run(self, query: str, **params) -> List[ProductWithVariants]:
        return [map_product_with_variants(row) for row in fetch_all(self.session, query, **params)]

    def get_recommendations_for_user(self, user_id: str, limit: int = 10) -> List[ProductWithVariants]:
        """
        Unviewed products sharing a brand (+2) or category (+1) with the
        user's viewed products
        """
        query = """
            MATCH (:ProductView {userId: $userId})-[:VIEWED_PRODUCT]->(viewed:Product)
            WITH collect(DISTINCT viewed.brand) AS viewedBrands,
                 collect(DISTINCT viewed.category) AS viewedCategories,
                 collect(DISTINCT viewed.id) AS viewedProductIds
            MATCH (p:Product)
            WHERE NOT p.id IN viewedProductIds
              AND (p.brand IN viewedBrands OR p.category IN viewedCategories)
            WITH p,
                 CASE WHEN p.brand IN viewedBrands THEN 2 ELSE 0 END +
                 CASE WHEN p.category IN viewedCategories THEN 1 ELSE 0 END AS relevance
        """ + _in_stock("relevance") + """
            ORDER BY score DESC, p.createdAt DESC
            LIMIT $limit
        """
        return self._run(query, userId=user_id, limit=limit)

    def get_similar_products(self, product_id: str, limit: int = 6) -> List[ProductWithVariants]:
        """Same category (+2), same brand (+1), same gender (+1)"""
        query = """
            MATCH (current:Product {id: $productId})
            MATCH (p:Product)
            WHERE p.id <> $productId
              AND (p.category = current.category OR p.brand = current.brand)
            WITH p,
                 CASE WHEN p.category = current.category THEN 2 ELSE 0 END +
                 CASE WHEN p.brand = current.brand THEN 1 ELSE 0 END +
                 CASE WHEN p.gender = current.gender THEN 1 ELSE 0 END AS relevance
        """ + _in_stock("relevance") + """
            ORDER BY score DESC, p.createdAt DESC
            LIMIT $limit
        """
        return self._run(query, productId=product_id, limit=limit)

    def get_trending_products(self, limit: int = 10, days: int = 7) -> List[ProductWithVariants]:
        """Most viewed products over the last `days` days"""
        since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        query = """
            MATCH (v:ProductView)-[:VIEWED_PRODUCT]->(p:Product)
            WHERE datetime(v.viewedAt) > datetime($since)
            WITH p, count(v) AS viewCount
        """ + _in_stock("viewCount") + """
            ORDER BY score DESC, p.createdAt DESC
            LIMIT $limit
        """
        return self._run(query, since=since, limit=limit)

    def get_new_arrivals(self, limit: int = 10) -> List[ProductWithVariants]:
        query = "MATCH (p:Product)" + _in_stock() + """
            ORDER BY p.createdAt DESC
            LIMIT $limit
        """
        return self._run(query, limit=limit)

    def get_recommendations_by_preferences(
        self,
        brands: Optional[List[str]] = None,
        categories: Optional[List[str]] = None,
        colors: Optional[List[str]] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        limit: int = 10,
    ) -> List[ProductWithVariants]:
        """
        Products matching stated preferences

        Price bounds apply to the retail price. With colors, only variants in
        those colors count towards availability.
        """
        conditions = []
        params = {"limit": limit}
        if brands:
            conditions.append("p.brand IN $brands")
            params["brands"] = brands
        if categories:
            conditions.append("p.category IN $categories")
            params["categories"] = categories
        if price_min is not None:
            conditions.append("p.retailPrice >= $priceMin")
            params["priceMin"] = price_min
        if price_max is not None:
            conditions.append("p.retailPrice <= $priceMax")
            params["priceMax"] = price_max

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        variant_filter = ""
        if colors:
            variant_filter = "WHERE variant.color IN $colors"
            params["colors"] = colors

        query = f"""
            MATCH (p:Product)
            {where_clause}
            OPTIONAL MATCH (variant:ProductVariant)-[:VARIANT_OF]->(p)
            {variant_filter}
            WITH p, collect(variant {{.*}}) AS variants
            WHERE any(v IN variants WHERE v.stockQuantity > 0)
            RETURN p {{.*}} AS product, variants
            ORDER BY p.createdAt DESC
            LIMIT $limit
        """
        return self._run(query, **params)
