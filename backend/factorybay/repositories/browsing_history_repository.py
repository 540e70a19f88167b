"""
Browsing History Repository

    (v:ProductView)-[:VIEWED_BY]->(u:User)
    (v:ProductView)-[:VIEWED_PRODUCT]->(p:Product)

Author: TM3
Date: 2025-10-17
"""
import uuid
from typing import List

from neo4j import Session

from factorybay.core.database import execute, fetch_all, now_iso
from factorybay.domain.browsing import ProductView
from factorybay.domain.product import ProductWithVariants
from factorybay.repositories.product_repository import map_product_with_variants

HISTORY_KEEP = 100


class BrowsingHistoryRepository:
    """Records product views of signed-in users"""

    def __init__(self, session: Session):
        self.session = session

    def track_product_view(self, user_id: str, product_id: str) -> None:
        """Record a view. Unknown user or product is a no-op."""
        execute(
            self.session,
            """
            MATCH (u:User {id: $userId})
            MATCH (p:Product {id: $productId})
            CREATE (v:ProductView {
                id: $id,
                userId: $userId,
                productId: $productId,
                viewedAt: $viewedAt
            })
            CREATE (v)-[:VIEWED_BY]->(u)
            CREATE (v)-[:VIEWED_PRODUCT]->(p)
            """,
            id=str(uuid.uuid4()),
            userId=user_id,
            productId=product_id,
            viewedAt=now_iso(),
        )

    def get_user_browsing_history(self, user_id: str, limit: int = 20) -> List[ProductView]:
        rows = fetch_all(
            self.session,
            """
            MATCH (v:ProductView {userId: $userId})
            RETURN v {.*} AS view
            ORDER BY v.viewedAt DESC
            LIMIT $limit
            """,
            userId=user_id,
            limit=limit,
        )
        return [ProductView.model_validate(row["view"]) for row in rows]

    def get_recently_viewed_products(self, user_id: str, limit: int = 10) -> List[ProductWithVariants]:
        """Distinct products from the latest views, most recent first"""
        rows = fetch_all(
            self.session,
            """
            MATCH (v:ProductView {userId: $userId})-[:VIEWED_PRODUCT]->(p:Product)
            WITH p, max(v.viewedAt) AS lastViewed
            ORDER BY lastViewed DESC
            LIMIT $limit
            OPTIONAL MATCH (variant:ProductVariant)-[:VARIANT_OF]->(p)
            WITH p, lastViewed, collect(variant {.*}) AS variants
            RETURN p {.*} AS product, variants
            ORDER BY lastViewed DESC
            """,
            userId=user_id,
            limit=limit,
        )
        return [map_product_with_variants(row) for row in rows]

    def get_preferred_brands_from_history(self, user_id: str, limit: int = 5) -> List[str]:
        rows = fetch_all(
            self.session,
            """
            MATCH (:ProductView {userId: $userId})-[:VIEWED_PRODUCT]->(p:Product)
            RETURN p.brand AS brand, count(*) AS viewCount
            ORDER BY viewCount DESC, brand
            LIMIT $limit
            """,
            userId=user_id,
            limit=limit,
        )
        return [row["brand"] for row in rows]

    def get_preferred_categories_from_history(self, user_id: str, limit: int = 3) -> List[str]:
        rows = fetch_all(
            self.session,
            """
            MATCH (:ProductView {userId: $userId})-[:VIEWED_PRODUCT]->(p:Product)
            RETURN p.category AS category, count(*) AS viewCount
            ORDER BY viewCount DESC, category
            LIMIT $limit
            """,
            userId=user_id,
            limit=limit,
        )
        return [row["category"] for row in rows]

    def cleanup_old_browsing_history(self, user_id: str, keep: int = HISTORY_KEEP) -> None:
        """Delete all but the newest `keep` views of a user"""
        execute(
            self.session,
            """
            MATCH (v:ProductView {userId: $userId})
            WITH v
            ORDER BY v.viewedAt DESC
            SKIP $keep
            DETACH DELETE v
            """,
            userId=user_id,
            keep=keep,
        )
