"""
Graph schema: uniqueness constraints and lookup indexes

Every statement is idempotent (IF NOT EXISTS) so initialize_schema can run on
each deploy.

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List

from neo4j import Session

from factorybay.core.database import execute, fetch_all

logger = logging.getLogger(__name__)


CONSTRAINTS: List[str] = [
    "CREATE CONSTRAINT user_email_unique IF NOT EXISTS FOR (u:User) REQUIRE u.email IS UNIQUE",
    "CREATE CONSTRAINT user_id_unique IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE",
    "CREATE CONSTRAINT product_id_unique IF NOT EXISTS FOR (p:Product) REQUIRE p.id IS UNIQUE",
    "CREATE CONSTRAINT product_sku_unique IF NOT EXISTS FOR (p:Product) REQUIRE p.sku IS UNIQUE",
    "CREATE CONSTRAINT variant_id_unique IF NOT EXISTS FOR (v:ProductVariant) REQUIRE v.id IS UNIQUE",
    "CREATE CONSTRAINT order_id_unique IF NOT EXISTS FOR (o:Order) REQUIRE o.id IS UNIQUE",
    "CREATE CONSTRAINT order_number_unique IF NOT EXISTS FOR (o:Order) REQUIRE o.orderNumber IS UNIQUE",
    "CREATE CONSTRAINT category_id_unique IF NOT EXISTS FOR (c:Category) REQUIRE c.id IS UNIQUE",
    "CREATE CONSTRAINT custom_filter_id_unique IF NOT EXISTS FOR (f:CustomFilter) REQUIRE f.id IS UNIQUE",
    "CREATE CONSTRAINT promotional_category_id_unique IF NOT EXISTS FOR (c:PromotionalCategory) REQUIRE c.id IS UNIQUE",
]

# Category slugs repeat across hierarchies (ladies/gents both have "tops"),
# so only lookup indexes here
INDEXES: List[str] = [
    "CREATE INDEX user_role IF NOT EXISTS FOR (u:User) ON (u.role)",
    "CREATE INDEX product_category IF NOT EXISTS FOR (p:Product) ON (p.category)",
    "CREATE INDEX product_brand IF NOT EXISTS FOR (p:Product) ON (p.brand)",
    "CREATE INDEX product_gender IF NOT EXISTS FOR (p:Product) ON (p.gender)",
    "CREATE INDEX order_status IF NOT EXISTS FOR (o:Order) ON (o.status)",
    "CREATE INDEX order_created_at IF NOT EXISTS FOR (o:Order) ON (o.createdAt)",
    "CREATE INDEX category_hierarchy IF NOT EXISTS FOR (c:Category) ON (c.hierarchy)",
    "CREATE INDEX category_level IF NOT EXISTS FOR (c:Category) ON (c.level)",
    "CREATE INDEX category_featured IF NOT EXISTS FOR (c:Category) ON (c.isFeatured)",
    "CREATE INDEX category_active IF NOT EXISTS FOR (c:Category) ON (c.isActive)",
    "CREATE INDEX custom_filter_level IF NOT EXISTS FOR (f:CustomFilter) ON (f.level)",
    "CREATE INDEX product_view_user IF NOT EXISTS FOR (v:ProductView) ON (v.userId)",
]


def initialize_schema(session: Session) -> Dict[str, int]:
    """
    Create all constraints and indexes.

    A failing statement is logged and skipped so the rest still apply.

    Returns:
        Dict with counts: constraints, indexes, failed
    """
    counts = {"constraints": 0, "indexes": 0, "failed": 0}

    for kind, statements in (("constraints", CONSTRAINTS), ("indexes", INDEXES)):
        for statement in statements:
            try:
                execute(session, statement)
                counts[kind] += 1
            except Exception as e:
                counts["failed"] += 1
                logger.error(f"Schema statement failed: {statement}: {e}")

    logger.info(
        f"Schema initialized: {counts['constraints']} constraints, "
        f"{counts['indexes']} indexes, {counts['failed']} failed"
    )
    return counts


def clear_database(session: Session) -> None:
    """Delete every node and relationship. Development only."""
    execute(session, "MATCH (n) DETACH DELETE n")
    logger.warning("Database cleared")


def get_database_stats(session: Session) -> List[Dict]:
    """Node counts per label, largest first"""
    return fetch_all(
        session,
        """
        MATCH (n)
        UNWIND labels(n) AS label
        RETURN label, count(*) AS count
        ORDER BY count DESC
        """,
    )
