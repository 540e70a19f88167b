"""
Order Repository - Data Access Layer for Orders

    (u:User)-[:PLACED_ORDER]->(o:Order)-[:HAS_ITEM]->(oi:OrderItem)-[:ITEM_OF_VARIANT]->(v:ProductVariant)

The shipping address is stored on the order node as a JSON string.

Author: TM3
Date: 2025-10-17
"""
import json
import logging
import uuid
from typing import List, Optional

from neo4j import Session

from factorybay.core.database import fetch_all, fetch_one, now_iso, now_millis
from factorybay.core.exceptions import NotFoundError
from factorybay.domain.order import Order, OrderCreate, OrderWithItems

logger = logging.getLogger(__name__)

_ORDER_WITH_ITEMS = """
    OPTIONAL MATCH (o)-[:HAS_ITEM]->(oi:OrderItem)
    OPTIONAL MATCH (oi)-[:ITEM_OF_VARIANT]->(v:ProductVariant)
    OPTIONAL MATCH (v)-[:VARIANT_OF]->(p:Product)
    WITH o, collect(CASE WHEN oi IS NULL THEN NULL
                         ELSE oi {.*, variant: v {.*}, product: p {.*}} END) AS items
    RETURN o {.*} AS orderData, items
"""


def _map_order_with_items(row: dict) -> OrderWithItems:
    items = [item for item in (row.get("items") or []) if item]
    return OrderWithItems.model_validate({**row["orderData"], "items": items})


class OrderRepository:
    """
    Repository for Order data access

    All Cypher for orders is centralized here.
    """

    def __init__(self, session: Session):
        self.session = session

    def create_order(self, data: OrderCreate) -> OrderWithItems:
        """
        Store an order and its lines

        Args:
            data: Buyer, lines with frozen prices, total, address, delivery method

        Returns:
            The stored order with items
        """
        order_id = str(uuid.uuid4())
        order_number = f"FB-{now_millis()}"
        now = now_iso()

        items = [
            {
                "id": str(uuid.uuid4()),
                "orderId": order_id,
                "variantId": line.variant_id,
                "quantity": line.quantity,
                "priceAtPurchase": line.price_at_purchase,
            }
            for line in data.items
        ]

        # Check buyer and variants first so a failed lookup writes nothing
        variant_ids = list(dict.fromkeys(line.variant_id for line in data.items))
        found = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $userId})
            OPTIONAL MATCH (v:ProductVariant)
            WHERE v.id IN $variantIds
            RETURN u.id AS userId, count(DISTINCT v) AS variantCount
            """,
            userId=data.user_id,
            variantIds=variant_ids,
        )
        if not found:
            raise NotFoundError("User not found")
        if not variant_ids or found["variantCount"] < len(variant_ids):
            raise NotFoundError("Product variants not found")

        row = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $userId})
            CREATE (o:Order {
                id: $id,
                orderNumber: $orderNumber,
                userId: $userId,
                status: 'PENDING',
                totalAmount: $totalAmount,
                shippingAddress: $shippingAddress,
                deliveryMethod: $deliveryMethod,
                createdAt: $now,
                updatedAt: $now
            })
            CREATE (u)-[:PLACED_ORDER]->(o)
            WITH o
            UNWIND $items AS item
            MATCH (v:ProductVariant {id: item.variantId})
            CREATE (oi:OrderItem)
            SET oi = item
            CREATE (o)-[:HAS_ITEM]->(oi)
            CREATE (oi)-[:ITEM_OF_VARIANT]->(v)
            RETURN count(oi) AS itemCount
            """,
            id=order_id,
            orderNumber=order_number,
            userId=data.user_id,
            totalAmount=data.total_amount,
            shippingAddress=json.dumps(data.shipping_address.model_dump(by_alias=True)),
            deliveryMethod=data.delivery_method,
            now=now,
            items=items,
        )
        if not row or not row["itemCount"]:
            raise NotFoundError("User or product variants not found")

        logger.info(f"Created order {order_number} for user {data.user_id} ({row['itemCount']} items)")
        return self.get_order_by_id(order_id)

    def get_order_by_id(self, order_id: str) -> Optional[OrderWithItems]:
        row = fetch_one(
            self.session,
            "MATCH (o:Order {id: $id})" + _ORDER_WITH_ITEMS,
            id=order_id,
        )
        return _map_order_with_items(row) if row else None

    def get_user_orders(self, user_id: str) -> List[OrderWithItems]:
        rows = fetch_all(
            self.session,
            "MATCH (:User {id: $userId})-[:PLACED_ORDER]->(o:Order)"
            + _ORDER_WITH_ITEMS
            + " ORDER BY o.createdAt DESC",
            userId=user_id,
        )
        return [_map_order_with_items(row) for row in rows]

    def get_all_orders(self, status: Optional[str] = None, limit: int = 100) -> List[OrderWithItems]:
        """Admin listing, newest first, optionally by status"""
        match = "MATCH (o:Order {status: $status})" if status else "MATCH (o:Order)"
        rows = fetch_all(
            self.session,
            match + _ORDER_WITH_ITEMS + " ORDER BY o.createdAt DESC LIMIT $limit",
            status=status,
            limit=limit,
        )
        return [_map_order_with_items(row) for row in rows]

    def update_order_status(self, order_id: str, status: str) -> Order:
        row = fetch_one(
            self.session,
            """
            MATCH (o:Order {id: $id})
            SET o.status = $status, o.updatedAt = $now
            RETURN o {.*} AS orderData
            """,
            id=order_id,
            status=status,
            now=now_iso(),
        )
        if not row:
            raise NotFoundError("Order not found")
        logger.info(f"Order {order_id} status -> {status}")
        return Order.model_validate(row["orderData"])

    def get_user_order_count(self, user_id: str) -> int:
        row = fetch_one(
            self.session,
            "MATCH (:User {id: $userId})-[:PLACED_ORDER]->(o:Order) RETURN count(o) AS total",
            userId=user_id,
        )
        return row["total"] if row else 0

    def update_order_payment_proof(self, order_id: str, user_id: str, payment_proof_url: str) -> Order:
        row = fetch_one(
            self.session,
            """
            MATCH (:User {id: $userId})-[:PLACED_ORDER]->(o:Order {id: $id})
            SET o.paymentProof = $url, o.updatedAt = $now
            RETURN o {.*} AS orderData
            """,
            id=order_id,
            userId=user_id,
            url=payment_proof_url,
            now=now_iso(),
        )
        if not row:
            raise NotFoundError("Order not found or does not belong to user")
        return Order.model_validate(row["orderData"])

    def get_order_stats(self) -> dict:
        """Counts and revenue for the admin dashboard"""
        row = fetch_one(
            self.session,
            """
            MATCH (o:Order)
            RETURN count(o) AS totalOrders,
                   sum(CASE WHEN o.status = 'PENDING' THEN 1 ELSE 0 END) AS pendingOrders,
                   sum(CASE WHEN o.status <> 'CANCELLED' THEN o.totalAmount ELSE 0 END) AS totalRevenue
            """,
        )
        return row or {"totalOrders": 0, "pendingOrders": 0, "totalRevenue": 0}
