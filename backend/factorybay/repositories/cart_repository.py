"""
Cart Repository - persistent carts for signed-in users

    (u:User)-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(v:ProductVariant)

Author: TM3
Date: 2025-10-17
"""
import uuid
from typing import List

from neo4j import Session

from factorybay.core.database import execute, fetch_all, fetch_one, now_iso
from factorybay.core.exceptions import NotFoundError, ValidationError
from factorybay.domain.order import CartItem, CartItemWithDetails


class CartRepository:
    """Repository for CartItem data access"""

    def __init__(self, session: Session):
        self.session = session

    def add_to_cart(self, user_id: str, variant_id: str, quantity: int = 1) -> CartItem:
        """
        Add a variant to the user's cart

        If the variant is already in the cart its quantity is increased.

        Raises:
            NotFoundError: If the user or variant does not exist
        """
        existing = fetch_one(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(:ProductVariant {id: $variantId})
            SET c.quantity = c.quantity + $quantity
            RETURN c {.*} AS item
            """,
            userId=user_id,
            variantId=variant_id,
            quantity=quantity,
        )
        if existing:
            return CartItem.model_validate(existing["item"])

        row = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $userId}), (v:ProductVariant {id: $variantId})
            CREATE (c:CartItem {
                id: $id,
                userId: $userId,
                variantId: $variantId,
                quantity: $quantity,
                addedAt: $addedAt
            })
            CREATE (u)-[:HAS_CART_ITEM]->(c)
            CREATE (c)-[:CART_ITEM_FOR]->(v)
            RETURN c {.*} AS item
            """,
            id=str(uuid.uuid4()),
            userId=user_id,
            variantId=variant_id,
            quantity=quantity,
            addedAt=now_iso(),
        )
        if not row:
            raise NotFoundError("Product variant not found")
        return CartItem.model_validate(row["item"])

    def remove_from_cart(self, user_id: str, variant_id: str) -> None:
        execute(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(:ProductVariant {id: $variantId})
            DETACH DELETE c
            """,
            userId=user_id,
            variantId=variant_id,
        )

    def update_cart_item_quantity(self, user_id: str, variant_id: str, quantity: int) -> CartItem:
        """
        Set the quantity of a cart line

        Raises:
            ValidationError: quantity <= 0 (the line is removed first)
            NotFoundError: The variant is not in the cart
        """
        if quantity <= 0:
            self.remove_from_cart(user_id, variant_id)
            raise ValidationError("Quantity must be greater than 0")

        row = fetch_one(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(:ProductVariant {id: $variantId})
            SET c.quantity = $quantity
            RETURN c {.*} AS item
            """,
            userId=user_id,
            variantId=variant_id,
            quantity=quantity,
        )
        if not row:
            raise NotFoundError("Cart item not found")
        return CartItem.model_validate(row["item"])

    def get_cart_items(self, user_id: str) -> List[CartItemWithDetails]:
        """Cart lines with variant and product, most recently added first"""
        rows = fetch_all(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(v:ProductVariant)
            MATCH (v)-[:VARIANT_OF]->(p:Product)
            RETURN c {.*} AS item, v {.*} AS variant, p {.*} AS product
            ORDER BY c.addedAt DESC
            """,
            userId=user_id,
        )
        return [
            CartItemWithDetails.model_validate({**row["item"], "variant": row["variant"], "product": row["product"]})
            for row in rows
        ]

    def get_cart_count(self, user_id: str) -> int:
        """Total units in the cart (sum of quantities)"""
        row = fetch_one(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)
            RETURN sum(c.quantity) AS total
            """,
            userId=user_id,
        )
        return (row or {}).get("total") or 0

    def clear_cart(self, user_id: str) -> None:
        execute(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)
            DETACH DELETE c
            """,
            userId=user_id,
        )

    def get_cart_total(self, user_id: str) -> float:
        """Sum of stock price times quantity"""
        row = fetch_one(
            self.session,
            """
            MATCH (:User {id: $userId})-[:HAS_CART_ITEM]->(c:CartItem)-[:CART_ITEM_FOR]->(:ProductVariant)-[:VARIANT_OF]->(p:Product)
            RETURN sum(p.stockPrice * c.quantity) AS total
            """,
            userId=user_id,
        )
        return float((row or {}).get("total") or 0)
