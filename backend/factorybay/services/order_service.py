"""
Order Service - checkout from cart and payment proofs

Purpose:
- Price the cart (subtotal + shipping)
- Turn the persistent cart into an order and empty the cart
- Enforce order ownership for customers
- Store proof-of-payment uploads

Author: TM3
Date: 2025-10-17
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional

from neo4j import Session

from factorybay.core.config import settings
from factorybay.core.database import now_millis
from factorybay.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from factorybay.domain.order import (
    CartItemWithDetails,
    OrderCreate,
    OrderLineInput,
    OrderWithItems,
    ShippingAddress,
)
from factorybay.repositories.cart_repository import CartRepository
from factorybay.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

SHIPPING_FEE = 9.99
FREE_SHIPPING_THRESHOLD = 100.0

PAYMENT_PROOF_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "application/pdf": "pdf",
}
PAYMENT_PROOF_MAX_BYTES = 5 * 1024 * 1024


def calculate_totals(cart_items: List[CartItemWithDetails], delivery_method: str) -> Dict[str, float]:
    """
    Subtotal, shipping and total for a cart

    Shipping is free for COLLECT and for SHIP orders of 100 or more,
    otherwise a flat 9.99.
    """
    subtotal = round(sum(item.product.stock_price * item.quantity for item in cart_items), 2)
    if delivery_method == "COLLECT" or subtotal >= FREE_SHIPPING_THRESHOLD:
        shipping = 0.0
    else:
        shipping = SHIPPING_FEE
    return {"subtotal": subtotal, "shipping": shipping, "total": round(subtotal + shipping, 2)}


def validate_payment_proof(content_type: Optional[str], size: int) -> str:
    """
    Check a proof-of-payment upload

    Returns:
        File extension to store it under
    """
    if content_type not in PAYMENT_PROOF_TYPES:
        raise ValidationError("Invalid file type. Please upload a JPEG, PNG, WebP or PDF file.")
    if size > PAYMENT_PROOF_MAX_BYTES:
        raise ValidationError("File size exceeds 5MB limit")
    return PAYMENT_PROOF_TYPES[content_type]


class OrderService:
    """Checkout and order access for customers"""

    def __init__(self, session: Session, upload_dir: Optional[str] = None):
        self.cart = CartRepository(session)
        self.orders = OrderRepository(session)
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def create_order_from_cart(
        self,
        user_id: str,
        shipping_address: ShippingAddress,
        delivery_method: str,
    ) -> OrderWithItems:
        """
        Place an order for everything in the user's cart

        Prices are frozen at the current stock price. The cart is emptied
        once the order is stored.

        Raises:
            ValidationError: Cart is empty
        """
        cart_items = self.cart.get_cart_items(user_id)
        if not cart_items:
            raise ValidationError("Your cart is empty")

        totals = calculate_totals(cart_items, delivery_method)
        order = self.orders.create_order(
            OrderCreate(
                user_id=user_id,
                items=[
                    OrderLineInput(
                        variant_id=item.variant_id,
                        quantity=item.quantity,
                        price_at_purchase=item.product.stock_price,
                    )
                    for item in cart_items
                ],
                total_amount=totals["total"],
                shipping_address=shipping_address,
                delivery_method=delivery_method,
            )
        )

        self.cart.clear_cart(user_id)
        return order

    def get_order_for_user(self, order_id: str, user_id: str, is_admin: bool = False) -> OrderWithItems:
        order = self.orders.get_order_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != user_id and not is_admin:
            raise PermissionDeniedError("Unauthorized")
        return order

    def upload_payment_proof(
        self,
        order_id: str,
        user_id: str,
        data: bytes,
        content_type: Optional[str],
    ) -> str:
        """
        Save a proof of payment and attach its URL to the order

        Returns:
            Public URL of the stored file
        """
        extension = validate_payment_proof(content_type, len(data))

        # Ownership first so nothing is written for someone else's order
        self.get_order_for_user(order_id, user_id)

        file_name = f"payment-proof-{order_id}-{now_millis()}.{extension}"
        target_dir = self.upload_dir / "payment-proofs"
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / file_name).write_bytes(data)

        url = f"/uploads/payment-proofs/{file_name}"
        self.orders.update_order_payment_proof(order_id, user_id, url)
        logger.info(f"Stored payment proof for order {order_id}")
        return url
