"""
Orders API Endpoints
- Checkout from the signed-in user's cart
- Order history and detail (owner or admin)
- Proof-of-payment upload
- Admin listing and status changes

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from neo4j import Session

from factorybay.core.auth import ROLE_ADMIN, TokenUser, get_current_user, require_admin
from factorybay.core.database import session_dep
from factorybay.domain.base import GraphModel
from factorybay.domain.order import DeliveryMethod, OrderStatus, ShippingAddress
from factorybay.repositories.cart_repository import CartRepository
from factorybay.repositories.order_repository import OrderRepository
from factorybay.services.order_service import OrderService, calculate_totals

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class CheckoutRequest(GraphModel):
    shipping_address: ShippingAddress
    delivery_method: DeliveryMethod = "SHIP"


class StatusUpdateRequest(GraphModel):
    status: OrderStatus


@router.get("/summary")
def get_checkout_summary(
    delivery_method: DeliveryMethod = Query("SHIP", alias="deliveryMethod"),
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    """Subtotal, shipping and total the cart would be charged at checkout"""
    items = CartRepository(session).get_cart_items(current_user.id)
    return {"success": True, "data": calculate_totals(items, delivery_method)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    body: CheckoutRequest,
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    order = OrderService(session).create_order_from_cart(
        current_user.id,
        body.shipping_address,
        body.delivery_method,
    )
    return {"success": True, "message": "Order placed", "data": order.to_dict()}


@router.get("/mine")
def get_my_orders(
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    orders = OrderRepository(session).get_user_orders(current_user.id)
    return {"success": True, "count": len(orders), "data": [o.to_dict() for o in orders]}


# =============================================================================
# Admin
# =============================================================================

@router.get("")
def get_all_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    orders = OrderRepository(session).get_all_orders(status=status_filter, limit=limit)
    return {"success": True, "count": len(orders), "data": [o.to_dict() for o in orders]}


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    order = OrderRepository(session).update_order_status(order_id, body.status)
    return {"success": True, "message": f"Order status updated to {body.status}", "data": order.to_dict()}


# =============================================================================
# Single order
# =============================================================================

@router.get("/{order_id}")
def get_order(
    order_id: str,
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    order = OrderService(session).get_order_for_user(
        order_id,
        current_user.id,
        is_admin=current_user.role == ROLE_ADMIN,
    )
    return {"success": True, "data": order.to_dict()}


@router.post("/{order_id}/payment-proof")
async def upload_payment_proof(
    order_id: str,
    file: UploadFile = File(...),
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    """Attach a JPEG, PNG, WebP or PDF proof of payment (max 5MB)"""
    content = await file.read()
    url = OrderService(session).upload_payment_proof(order_id, current_user.id, content, file.content_type)
    return {"success": True, "message": "Payment proof uploaded", "data": {"url": url}}
