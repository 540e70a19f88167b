"""
Cart API Endpoints

Signed-in users get the persistent cart stored in the graph. Guests get a
cart kept in the guest_cart cookie, merged into their account at login.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from neo4j import Session
from pydantic import Field

from factorybay.core.auth import TokenUser, get_current_user_optional
from factorybay.core.database import session_dep
from factorybay.domain.base import GraphModel
from factorybay.domain.order import GuestCartItem
from factorybay.repositories.cart_repository import CartRepository
from factorybay.repositories.product_repository import ProductRepository
from factorybay.services.guest_cart import (
    GUEST_CART_COOKIE,
    GUEST_SESSION_COOKIE,
    add_to_guest_cart,
    clear_guest_cart_cookie,
    guest_cart_count,
    parse_guest_cart,
    remove_from_guest_cart,
    update_guest_cart_quantity,
    write_guest_cart_cookie,
)

router = APIRouter()


# Request models
class AddToCartRequest(GraphModel):
    variant_id: str
    quantity: int = Field(1, ge=1)


class UpdateQuantityRequest(GraphModel):
    quantity: int


def _guest_items(request: Request) -> List[GuestCartItem]:
    return parse_guest_cart(request.cookies.get(GUEST_CART_COOKIE))


def _save_guest_items(request: Request, response: Response, items: List[GuestCartItem]) -> None:
    write_guest_cart_cookie(response, items, request.cookies.get(GUEST_SESSION_COOKIE))


def _guest_cart_details(session: Session, items: List[GuestCartItem]) -> List[dict]:
    """Guest lines joined with variant and product; vanished variants are dropped"""
    repo = ProductRepository(session)
    details = []
    for item in items:
        variant = repo.get_variant_with_product(item.variant_id)
        if variant is None:
            continue
        details.append({
            "variantId": item.variant_id,
            "quantity": item.quantity,
            "variant": variant.model_dump(by_alias=True, mode="json", exclude={"product"}),
            "product": variant.product.to_dict(),
            "lineTotal": round(variant.product.stock_price * item.quantity, 2),
        })
    return details


@router.get("")
def get_cart(
    request: Request,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    """
    Cart contents

    Returns:
        {"success": true, "data": {"items": [...], "count": units, "subtotal": amount}}
    """
    if current_user:
        items = CartRepository(session).get_cart_items(current_user.id)
        lines = [{**item.to_dict(), "lineTotal": round(item.line_total, 2)} for item in items]
    else:
        lines = _guest_cart_details(session, _guest_items(request))

    return {
        "success": True,
        "data": {
            "items": lines,
            "count": sum(line["quantity"] for line in lines),
            "subtotal": round(sum(line["lineTotal"] for line in lines), 2),
        },
    }


@router.get("/count")
def get_cart_count(
    request: Request,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    if current_user:
        count = CartRepository(session).get_cart_count(current_user.id)
    else:
        count = guest_cart_count(_guest_items(request))
    return {"success": True, "data": {"count": count}}


@router.post("/items", status_code=status.HTTP_201_CREATED)
def add_item(
    body: AddToCartRequest,
    request: Request,
    response: Response,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    if current_user:
        item = CartRepository(session).add_to_cart(current_user.id, body.variant_id, body.quantity)
        return {"success": True, "message": "Added to cart", "data": item.to_dict()}

    if ProductRepository(session).get_variant_by_id(body.variant_id) is None:
        raise HTTPException(status_code=404, detail="Product variant not found")
    items = add_to_guest_cart(_guest_items(request), body.variant_id, body.quantity)
    _save_guest_items(request, response, items)
    return {"success": True, "message": "Added to cart", "data": {"count": guest_cart_count(items)}}


@router.patch("/items/{variant_id}")
def update_item(
    variant_id: str,
    body: UpdateQuantityRequest,
    request: Request,
    response: Response,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    """Set a line's quantity. Zero or less removes the line."""
    if current_user:
        cart = CartRepository(session)
        if body.quantity <= 0:
            cart.remove_from_cart(current_user.id, variant_id)
            return {"success": True, "message": "Item removed"}
        item = cart.update_cart_item_quantity(current_user.id, variant_id, body.quantity)
        return {"success": True, "message": "Quantity updated", "data": item.to_dict()}

    items = update_guest_cart_quantity(_guest_items(request), variant_id, body.quantity)
    _save_guest_items(request, response, items)
    message = "Item removed" if body.quantity <= 0 else "Quantity updated"
    return {"success": True, "message": message, "data": {"count": guest_cart_count(items)}}


@router.delete("/items/{variant_id}")
def remove_item(
    variant_id: str,
    request: Request,
    response: Response,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    if current_user:
        CartRepository(session).remove_from_cart(current_user.id, variant_id)
    else:
        items = remove_from_guest_cart(_guest_items(request), variant_id)
        _save_guest_items(request, response, items)
    return {"success": True, "message": "Item removed"}


@router.delete("")
def clear_cart(
    response: Response,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    if current_user:
        CartRepository(session).clear_cart(current_user.id)
    else:
        clear_guest_cart_cookie(response)
    return {"success": True, "message": "Cart cleared"}
