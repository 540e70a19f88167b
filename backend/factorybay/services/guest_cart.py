"""
Guest cart kept in a cookie

The guest_cart cookie holds a JSON list of {"variantId", "quantity"}.
Functions here are pure; routers read and write the cookie.
"""
import json
import logging
import uuid
from typing import List, Optional

from fastapi import Response

from factorybay.core.exceptions import NotFoundError
from factorybay.domain.order import GuestCartItem
from factorybay.repositories.cart_repository import CartRepository

logger = logging.getLogger(__name__)

GUEST_CART_COOKIE = "guest_cart"
GUEST_SESSION_COOKIE = "guest_session_id"
GUEST_CART_MAX_AGE = 30 * 24 * 60 * 60


def parse_guest_cart(raw: Optional[str]) -> List[GuestCartItem]:
    """Decode the cookie value. Anything unreadable is an empty cart."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
        return [GuestCartItem.model_validate(item) for item in data]
    except (ValueError, TypeError) as e:
        logger.warning(f"Discarding unreadable guest cart: {e}")
        return []


def serialize_guest_cart(items: List[GuestCartItem]) -> str:
    return json.dumps([item.model_dump(by_alias=True) for item in items])


def add_to_guest_cart(items: List[GuestCartItem], variant_id: str, quantity: int = 1) -> List[GuestCartItem]:
    result = [item.model_copy() for item in items]
    for item in result:
        if item.variant_id == variant_id:
            item.quantity += quantity
            return result
    result.append(GuestCartItem(variant_id=variant_id, quantity=quantity))
    return result


def remove_from_guest_cart(items: List[GuestCartItem], variant_id: str) -> List[GuestCartItem]:
    return [item for item in items if item.variant_id != variant_id]


def update_guest_cart_quantity(items: List[GuestCartItem], variant_id: str, quantity: int) -> List[GuestCartItem]:
    """Set a line's quantity; zero or less removes the line"""
    if quantity <= 0:
        return remove_from_guest_cart(items, variant_id)
    return [
        GuestCartItem(variant_id=item.variant_id, quantity=quantity) if item.variant_id == variant_id else item
        for item in items
    ]


def guest_cart_count(items: List[GuestCartItem]) -> int:
    return sum(item.quantity for item in items)


def write_guest_cart_cookie(response: Response, items: List[GuestCartItem], session_id: Optional[str] = None) -> None:
    response.set_cookie(
        key=GUEST_CART_COOKIE,
        value=serialize_guest_cart(items),
        max_age=GUEST_CART_MAX_AGE,
        httponly=True,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        key=GUEST_SESSION_COOKIE,
        value=session_id or str(uuid.uuid4()),
        max_age=GUEST_CART_MAX_AGE,
        httponly=True,
        samesite="lax",
        path="/",
    )


def clear_guest_cart_cookie(response: Response) -> None:
    response.delete_cookie(key=GUEST_CART_COOKIE, path="/")
    response.delete_cookie(key=GUEST_SESSION_COOKIE, path="/")


def merge_guest_cart_into_user(cart: CartRepository, user_id: str, items: List[GuestCartItem]) -> int:
    """
    Move guest lines into the user's persistent cart

    Lines whose variant no longer exists are skipped.

    Returns:
        Number of lines merged
    """
    merged = 0
    for item in items:
        try:
            cart.add_to_cart(user_id, item.variant_id, item.quantity)
            merged += 1
        except NotFoundError as e:
            logger.warning(f"Skipping guest cart line {item.variant_id}: {e}")
    return merged
