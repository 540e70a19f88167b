"""
Promotional Categories API Endpoints
Merchandising shelves ("Summer Sale", "New In") holding product quotas

- Storefront reads: list, detail, products with quantity left
- Admin writes: category CRUD, shelf items, moving quota between shelves
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from neo4j import Session
from pydantic import Field

from factorybay.core.auth import TokenUser, require_admin
from factorybay.core.database import session_dep
from factorybay.domain.base import GraphModel
from factorybay.domain.promotion import PromotionalCategoryCreate, PromotionalCategoryUpdate
from factorybay.repositories.promotional_category_repository import PromotionalCategoryRepository

router = APIRouter()

CATEGORY_NOT_FOUND = "Promotional category not found"
ITEM_NOT_FOUND = "Product not found in category"


# Request models
class AddItemRequest(GraphModel):
    product_id: str
    allocated_quantity: int = Field(..., ge=0)


class ItemQuantityRequest(GraphModel):
    allocated_quantity: int = Field(..., ge=0)


class MoveQuantityRequest(GraphModel):
    product_id: str
    from_category_id: str
    to_category_id: str
    quantity: int = Field(..., gt=0)


@router.get("")
def get_promotional_categories(
    active_only: bool = Query(False, alias="activeOnly"),
    session: Session = Depends(session_dep),
):
    categories = PromotionalCategoryRepository(session).get_all_categories(active_only=active_only)
    return {"success": True, "data": [c.to_dict() for c in categories]}


@router.get("/by-product/{product_id}")
def get_product_promotions(
    product_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Shelves a product is on, with its quota on each"""
    promotions = PromotionalCategoryRepository(session).get_product_categories(product_id)
    return {"success": True, "data": [p.to_dict() for p in promotions]}


@router.get("/{category_id}")
def get_promotional_category(category_id: str, session: Session = Depends(session_dep)):
    category = PromotionalCategoryRepository(session).get_category_by_id(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail=CATEGORY_NOT_FOUND)
    return {"success": True, "data": category.to_dict()}


@router.get("/{category_id}/products")
def get_promotional_products(
    category_id: str,
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(session_dep),
):
    products = PromotionalCategoryRepository(session).get_products_by_category(category_id, limit=limit)
    return {"success": True, "count": len(products), "data": [p.to_dict() for p in products]}


# =============================================================================
# Admin
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_promotional_category(
    body: PromotionalCategoryCreate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    category = PromotionalCategoryRepository(session).create_category(body)
    return {
        "success": True,
        "message": "Promotional category created successfully",
        "data": category.to_dict(),
    }


@router.patch("/{category_id}")
def update_promotional_category(
    category_id: str,
    body: PromotionalCategoryUpdate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    category = PromotionalCategoryRepository(session).update_category(category_id, body)
    if category is None:
        raise HTTPException(status_code=404, detail=CATEGORY_NOT_FOUND)
    return {
        "success": True,
        "message": "Promotional category updated successfully",
        "data": category.to_dict(),
    }


@router.delete("/{category_id}")
def delete_promotional_category(
    category_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if not PromotionalCategoryRepository(session).delete_category(category_id):
        raise HTTPException(status_code=404, detail=CATEGORY_NOT_FOUND)
    return {"success": True, "message": "Promotional category deleted successfully"}


@router.get("/{category_id}/items")
def get_promotional_items(
    category_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Every product on the shelf, sold out ones included"""
    items = PromotionalCategoryRepository(session).get_category_items_with_details(category_id)
    return {"success": True, "data": [i.to_dict() for i in items]}


@router.post("/{category_id}/items", status_code=status.HTTP_201_CREATED)
def add_promotional_item(
    category_id: str,
    body: AddItemRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    item = PromotionalCategoryRepository(session).add_product(
        category_id, body.product_id, body.allocated_quantity
    )
    if item is None:
        raise HTTPException(status_code=404, detail="Promotional category or product not found")
    return {"success": True, "message": "Product added to category successfully", "data": item.to_dict()}


@router.patch("/{category_id}/items/{product_id}")
def update_promotional_item(
    category_id: str,
    product_id: str,
    body: ItemQuantityRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    item = PromotionalCategoryRepository(session).update_item_quantity(
        category_id, product_id, body.allocated_quantity
    )
    if item is None:
        raise HTTPException(status_code=404, detail=ITEM_NOT_FOUND)
    return {"success": True, "message": "Quantity updated successfully", "data": item.to_dict()}


@router.delete("/{category_id}/items/{product_id}")
def remove_promotional_item(
    category_id: str,
    product_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if not PromotionalCategoryRepository(session).remove_product(category_id, product_id):
        raise HTTPException(status_code=404, detail=ITEM_NOT_FOUND)
    return {"success": True, "message": "Product removed from category successfully"}


@router.post("/move")
def move_promotional_quantity(
    body: MoveQuantityRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    moved = PromotionalCategoryRepository(session).move_quantity(
        body.product_id, body.from_category_id, body.to_category_id, body.quantity
    )
    if not moved:
        raise HTTPException(
            status_code=400,
            detail="Failed to move quantity. Check if sufficient quantity is available.",
        )
    return {"success": True, "message": "Quantity moved successfully"}
