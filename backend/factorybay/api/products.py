"""
Products API Endpoints
Handles the product catalog: storefront queries and admin management

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from neo4j import Session

from factorybay.core.auth import TokenUser, get_current_user_optional, require_admin
from factorybay.core.database import session_dep
from factorybay.domain.base import GraphModel
from factorybay.domain.product import (
    ProductCreate,
    ProductFilters,
    ProductUpdate,
    VariantCreate,
    VariantUpdate,
)
from factorybay.repositories.browsing_history_repository import BrowsingHistoryRepository
from factorybay.repositories.category_repository import CategoryRepository
from factorybay.repositories.custom_filter_repository import CustomFilterRepository
from factorybay.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class CategoryAssignment(GraphModel):
    category_ids: List[str]


class FilterAssignment(GraphModel):
    filter_ids: List[str]


@router.get("")
def get_products(
    category: Optional[str] = Query(None, description="Garment category (SHIRT, PANTS, ...)"),
    brand: Optional[str] = Query(None),
    gender: Optional[str] = Query(None, description="MEN, WOMEN or UNISEX"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    search: Optional[str] = Query(None, description="Search name and brand"),
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(session_dep),
):
    """
    List products with variants, newest first

    Returns:
        {"success": true, "total": N, "count": n, "data": [...]}
    """
    filters = ProductFilters(
        category=category,
        brand=brand,
        gender=gender,
        min_price=min_price,
        max_price=max_price,
        search=search,
    )
    repo = ProductRepository(session)
    products = repo.get_all_products(filters, limit=limit)

    return {
        "success": True,
        "total": repo.get_product_count(filters),
        "count": len(products),
        "data": [p.to_dict() for p in products],
    }


@router.get("/brands")
def get_brands(session: Session = Depends(session_dep)):
    return {"success": True, "data": ProductRepository(session).get_all_brands()}


@router.get("/{product_id}")
def get_product(
    product_id: str,
    session: Session = Depends(session_dep),
    current_user: Optional[TokenUser] = Depends(get_current_user_optional),
):
    """Product detail. Views by signed-in users are recorded for recommendations."""
    product = ProductRepository(session).get_product_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    if current_user:
        history = BrowsingHistoryRepository(session)
        history.track_product_view(current_user.id, product_id)
        history.cleanup_old_browsing_history(current_user.id)

    return {
        "success": True,
        "data": {
            **product.to_dict(),
            "filters": [f.to_dict() for f in CustomFilterRepository(session).get_product_filters(product_id)],
        },
    }


# =============================================================================
# Admin
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    data: ProductCreate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    product = ProductRepository(session).create_product(data)
    return {"success": True, "message": "Product created", "data": product.to_dict()}


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    data: ProductUpdate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    product = ProductRepository(session).update_product(product_id, data)
    return {"success": True, "message": "Product updated", "data": product.to_dict()}


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if not ProductRepository(session).delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "message": "Product deleted"}


@router.post("/{product_id}/variants", status_code=status.HTTP_201_CREATED)
def add_variant(
    product_id: str,
    data: VariantCreate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    variant = ProductRepository(session).add_variant(product_id, data)
    return {"success": True, "data": variant.to_dict()}


@router.patch("/variants/{variant_id}")
def update_variant(
    variant_id: str,
    data: VariantUpdate,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    variant = ProductRepository(session).update_variant(variant_id, data)
    return {"success": True, "data": variant.to_dict()}


@router.delete("/variants/{variant_id}")
def delete_variant(
    variant_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if not ProductRepository(session).delete_variant(variant_id):
        raise HTTPException(status_code=404, detail="Variant not found")
    return {"success": True, "message": "Variant deleted"}


@router.put("/{product_id}/categories")
def assign_categories(
    product_id: str,
    body: CategoryAssignment,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Replace the product's categories. Only leaf categories are accepted."""
    if ProductRepository(session).get_product_by_id(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    CategoryRepository(session).assign_product_to_categories(product_id, body.category_ids)
    return {"success": True, "message": "Categories updated"}


@router.put("/{product_id}/filters")
def assign_filters(
    product_id: str,
    body: FilterAssignment,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if ProductRepository(session).get_product_by_id(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    repo = CustomFilterRepository(session)
    repo.tag_product_with_filters(product_id, body.filter_ids)
    return {
        "success": True,
        "message": "Filters updated",
        "data": [f.to_dict() for f in repo.get_product_filters(product_id)],
    }
