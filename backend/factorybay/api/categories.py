"""
Categories API Endpoints
Single-parent category trees, one per hierarchy (e.g. "ladies", "gents")

Products may only be attached to leaf categories; see products.py.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from neo4j import Session

from factorybay.core.auth import TokenUser, require_admin
from factorybay.core.database import session_dep
from factorybay.domain.base import GraphModel
from factorybay.repositories.category_repository import CategoryRepository

router = APIRouter()


# Request models
class CategoryCreateRequest(GraphModel):
    name: str
    hierarchy: str
    parent_id: Optional[str] = None
    is_featured: bool = False


class CategoryUpdateRequest(GraphModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None


class CategoryMoveRequest(GraphModel):
    new_parent_id: Optional[str] = None


@router.get("/tree")
def get_category_tree(session: Session = Depends(session_dep)):
    """All categories nested by hierarchy: {"hierarchy": [root, ...]}"""
    tree = CategoryRepository(session).get_category_tree()
    return {
        "success": True,
        "data": {hierarchy: [c.to_dict() for c in roots] for hierarchy, roots in tree.items()},
    }


@router.get("/roots")
def get_root_categories(
    hierarchy: Optional[str] = Query(None),
    session: Session = Depends(session_dep),
):
    repo = CategoryRepository(session)
    categories = repo.get_categories_by_hierarchy(hierarchy) if hierarchy else repo.get_root_categories()
    if hierarchy:
        categories = [c for c in categories if c.level == 0]
    return {"success": True, "data": [c.to_dict() for c in categories]}


@router.get("/featured")
def get_featured_categories(session: Session = Depends(session_dep)):
    return {"success": True, "data": [c.to_dict() for c in CategoryRepository(session).get_featured_categories()]}


@router.get("/leaves")
def get_leaf_categories(
    hierarchy: Optional[str] = Query(None),
    session: Session = Depends(session_dep),
):
    repo = CategoryRepository(session)
    categories = repo.get_leaf_categories_by_hierarchy(hierarchy) if hierarchy else repo.get_leaf_categories()
    return {"success": True, "data": [c.to_dict() for c in categories]}


@router.get("/statistics")
def get_category_statistics(session: Session = Depends(session_dep)):
    return {"success": True, "data": CategoryRepository(session).get_category_statistics()}


@router.get("/duplicates")
def get_duplicate_names(
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    duplicates = CategoryRepository(session).find_duplicate_names()
    return {
        "success": True,
        "data": [
            {"name": d["name"], "categories": [c.to_dict() for c in d["categories"]]}
            for d in duplicates
        ],
    }


@router.get("/products")
def get_products_by_categories(
    category_ids: List[str] = Query(..., alias="categoryIds"),
    session: Session = Depends(session_dep),
):
    """Products with variants in any of the categories or below them"""
    products = CategoryRepository(session).get_full_products_by_categories(category_ids)
    return {"success": True, "count": len(products), "data": [p.to_dict() for p in products]}


@router.get("/{category_id}")
def get_category(category_id: str, session: Session = Depends(session_dep)):
    category = CategoryRepository(session).get_category_by_id(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "data": category.to_dict()}


@router.get("/{category_id}/children")
def get_child_categories(
    category_id: str,
    with_descendant_counts: bool = Query(False, alias="withDescendantCounts"),
    session: Session = Depends(session_dep),
):
    repo = CategoryRepository(session)
    if with_descendant_counts:
        children = repo.get_child_categories_with_descendant_counts(category_id)
    else:
        children = repo.get_child_categories(category_id)
    return {"success": True, "data": [c.to_dict() for c in children]}


@router.get("/{category_id}/path")
def get_category_path(category_id: str, session: Session = Depends(session_dep)):
    """Categories from the root down to this one"""
    return {"success": True, "data": [c.to_dict() for c in CategoryRepository(session).get_category_path(category_id)]}


@router.get("/{category_id}/products")
def get_category_products(
    category_id: str,
    include_descendants: bool = Query(True, alias="includeDescendants"),
    session: Session = Depends(session_dep),
):
    product_ids = CategoryRepository(session).get_products_by_categories(
        [category_id], include_descendants=include_descendants
    )
    return {"success": True, "count": len(product_ids), "data": product_ids}


# =============================================================================
# Admin
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(
    body: CategoryCreateRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    category = CategoryRepository(session).create_category(
        name=body.name,
        hierarchy=body.hierarchy,
        parent_id=body.parent_id,
        is_featured=body.is_featured,
    )
    return {"success": True, "message": "Category created", "data": category.to_dict()}


@router.patch("/{category_id}")
def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    category = CategoryRepository(session).update_category(
        category_id,
        name=body.name,
        is_active=body.is_active,
        is_featured=body.is_featured,
    )
    return {"success": True, "message": "Category updated", "data": category.to_dict()}


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    result = CategoryRepository(session).delete_category(category_id)
    if not result.success:
        code = 404 if result.error == "Category not found" else 409
        raise HTTPException(status_code=code, detail=result.error)
    return {"success": True, "message": "Category deleted"}


@router.post("/{category_id}/move")
def move_category(
    category_id: str,
    body: CategoryMoveRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Re-parent a category; a null newParentId makes it a root"""
    category = CategoryRepository(session).move_category(category_id, body.new_parent_id)
    return {"success": True, "message": "Category moved", "data": category.to_dict()}


@router.get("/{category_id}/products/full")
def get_category_products_with_variants(
    category_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    products = CategoryRepository(session).get_category_products(category_id)
    return {"success": True, "data": [p.to_dict() for p in products]}


@router.get("/{category_id}/unassigned-products")
def get_unassigned_products(
    category_id: str,
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    products = CategoryRepository(session).get_unassigned_products(category_id, limit=limit)
    return {"success": True, "data": [p.to_dict() for p in products]}


@router.post("/{category_id}/products/{product_id}", status_code=status.HTTP_201_CREATED)
def add_product_to_category(
    category_id: str,
    product_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Attach one product to a leaf category without touching its others"""
    CategoryRepository(session).add_product_to_category(product_id, category_id)
    return {"success": True, "message": "Product added to category"}


@router.delete("/{category_id}/products/{product_id}")
def remove_product_from_category(
    category_id: str,
    product_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    if not CategoryRepository(session).remove_product_from_category(product_id, category_id):
        raise HTTPException(status_code=404, detail="Product not found in category")
    return {"success": True, "message": "Product removed from category"}
