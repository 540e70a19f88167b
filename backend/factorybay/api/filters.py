"""
Custom Filters API Endpoints
Multi-parent filter hierarchy used for faceted navigation

- Storefront reads: flat list, tree, roots, featured, breadcrumbs, products
- Admin writes: create, rename, reparent (cycle-checked), feature, delete
- Admin maintenance: hierarchy validation and level recalculation

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from neo4j import Session

from factorybay.core.auth import TokenUser, require_admin
from factorybay.core.database import session_dep
from factorybay.core.exceptions import HierarchyCycleError
from factorybay.domain.base import GraphModel
from factorybay.domain.hierarchy import CustomFilterWithChildren
from factorybay.repositories.custom_filter_repository import CustomFilterRepository, build_filter_tree
from factorybay.services.filter_maintenance_service import FilterMaintenanceService

logger = logging.getLogger(__name__)

router = APIRouter()


# Request models
class FilterCreateRequest(GraphModel):
    name: str
    parent_ids: List[str] = []
    is_featured: bool = False


class FilterUpdateRequest(GraphModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None


class FilterParentsRequest(GraphModel):
    parent_ids: List[str]


class FeaturedRequest(GraphModel):
    is_featured: bool


class FilterIdsRequest(GraphModel):
    filter_ids: List[str]


def _apply_counts(nodes: List[CustomFilterWithChildren], counts: dict) -> None:
    for node in nodes:
        node.product_count = counts.get(node.id, 0)
        _apply_counts(node.children, counts)


# =============================================================================
# Reads
# =============================================================================

@router.get("")
def get_all_filters(session: Session = Depends(session_dep)):
    """Every filter once, by level then name, each with all of its parentIds"""
    filters = CustomFilterRepository(session).get_all_filters_with_parents()
    return {"success": True, "count": len(filters), "data": [f.to_dict() for f in filters]}


@router.get("/tree")
def get_filter_tree(
    with_counts: bool = Query(False, alias="withCounts"),
    session: Session = Depends(session_dep),
):
    """
    The whole hierarchy as nested nodes

    A filter with several parents appears under each of them.
    """
    repo = CustomFilterRepository(session)
    filters = repo.get_all_filters()
    tree = build_filter_tree(filters)
    if with_counts:
        _apply_counts(tree, repo.get_product_counts_for_filters([f.id for f in filters]))
    return {"success": True, "data": [node.to_dict() for node in tree]}


@router.get("/roots")
def get_root_filters(session: Session = Depends(session_dep)):
    return {"success": True, "data": [f.to_dict() for f in CustomFilterRepository(session).get_root_filters()]}


@router.get("/featured")
def get_featured_filters(session: Session = Depends(session_dep)):
    return {"success": True, "data": [f.to_dict() for f in CustomFilterRepository(session).get_featured_filters()]}


@router.post("/products")
def get_products_by_filters(
    body: FilterIdsRequest,
    full: bool = Query(True, description="Return products with variants instead of IDs"),
    limit: int = Query(50, ge=1, le=500),
    session: Session = Depends(session_dep),
):
    """
    Products matching any of the filters

    full=true matches descendants too and returns products with variants;
    full=false returns IDs of products tagged directly.
    """
    repo = CustomFilterRepository(session)
    if full:
        products = repo.get_full_products_by_filters(body.filter_ids, limit=limit)
        return {"success": True, "count": len(products), "data": [p.to_dict() for p in products]}
    product_ids = repo.get_products_by_filters(body.filter_ids)
    return {"success": True, "count": len(product_ids), "data": product_ids}


@router.post("/product-counts")
def get_product_counts(body: FilterIdsRequest, session: Session = Depends(session_dep)):
    return {"success": True, "data": CustomFilterRepository(session).get_product_counts_for_filters(body.filter_ids)}


@router.post("/breadcrumbs")
def get_breadcrumbs(body: FilterIdsRequest, session: Session = Depends(session_dep)):
    trails = CustomFilterRepository(session).get_filters_breadcrumbs(body.filter_ids)
    return {
        "success": True,
        "data": {filter_id: [f.to_dict() for f in trail] for filter_id, trail in trails.items()},
    }


@router.get("/{filter_id}")
def get_filter(filter_id: str, session: Session = Depends(session_dep)):
    f = CustomFilterRepository(session).get_filter_by_id(filter_id)
    if f is None:
        raise HTTPException(status_code=404, detail="Filter not found")
    return {"success": True, "data": f.to_dict()}


@router.get("/{filter_id}/children")
def get_child_filters(filter_id: str, session: Session = Depends(session_dep)):
    children = CustomFilterRepository(session).get_child_filters(filter_id)
    return {"success": True, "data": [f.to_dict() for f in children]}


@router.get("/{filter_id}/subtree")
def get_filter_subtree(filter_id: str, session: Session = Depends(session_dep)):
    node = CustomFilterRepository(session).get_filter_with_children(filter_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Filter not found")
    return {"success": True, "data": node.to_dict()}


@router.get("/{filter_id}/breadcrumb")
def get_breadcrumb(filter_id: str, session: Session = Depends(session_dep)):
    trail = CustomFilterRepository(session).get_filter_breadcrumb(filter_id)
    return {"success": True, "data": [f.to_dict() for f in trail]}


@router.get("/{filter_id}/parents")
def get_parent_ids(filter_id: str, session: Session = Depends(session_dep)):
    return {"success": True, "data": CustomFilterRepository(session).get_all_parent_filter_ids(filter_id)}


@router.get("/{filter_id}/descendants")
def get_descendant_ids(filter_id: str, session: Session = Depends(session_dep)):
    return {"success": True, "data": CustomFilterRepository(session).get_all_child_filter_ids(filter_id)}


@router.get("/{filter_id}/ancestors")
def get_ancestor_ids(filter_id: str, session: Session = Depends(session_dep)):
    return {"success": True, "data": CustomFilterRepository(session).get_all_ancestor_filter_ids(filter_id)}


@router.get("/{filter_id}/products")
def get_filter_products(
    filter_id: str,
    include_children: bool = Query(True, alias="includeChildren"),
    session: Session = Depends(session_dep),
):
    repo = CustomFilterRepository(session)
    product_ids = repo.get_products_by_filter(filter_id, include_children=include_children)
    return {"success": True, "count": len(product_ids), "data": product_ids}


@router.get("/{filter_id}/product-count")
def get_filter_product_count(
    filter_id: str,
    include_children: bool = Query(True, alias="includeChildren"),
    session: Session = Depends(session_dep),
):
    count = CustomFilterRepository(session).get_product_count_by_filter(filter_id, include_children=include_children)
    return {"success": True, "data": {"filterId": filter_id, "productCount": count}}


# =============================================================================
# Admin writes
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_filter(
    body: FilterCreateRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    f = CustomFilterRepository(session).create_filter(
        body.name,
        parent_ids=body.parent_ids,
        is_featured=body.is_featured,
    )
    return {"success": True, "message": "Filter created", "data": f.to_dict()}


@router.patch("/{filter_id}")
def update_filter(
    filter_id: str,
    body: FilterUpdateRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    f = CustomFilterRepository(session).update_filter(filter_id, name=body.name, is_active=body.is_active)
    if f is None:
        raise HTTPException(status_code=404, detail="Filter not found")
    return {"success": True, "message": "Filter updated", "data": f.to_dict()}


@router.post("/{filter_id}/validate-parents")
def validate_parents(
    filter_id: str,
    body: FilterParentsRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """Dry run of a parent change: reports whether it would create a cycle"""
    validation = CustomFilterRepository(session).validate_no_cycles(filter_id, body.parent_ids)
    return {"success": True, "data": validation.to_dict()}


@router.put("/{filter_id}/parents")
def update_filter_parents(
    filter_id: str,
    body: FilterParentsRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    """
    Replace a filter's parents

    Refused with 409 and the conflicting parent when the change would
    create a cycle. Levels of the filter and its descendants are recomputed.
    """
    result = CustomFilterRepository(session).update_filter_parents(filter_id, body.parent_ids)
    if not result.success:
        if result.data and result.data.get("conflictingParent"):
            raise HierarchyCycleError(result.error, conflicting_parent=result.data["conflictingParent"])
        code = 404 if "not found" in (result.error or "") else 400
        raise HTTPException(status_code=code, detail=result.error)
    return {"success": True, "message": "Parents updated", "data": result.data}


@router.put("/{filter_id}/featured")
def update_featured(
    filter_id: str,
    body: FeaturedRequest,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    f = CustomFilterRepository(session).update_filter_featured_status(filter_id, body.is_featured)
    if f is None:
        raise HTTPException(status_code=404, detail="Filter not found")
    return {"success": True, "data": f.to_dict()}


@router.delete("/{filter_id}")
def delete_filter(
    filter_id: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    result = CustomFilterRepository(session).delete_filter(filter_id)
    if not result.success:
        code = 404 if result.error == "Filter not found" else 409
        raise HTTPException(status_code=code, detail=result.error)
    return {"success": True, "message": "Filter deleted"}


# =============================================================================
# Admin maintenance
# =============================================================================

@router.get("/maintenance/validate")
def validate_hierarchy(
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    report = FilterMaintenanceService(session).validate_hierarchy()
    return {"success": True, "data": report.to_dict()}


@router.post("/maintenance/recalculate-levels")
def recalculate_levels(
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    service = FilterMaintenanceService(session)
    result = service.recalculate_levels()
    return {
        "success": True,
        "data": {**result, "distribution": service.get_level_distribution()},
    }
