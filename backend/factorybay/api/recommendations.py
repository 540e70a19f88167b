"""
Recommendations API Endpoints
Browsing-history, similarity and preference based product suggestions
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from neo4j import Session

from factorybay.core.auth import TokenUser, get_current_user
from factorybay.core.database import session_dep
from factorybay.repositories.browsing_history_repository import BrowsingHistoryRepository
from factorybay.repositories.product_repository import ProductRepository
from factorybay.repositories.recommendation_repository import RecommendationRepository
from factorybay.repositories.user_profile_repository import UserProfileRepository

router = APIRouter()


def _products(products) -> dict:
    return {"success": True, "count": len(products), "data": [p.to_dict() for p in products]}


@router.get("/for-me")
def get_recommendations_for_me(
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    """
    Personal recommendations

    Falls back to saved preferences, then to new arrivals, when the user
    has no browsing history yet.
    """
    repo = RecommendationRepository(session)
    products = repo.get_recommendations_for_user(current_user.id, limit=limit)
    if not products:
        prefs = UserProfileRepository(session).get_user_preferences(current_user.id)
        if prefs:
            products = repo.get_recommendations_by_preferences(
                brands=prefs.preferred_brands,
                categories=prefs.preferred_categories,
                colors=prefs.preferred_colors,
                price_min=(prefs.price_range.min or None) if prefs.price_range else None,
                price_max=(prefs.price_range.max or None) if prefs.price_range else None,
                limit=limit,
            )
    if not products:
        products = repo.get_new_arrivals(limit=limit)
    return _products(products)


@router.get("/similar/{product_id}")
def get_similar_products(
    product_id: str,
    limit: int = Query(6, ge=1, le=50),
    session: Session = Depends(session_dep),
):
    if ProductRepository(session).get_product_by_id(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return _products(RecommendationRepository(session).get_similar_products(product_id, limit=limit))


@router.get("/trending")
def get_trending_products(
    limit: int = Query(10, ge=1, le=50),
    days: int = Query(7, ge=1, le=90),
    session: Session = Depends(session_dep),
):
    return _products(RecommendationRepository(session).get_trending_products(limit=limit, days=days))


@router.get("/new-arrivals")
def get_new_arrivals(
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(session_dep),
):
    return _products(RecommendationRepository(session).get_new_arrivals(limit=limit))


@router.get("/by-preferences")
def get_by_preferences(
    brands: Optional[List[str]] = Query(None),
    categories: Optional[List[str]] = Query(None),
    colors: Optional[List[str]] = Query(None),
    price_min: Optional[float] = Query(None, alias="priceMin", ge=0),
    price_max: Optional[float] = Query(None, alias="priceMax", ge=0),
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(session_dep),
):
    products = RecommendationRepository(session).get_recommendations_by_preferences(
        brands=brands,
        categories=categories,
        colors=colors,
        price_min=price_min,
        price_max=price_max,
        limit=limit,
    )
    return _products(products)


@router.get("/history")
def get_browsing_history(
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    """Recent views plus the brands and categories the user looks at most"""
    history = BrowsingHistoryRepository(session)
    return {
        "success": True,
        "data": {
            "views": [v.to_dict() for v in history.get_user_browsing_history(current_user.id, limit=limit)],
            "recentlyViewed": [p.to_dict() for p in history.get_recently_viewed_products(current_user.id)],
            "preferredBrands": history.get_preferred_brands_from_history(current_user.id),
            "preferredCategories": history.get_preferred_categories_from_history(current_user.id),
        },
    }
