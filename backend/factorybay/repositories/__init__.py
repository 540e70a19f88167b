"""
Repository Layer - Data Access

This layer runs all Cypher queries and returns domain models.
Each repository wraps one neo4j Session supplied by the caller.

Author: TM3
Date: 2025-10-17
"""
from factorybay.repositories.product_repository import ProductRepository
from factorybay.repositories.custom_filter_repository import CustomFilterRepository
from factorybay.repositories.category_repository import CategoryRepository
from factorybay.repositories.promotional_category_repository import PromotionalCategoryRepository
from factorybay.repositories.cart_repository import CartRepository
from factorybay.repositories.order_repository import OrderRepository
from factorybay.repositories.user_repository import UserRepository
from factorybay.repositories.user_profile_repository import UserProfileRepository
from factorybay.repositories.browsing_history_repository import BrowsingHistoryRepository
from factorybay.repositories.recommendation_repository import RecommendationRepository

__all__ = [
    'ProductRepository',
    'CustomFilterRepository',
    'CategoryRepository',
    'PromotionalCategoryRepository',
    'CartRepository',
    'OrderRepository',
    'UserRepository',
    'UserProfileRepository',
    'BrowsingHistoryRepository',
    'RecommendationRepository',
]
