"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2025-10-17
"""
from factorybay.domain.base import GraphModel, OperationResult, slugify
from factorybay.domain.user import User, UserPreference, UserMeasurements
from factorybay.domain.product import Product, ProductVariant, ProductWithVariants
from factorybay.domain.order import CartItemWithDetails, Order, OrderItem, OrderWithItems
from factorybay.domain.promotion import PromotionalCategory, PromotionalCategoryItem
from factorybay.domain.hierarchy import (
    Category,
    CategoryWithChildren,
    CustomFilter,
    CustomFilterWithChildren,
    CycleValidation,
    HierarchyIssue,
    HierarchyReport,
)

__all__ = [
    'GraphModel', 'OperationResult', 'slugify',
    'User', 'UserPreference', 'UserMeasurements',
    'Product', 'ProductVariant', 'ProductWithVariants',
    'CartItemWithDetails', 'Order', 'OrderItem', 'OrderWithItems',
    'PromotionalCategory', 'PromotionalCategoryItem',
    'Category', 'CategoryWithChildren', 'CustomFilter', 'CustomFilterWithChildren',
    'CycleValidation', 'HierarchyIssue', 'HierarchyReport',
]
