"""
Promotional Category Domain Models

A promotional category is a merchandising shelf ("Summer Sale",
"New In") that holds a quota of each product:

    (c:PromotionalCategory)-[:HAS_ITEM {allocatedQuantity, soldQuantity}]->(p:Product)

A product is shown on the shelf while allocated > sold.
"""
from typing import Optional

from pydantic import Field

from factorybay.domain.base import GraphModel
from factorybay.domain.product import ProductWithVariants


class PromotionalCategory(GraphModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    start_date: Optional[str] = Field(None, description="ISO date the promotion starts")
    end_date: Optional[str] = Field(None, description="ISO date the promotion ends")
    created_at: Optional[int] = Field(None, description="Epoch milliseconds")
    updated_at: Optional[int] = Field(None, description="Epoch milliseconds")


class PromotionalCategoryCreate(GraphModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = Field(None, description="Derived from name when omitted")
    description: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class PromotionalCategoryUpdate(GraphModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class PromotionalCategoryItem(GraphModel):
    """The HAS_ITEM edge between a promotional category and a product"""

    id: str
    category_id: str
    product_id: str
    allocated_quantity: int = Field(0, ge=0)
    sold_quantity: int = Field(0, ge=0)
    added_at: Optional[int] = Field(None, description="Epoch milliseconds")

    @property
    def remaining_quantity(self) -> int:
        return self.allocated_quantity - self.sold_quantity


class PromotionalItemDetails(GraphModel):
    """A product on a promotional shelf with its quota"""

    product: ProductWithVariants
    allocated_quantity: int
    sold_quantity: int
    remaining_quantity: int


class ProductPromotion(GraphModel):
    """A promotional category a product belongs to, with its quota"""

    category: PromotionalCategory
    allocated_quantity: int
    sold_quantity: int
    remaining_quantity: int
