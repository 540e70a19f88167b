"""
Product Domain Model

Represents a catalog product and its sellable variants (size/color).
This is the single source of truth for product data structure.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Literal, Optional

from pydantic import Field

from factorybay.domain.base import GraphModel

ProductCategory = Literal["SHIRT", "PANTS", "JACKET", "DRESS", "SHOES", "ACCESSORIES"]
Gender = Literal["MEN", "WOMEN", "UNISEX"]
Size = Literal["XS", "S", "M", "L", "XL", "XXL"]


class ProductVariant(GraphModel):
    """
    A purchasable size/color combination of a product

    Fields:
        id: Variant ID (uuid)
        product_id: Parent product ID
        size: XS..XXL
        color: Free-form color name
        stock_quantity: Units on hand
        images: Public image URLs
    """

    id: str = Field(..., description="Variant ID")
    product_id: str = Field(..., description="Parent product ID")
    size: str = Field(..., description="Size label")
    color: str = Field(..., description="Color name")
    stock_quantity: int = Field(0, description="Units in stock", ge=0)
    images: List[str] = Field(default_factory=list, description="Image URLs")

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


class Product(GraphModel):
    """
    Product domain model - represents a product in the catalog

    Fields:
        id: Product ID (uuid)
        name: Display name
        description: Long description
        brand: Brand name
        category: Garment category (SHIRT, PANTS, ...)
        gender: MEN, WOMEN or UNISEX
        stock_price: Selling price charged at checkout
        retail_price: Reference (list) price shown as strike-through
        sku: Stock Keeping Unit (unique)
        created_at / updated_at: ISO timestamps
    """

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    brand: str = Field(..., description="Brand")
    category: str = Field(..., description="Garment category")
    gender: str = Field(..., description="Target gender")
    stock_price: float = Field(..., description="Selling price", ge=0)
    retail_price: float = Field(..., description="Retail reference price", ge=0)
    sku: str = Field(..., description="Stock Keeping Unit")
    created_at: Optional[str] = Field(None, description="Creation timestamp")
    updated_at: Optional[str] = Field(None, description="Last update timestamp")

    @property
    def discount_percentage(self) -> int:
        """Discount of stock price against retail price, rounded"""
        if not self.retail_price or self.stock_price >= self.retail_price:
            return 0
        return round((1 - self.stock_price / self.retail_price) * 100)


class ProductWithVariants(Product):
    variants: List[ProductVariant] = Field(default_factory=list)

    @property
    def total_stock(self) -> int:
        return sum(v.stock_quantity for v in self.variants)


class VariantCreate(GraphModel):
    size: Size
    color: str
    stock_quantity: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)


class VariantUpdate(GraphModel):
    size: Optional[Size] = None
    color: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None


class ProductCreate(GraphModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    brand: str = Field(..., min_length=1)
    category: ProductCategory
    gender: Gender
    stock_price: float = Field(..., ge=0)
    retail_price: float = Field(..., ge=0)
    sku: str = Field(..., min_length=1)
    variants: List[VariantCreate] = Field(default_factory=list)


class ProductUpdate(GraphModel):
    name: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[ProductCategory] = None
    gender: Optional[Gender] = None
    stock_price: Optional[float] = Field(None, ge=0)
    retail_price: Optional[float] = Field(None, ge=0)
    sku: Optional[str] = None


class ProductFilters(GraphModel):
    """Optional catalog listing filters. min/max apply to stock price."""

    category: Optional[str] = None
    brand: Optional[str] = None
    gender: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    search: Optional[str] = None


class VariantWithProduct(ProductVariant):
    product: Product
