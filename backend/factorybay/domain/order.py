"""
Cart and Order Domain Models

Author: TM3
Date: 2025-10-17
"""
import json
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from factorybay.domain.base import GraphModel
from factorybay.domain.product import Product, ProductVariant

OrderStatus = Literal["PENDING", "CONFIRMED", "FULFILLED", "CANCELLED"]
DeliveryMethod = Literal["SHIP", "COLLECT"]

ORDER_STATUSES = ("PENDING", "CONFIRMED", "FULFILLED", "CANCELLED")


class CartItem(GraphModel):
    id: str
    user_id: str
    variant_id: str
    quantity: int = Field(..., ge=1)
    added_at: Optional[str] = None


class CartItemWithDetails(CartItem):
    """Cart line joined with the variant and its product"""

    variant: ProductVariant
    product: Product

    @property
    def line_total(self) -> float:
        return self.product.stock_price * self.quantity


class GuestCartItem(GraphModel):
    variant_id: str
    quantity: int = Field(..., ge=1)


class ShippingAddress(GraphModel):
    full_name: str = Field(..., min_length=1)
    address_line1: str = Field(..., min_length=1)
    address_line2: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)


class OrderItem(GraphModel):
    """
    Order line - price is frozen at purchase time

    variant/product are only present when loaded with details.
    """

    id: str
    order_id: str
    variant_id: str
    quantity: int = Field(..., ge=1)
    price_at_purchase: float = Field(..., ge=0)
    variant: Optional[ProductVariant] = None
    product: Optional[Product] = None


class Order(GraphModel):
    """
    Order domain model

    Fields:
        id: Order ID (uuid)
        order_number: Human-readable number, FB-<epoch ms>
        user_id: Buyer
        status: PENDING, CONFIRMED, FULFILLED or CANCELLED
        total_amount: Items plus shipping
        shipping_address: Stored on the node as a JSON string
        delivery_method: SHIP or COLLECT
        payment_proof: URL of the uploaded proof of payment
    """

    id: str
    order_number: str
    user_id: str
    status: OrderStatus = "PENDING"
    total_amount: float = Field(..., ge=0)
    shipping_address: ShippingAddress
    delivery_method: DeliveryMethod
    payment_proof: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("shipping_address", mode="before")
    @classmethod
    def parse_shipping_address(cls, value):
        if isinstance(value, str):
            return json.loads(value)
        return value


class OrderWithItems(Order):
    items: List[OrderItem] = Field(default_factory=list)


class OrderLineInput(GraphModel):
    variant_id: str
    quantity: int = Field(..., ge=1)
    price_at_purchase: float = Field(..., ge=0)


class OrderCreate(GraphModel):
    user_id: str
    items: List[OrderLineInput]
    total_amount: float = Field(..., ge=0)
    shipping_address: ShippingAddress
    delivery_method: DeliveryMethod
