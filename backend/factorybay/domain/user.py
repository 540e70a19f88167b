"""
User Domain Models

Accounts, shopping preferences and body measurements.

Author: TM3
Date: 2025-10-17
"""
import json
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from factorybay.domain.base import GraphModel

UserRole = Literal["CUSTOMER", "ADMIN"]
MeasurementUnit = Literal["METRIC", "IMPERIAL"]


class User(GraphModel):
    """
    User domain model

    password_hash is only populated by lookups used for login and is never
    included in API responses.
    """

    id: str = Field(..., description="User ID (uuid)")
    email: str = Field(..., description="Lowercased email address")
    role: UserRole = Field("CUSTOMER", description="Authorization role")
    first_name: Optional[str] = Field(None, description="Given name")
    last_name: Optional[str] = Field(None, description="Family name")
    phone: Optional[str] = Field(None, description="Contact phone")
    password_hash: Optional[str] = Field(None, description="bcrypt hash", exclude=True)
    created_at: Optional[str] = Field(None, description="Creation timestamp (ISO)")
    updated_at: Optional[str] = Field(None, description="Last update timestamp (ISO)")


class UserCreate(GraphModel):
    email: str
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class UserUpdate(GraphModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class PriceRange(GraphModel):
    min: float = 0
    max: float = 0


class UserPreference(GraphModel):
    """Shopping preferences used by preference-based recommendations"""

    user_id: Optional[str] = None
    preferred_brands: List[str] = Field(default_factory=list)
    preferred_colors: List[str] = Field(default_factory=list)
    preferred_categories: List[str] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None
    updated_at: Optional[str] = None

    @field_validator("price_range", mode="before")
    @classmethod
    def parse_price_range(cls, value):
        # Stored on the node as a JSON string
        if isinstance(value, str):
            return json.loads(value) if value else None
        return value


class UserMeasurements(GraphModel):
    user_id: Optional[str] = None
    chest: Optional[float] = None
    waist: Optional[float] = None
    hips: Optional[float] = None
    shoulders: Optional[float] = None
    inseam: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    preferred_size: Optional[str] = None
    unit: MeasurementUnit = "METRIC"
    updated_at: Optional[str] = None
