"""
Shared base for graph-backed domain models

Node properties are stored in camelCase (stockPrice, isActive); Python code
uses snake_case attributes. Every model accepts either form and serializes
back to camelCase for API responses.

Author: TM3
Date: 2025-10-17
"""
import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GraphModel(BaseModel):
    """Base model mapping camelCase graph properties to snake_case fields"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dict with camelCase keys"""
        return self.model_dump(by_alias=True, mode="json")


class OperationResult(GraphModel):
    """Outcome of a mutation that can be refused for business reasons"""

    success: bool = Field(..., description="Whether the operation was applied")
    error: Optional[str] = Field(None, description="User-facing reason when refused")
    data: Optional[Dict[str, Any]] = Field(None, description="Extra payload")


def slugify(name: str) -> str:
    """
    URL slug for a display name.

    Lowercase, runs of characters outside [a-z0-9] become a single "-",
    leading and trailing "-" stripped.

    >>> slugify("Men's Jackets & Coats")
    'men-s-jackets-coats'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")
