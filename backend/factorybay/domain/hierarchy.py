"""
Hierarchy Domain Models

CustomFilter: facet tags in a multi-parent DAG (CHILD_OF edges).
Category: single-parent trees grouped by a top-level hierarchy key.
Validation report types shared by the maintenance tooling.

Author: TM3
Date: 2025-10-17
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from factorybay.domain.base import GraphModel


class CustomFilter(GraphModel):
    """
    A facet tag node

    level is 0 for a root and 1 + max(parent levels) otherwise.
    parent_id is the first parent for callers that only show one;
    parent_ids lists all of them when the query loaded them.
    """

    id: str = Field(..., description="filter-<epoch ms>-<random>")
    name: str
    slug: str
    parent_id: Optional[str] = None
    parent_ids: List[str] = Field(default_factory=list)
    level: int = Field(0, ge=0)
    is_active: bool = True
    is_featured: bool = False
    created_at: Optional[int] = Field(None, description="Epoch milliseconds")
    updated_at: Optional[int] = Field(None, description="Epoch milliseconds")


class CustomFilterWithChildren(CustomFilter):
    children: List["CustomFilterWithChildren"] = Field(default_factory=list)
    product_count: Optional[int] = None


class ConflictingParent(GraphModel):
    id: str
    name: str


class CycleValidation(GraphModel):
    valid: bool
    error: Optional[str] = None
    conflicting_parent: Optional[ConflictingParent] = None


class Category(GraphModel):
    """
    Category node in a single-parent tree

    hierarchy groups trees (ladies, gents, kids, ...). product_count is only
    set by queries that aggregate HAS_CATEGORY edges.
    """

    id: str
    name: str
    slug: str
    hierarchy: str
    parent_id: Optional[str] = None
    level: int = Field(0, ge=0)
    is_active: bool = True
    is_featured: bool = False
    product_count: Optional[int] = None
    created_at: Optional[int] = Field(None, description="Epoch milliseconds")
    updated_at: Optional[int] = Field(None, description="Epoch milliseconds")


class CategoryWithChildren(Category):
    children: List["CategoryWithChildren"] = Field(default_factory=list)


IssueType = Literal["error", "warning"]


class HierarchyIssue(GraphModel):
    type: IssueType
    category: str = Field(..., description="cycle, level, orphaned-filter, duplicate-name, orphaned-product")
    message: str
    details: Optional[Dict[str, Any]] = None


class HierarchyReport(GraphModel):
    valid: bool
    issues: List[HierarchyIssue] = Field(default_factory=list)
    total_filters: int = 0
    checks_run: int = 0

    @property
    def errors(self) -> List[HierarchyIssue]:
        return [i for i in self.issues if i.type == "error"]

    @property
    def warnings(self) -> List[HierarchyIssue]:
        return [i for i in self.issues if i.type == "warning"]


CustomFilterWithChildren.model_rebuild()
CategoryWithChildren.model_rebuild()
