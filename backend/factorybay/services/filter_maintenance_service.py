"""
Filter Maintenance Service - validation, level repair, seeding and tagging

Purpose:
- Audit the CustomFilter graph (cycles, levels, orphans, duplicates)
- Recompute every level from scratch when edges were edited by hand
- Seed a hierarchy from a JSON config file
- Tag existing products with filters using the config's mapping rules

Used by the maintenance scripts and the admin filters endpoints.

Author: TM3
Date: 2025-10-17
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from neo4j import Session
from neo4j.exceptions import Neo4jError
from pydantic import Field

from factorybay.core.database import execute, fetch_all, fetch_one
from factorybay.core.exceptions import ConflictError, ValidationError
from factorybay.domain.base import GraphModel
from factorybay.domain.hierarchy import HierarchyIssue, HierarchyReport
from factorybay.domain.product import Product
from factorybay.repositories.custom_filter_repository import CustomFilterRepository

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "default_filter_hierarchy.json"
PREMIUM_FILTER_NAME = "Premium Items"
MAX_CYCLE_LENGTH = 20


class FilterSeed(GraphModel):
    name: str
    level: int = Field(0, ge=0)
    parents: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    is_featured: bool = False


class HierarchyConfig(GraphModel):
    """Contents of a filter hierarchy JSON file"""

    version: str = "1.0"
    description: str = ""
    filters: List[FilterSeed] = Field(default_factory=list)
    premium_brands: List[str] = Field(default_factory=list)
    category_mappings: Dict[str, List[str]] = Field(default_factory=dict)
    gender_mappings: Dict[str, str] = Field(default_factory=dict)
    product_name_patterns: Dict[str, List[str]] = Field(default_factory=dict)


class AssignmentStats(GraphModel):
    total_products: int = 0
    assigned_products: int = 0
    unassigned_products: int = 0
    total_assignments: int = 0
    assignments_by_filter: Dict[str, int] = Field(default_factory=dict)


def load_hierarchy_config(path: Optional[str] = None) -> HierarchyConfig:
    """
    Read a hierarchy config file

    Raises:
        FileNotFoundError: The file does not exist
        pydantic.ValidationError: The JSON does not match HierarchyConfig
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    with open(config_path, "r", encoding="utf-8") as f:
        return HierarchyConfig.model_validate(json.load(f))


def determine_filters_for_product(
    product: Product,
    config: HierarchyConfig,
    filter_map: Dict[str, str],
) -> List[str]:
    """
    Filter IDs a product should be tagged with

    Rules, in order: gender mapping, category mapping, premium brand,
    then case-insensitive substring match of each name pattern against
    name + description. Names missing from filter_map are ignored.
    """
    names: Dict[str, None] = {}

    gender_filter = config.gender_mappings.get(product.gender)
    if gender_filter:
        names[gender_filter] = None

    for name in config.category_mappings.get(product.category, []):
        names[name] = None

    if product.brand in config.premium_brands:
        names[PREMIUM_FILTER_NAME] = None

    search_text = f"{product.name} {product.description or ''}".lower()
    for pattern, filter_names in config.product_name_patterns.items():
        if pattern.lower() in search_text:
            for name in filter_names:
                names[name] = None

    return [filter_map[name] for name in names if name in filter_map]


class FilterMaintenanceService:
    """Whole-graph checks and bulk operations on custom filters"""

    def __init__(self, session: Session):
        self.session = session
        self.filters = CustomFilterRepository(session)

    # =========================================================================
    # Validation
    # =========================================================================

    def check_for_cycles(self) -> List[HierarchyIssue]:
        try:
            rows = fetch_all(
                self.session,
                f"""
                MATCH path = (f:CustomFilter)-[:CHILD_OF*1..{MAX_CYCLE_LENGTH}]->(f)
                RETURN DISTINCT f.id AS filterId, f.name AS filterName,
                       [n IN nodes(path) | n.name] AS cyclePath
                """,
            )
        except Neo4jError as e:
            logger.error(f"Cycle detection query failed: {e}")
            return []

        return [
            HierarchyIssue(
                type="error",
                category="cycle",
                message=f'Cycle detected: "{row["filterName"]}" ({row["filterId"]})',
                details={"filterId": row["filterId"], "path": row["cyclePath"]},
            )
            for row in rows
        ]

    def check_level_consistency(self) -> List[HierarchyIssue]:
        issues = []

        rows = fetch_all(
            self.session,
            """
            MATCH (child:CustomFilter)-[:CHILD_OF]->(parent:CustomFilter)
            WHERE parent.level >= child.level
            RETURN child.id AS childId, child.name AS childName, child.level AS childLevel,
                   parent.id AS parentId, parent.name AS parentName, parent.level AS parentLevel
            """,
        )
        for row in rows:
            issues.append(HierarchyIssue(
                type="error",
                category="level",
                message=(
                    f'Level inconsistency: "{row["childName"]}" (level {row["childLevel"]}) '
                    f'has parent "{row["parentName"]}" (level {row["parentLevel"]})'
                ),
                details=row,
            ))

        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            OPTIONAL MATCH (f)-[:CHILD_OF]->(p:CustomFilter)
            WITH f, max(p.level) AS maxParentLevel
            WITH f, CASE WHEN maxParentLevel IS NULL THEN 0 ELSE maxParentLevel + 1 END AS expectedLevel
            WHERE f.level <> expectedLevel
            RETURN f.id AS filterId, f.name AS filterName, f.level AS actualLevel, expectedLevel
            """,
        )
        for row in rows:
            issues.append(HierarchyIssue(
                type="error",
                category="level",
                message=(
                    f'Incorrect level: "{row["filterName"]}" has level {row["actualLevel"]}, '
                    f'expected {row["expectedLevel"]}'
                ),
                details=row,
            ))

        return issues

    def check_orphaned_filters(self) -> List[HierarchyIssue]:
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            WHERE f.level > 0 AND NOT (f)-[:CHILD_OF]->(:CustomFilter)
            RETURN f.id AS filterId, f.name AS filterName, f.level AS level
            """,
        )
        return [
            HierarchyIssue(
                type="error",
                category="orphaned-filter",
                message=f'Orphaned filter: "{row["filterName"]}" has level {row["level"]} but no parents',
                details=row,
            )
            for row in rows
        ]

    def check_duplicate_names(self) -> List[HierarchyIssue]:
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            WITH f.name AS name, collect(f.id) AS filterIds
            WHERE size(filterIds) > 1
            RETURN name, filterIds
            ORDER BY name
            """,
        )
        return [
            HierarchyIssue(
                type="error",
                category="duplicate-name",
                message=f'Duplicate filter name: "{row["name"]}" exists {len(row["filterIds"])} times',
                details=row,
            )
            for row in rows
        ]

    def check_orphaned_products(self) -> List[HierarchyIssue]:
        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)-[:TAGGED_WITH]->(f:CustomFilter)
            WHERE f.isActive = false
            RETURN p.id AS productId, p.name AS productName, f.id AS filterId, f.name AS filterName
            """,
        )
        return [
            HierarchyIssue(
                type="warning",
                category="orphaned-product",
                message=f'Product "{row["productName"]}" is tagged with inactive filter "{row["filterName"]}"',
                details=row,
            )
            for row in rows
        ]

    def validate_hierarchy(self) -> HierarchyReport:
        """Run every check. The report is valid when no error-type issue was found."""
        checks = [
            self.check_for_cycles,
            self.check_level_consistency,
            self.check_orphaned_filters,
            self.check_duplicate_names,
            self.check_orphaned_products,
        ]
        issues: List[HierarchyIssue] = []
        for check in checks:
            issues.extend(check())

        report = HierarchyReport(
            valid=not any(issue.type == "error" for issue in issues),
            issues=issues,
            total_filters=self.count_filters(),
            checks_run=len(checks),
        )
        logger.info(
            f"Hierarchy validation: {len(report.errors)} errors, {len(report.warnings)} warnings"
        )
        return report

    # =========================================================================
    # Levels
    # =========================================================================

    def count_filters(self) -> int:
        row = fetch_one(self.session, "MATCH (f:CustomFilter) RETURN count(f) AS count")
        return row["count"] if row else 0

    def recalculate_levels(self, max_iterations: int = 100) -> Dict[str, int]:
        """
        Recompute every level from the roots down

        Roots are set to 0, then each pass fixes children whose level is not
        max(parent levels) + 1. Stops when a pass changes nothing or after
        max_iterations passes.

        Returns:
            {"roots", "iterations", "updated", "converged"}
        """
        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter)
            WHERE NOT (f)-[:CHILD_OF]->(:CustomFilter)
            SET f.level = 0, f.updatedAt = datetime().epochMillis
            RETURN count(f) AS count
            """,
        )
        roots = row["count"] if row else 0

        iterations = 0
        updated = 0
        converged = False
        while iterations < max_iterations:
            iterations += 1
            row = fetch_one(
                self.session,
                """
                MATCH (child:CustomFilter)-[:CHILD_OF]->(parent:CustomFilter)
                WITH child, max(parent.level) AS maxParentLevel
                WHERE child.level IS NULL OR child.level <> maxParentLevel + 1
                SET child.level = maxParentLevel + 1,
                    child.updatedAt = datetime().epochMillis
                RETURN count(child) AS count
                """,
            )
            changed = row["count"] if row else 0
            updated += changed
            if changed == 0:
                converged = True
                break

        if not converged:
            logger.warning(f"Level recalculation stopped after {max_iterations} iterations")
        logger.info(f"Recalculated levels: {roots} roots, {updated} updates in {iterations} iterations")
        return {"roots": roots, "iterations": iterations, "updated": updated, "converged": converged}

    def get_level_distribution(self) -> Dict[int, int]:
        rows = fetch_all(
            self.session,
            """
            MATCH (f:CustomFilter)
            RETURN f.level AS level, count(f) AS count
            ORDER BY level
            """,
        )
        return {row["level"]: row["count"] for row in rows}

    # =========================================================================
    # Seeding
    # =========================================================================

    def clear_filters(self) -> int:
        row = fetch_one(
            self.session,
            """
            MATCH (f:CustomFilter)
            DETACH DELETE f
            RETURN count(f) AS count
            """,
        )
        return row["count"] if row else 0

    @staticmethod
    def _check_seed_parents(config: HierarchyConfig) -> None:
        levels = {seed.name: seed.level for seed in config.filters}
        for seed in config.filters:
            for parent in seed.parents:
                if parent not in levels:
                    raise ValidationError(f'Unknown parent "{parent}" for filter "{seed.name}"')
                if levels[parent] >= seed.level:
                    raise ValidationError(
                        f'Parent "{parent}" of filter "{seed.name}" must be on a lower level'
                    )

    def seed_filters(self, config: HierarchyConfig, clear_existing: bool = False) -> Dict[str, str]:
        """
        Create the configured filters, roots first

        Raises:
            ValidationError: A parent name is not defined on a lower level
            ConflictError: Filters already exist and clear_existing is False

        Returns:
            Mapping of filter name to created ID
        """
        self._check_seed_parents(config)

        existing = self.count_filters()
        if existing > 0:
            if not clear_existing:
                raise ConflictError(
                    f"Database already contains {existing} filters. Clear them first to reseed."
                )
            deleted = self.clear_filters()
            logger.info(f"Deleted {deleted} existing filters")

        filter_ids: Dict[str, str] = {}
        for seed in sorted(config.filters, key=lambda s: (s.level, s.name)):
            created = self.filters.create_filter(
                seed.name,
                parent_ids=[filter_ids[parent] for parent in seed.parents],
                is_featured=seed.is_featured,
            )
            filter_ids[seed.name] = created.id

        logger.info(f"Seeded {len(filter_ids)} filters")
        return filter_ids

    # =========================================================================
    # Product assignment
    # =========================================================================

    def assign_products(self, config: HierarchyConfig, clear_existing: bool = False) -> AssignmentStats:
        """Tag every product with the filters the config rules select for it"""
        filter_map = {f.name: f.id for f in self.filters.get_all_filters()}
        names_by_id = {filter_id: name for name, filter_id in filter_map.items()}

        rows = fetch_all(
            self.session,
            """
            MATCH (p:Product)
            RETURN p {.*} AS product
            ORDER BY p.createdAt DESC
            """,
        )
        products = [Product.model_validate(row["product"]) for row in rows]
        stats = AssignmentStats(total_products=len(products))

        if clear_existing:
            execute(self.session, "MATCH (:Product)-[r:TAGGED_WITH]->(:CustomFilter) DELETE r")
            logger.info("Cleared existing product filter tags")

        for product in products:
            filter_ids = determine_filters_for_product(product, config, filter_map)
            if not filter_ids:
                stats.unassigned_products += 1
                continue

            self.filters.tag_product_with_filters(product.id, filter_ids)
            stats.assigned_products += 1
            stats.total_assignments += len(filter_ids)
            for filter_id in filter_ids:
                name = names_by_id[filter_id]
                stats.assignments_by_filter[name] = stats.assignments_by_filter.get(name, 0) + 1

        logger.info(
            f"Assigned {stats.assigned_products}/{stats.total_products} products "
            f"({stats.total_assignments} tags)"
        )
        return stats
