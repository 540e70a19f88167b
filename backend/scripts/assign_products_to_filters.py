"""
Tag existing products with custom filters

Matches each product's gender, category, brand and name/description
against the mappings in the hierarchy config and links the product to the
resulting filters.

Usage:
    cd backend && python3 scripts/assign_products_to_filters.py [--clear] [--config PATH]

Options:
    --clear   : Remove all existing product-filter links first
    --config  : Hierarchy file (default: config/default_filter_hierarchy.json)

Author: TM3
Date: 2025-10-17
"""
import os
import sys
import argparse
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.services.filter_maintenance_service import FilterMaintenanceService, load_hierarchy_config


def main():
    parser = argparse.ArgumentParser(description='Assign products to custom filters')
    parser.add_argument('--clear', action='store_true', help='Remove existing assignments first')
    parser.add_argument('--config', default=None, help='Path to the hierarchy JSON file')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print("🏷️  Factory Bay - Assign Products to Filters\n")
    print("=" * 80)

    try:
        config = load_hierarchy_config(args.config)
    except (OSError, ValueError) as e:
        print(f"\n❌ Could not load hierarchy config: {e}")
        sys.exit(1)

    session = None
    try:
        session = get_session()
        stats = FilterMaintenanceService(session).assign_products(config, clear_existing=args.clear)
    except Exception as e:
        print(f"\n❌ Assignment failed: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()

    print("\n📊 ASSIGNMENT STATISTICS")
    print("=" * 80)
    print(f"   Total products:      {stats.total_products}")
    print(f"   Assigned products:   {stats.assigned_products}")
    print(f"   Unassigned products: {stats.unassigned_products}")
    print(f"   Total assignments:   {stats.total_assignments}")
    if stats.total_products:
        coverage = stats.assigned_products / stats.total_products * 100
        print(f"   Coverage:            {coverage:.1f}%")

    if stats.assignments_by_filter:
        print("\n   Products per filter:")
        ranked = sorted(stats.assignments_by_filter.items(), key=lambda item: item[1], reverse=True)
        for name, count in ranked:
            print(f"     {name:30s} {count}")

    if stats.unassigned_products:
        print(f"\n⚠️  {stats.unassigned_products} products matched no filter")

    print("\n✅ Done")


if __name__ == "__main__":
    main()
