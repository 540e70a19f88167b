"""
Seed the custom filter hierarchy from a JSON config

Filters are created roots first; parent names are resolved to the IDs
created on earlier levels. The hierarchy is validated afterwards.

Usage:
    cd backend && python3 scripts/seed_default_filters.py [--clear] [--config PATH]

Options:
    --clear   : Delete existing filters before seeding
    --config  : Hierarchy file (default: config/default_filter_hierarchy.json)

Author: TM3
Date: 2025-10-17
"""
import os
import sys
import argparse
import logging
from collections import Counter

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.core.exceptions import FactoryBayError
from factorybay.services.filter_maintenance_service import FilterMaintenanceService, load_hierarchy_config


def main():
    parser = argparse.ArgumentParser(description='Seed the default custom filter hierarchy')
    parser.add_argument('--clear', action='store_true', help='Delete existing filters first')
    parser.add_argument('--config', default=None, help='Path to the hierarchy JSON file')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print("🚀 Factory Bay - Seed Default Filters\n")
    print("=" * 50)

    try:
        config = load_hierarchy_config(args.config)
    except (OSError, ValueError) as e:
        print(f"\n❌ Could not load hierarchy config: {e}")
        sys.exit(1)

    print(f"\n📦 {config.description or 'Filter hierarchy'} (v{config.version})")
    print(f"   Total filters to create: {len(config.filters)}")
    for level, count in sorted(Counter(f.level for f in config.filters).items()):
        print(f"     Level {level}: {count} filters")

    session = None
    try:
        session = get_session()
        service = FilterMaintenanceService(session)

        print("\n🌱 Seeding filters...")
        created = service.seed_filters(config, clear_existing=args.clear)
        print(f"   ✅ Created {len(created)} filters")

        print("\n🔍 Validating hierarchy...")
        report = service.validate_hierarchy()
        for issue in report.issues:
            marker = "❌" if issue.type == "error" else "⚠️ "
            print(f"   {marker} {issue.message}")

        if not report.valid:
            print(f"\n❌ Hierarchy has {len(report.errors)} errors")
            sys.exit(1)

        print("\n✅ Filters seeded successfully!")
    except FactoryBayError as e:
        print(f"\n❌ {e.message}")
        if not args.clear:
            print("   Use --clear to remove existing filters first")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Seeding failed: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()


if __name__ == "__main__":
    main()
