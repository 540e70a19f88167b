"""
Validate the custom filter hierarchy

Checks for cycles, level inconsistencies, orphaned filters, duplicate names
and products tagged with inactive filters. Exits 1 when errors are found.

Usage:
    cd backend && python3 scripts/validate_filters.py
"""
import os
import sys
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.services.filter_maintenance_service import FilterMaintenanceService


def main():
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print("🔍 Factory Bay - Filter Hierarchy Validation\n")
    print("=" * 50)

    session = None
    try:
        session = get_session()
        report = FilterMaintenanceService(session).validate_hierarchy()
    except Exception as e:
        print(f"\n❌ Validation failed to run: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()

    print(f"\n📊 Filters checked: {report.total_filters}")
    print(f"   Errors:   {len(report.errors)}")
    print(f"   Warnings: {len(report.warnings)}")

    if report.errors:
        print("\n❌ Errors:")
        for index, issue in enumerate(report.errors, 1):
            print(f"   {index}. {issue.message}")

    if report.warnings:
        print("\n⚠️  Warnings:")
        for index, issue in enumerate(report.warnings, 1):
            print(f"   {index}. {issue.message}")

    if not report.valid:
        print("\n💡 Run scripts/recalculate_levels.py to repair level problems")
        sys.exit(1)

    print("\n✅ Hierarchy is valid")
    sys.exit(0)


if __name__ == "__main__":
    main()
