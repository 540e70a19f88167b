"""
Recalculate the level of every custom filter

Roots are set to 0, then children are fixed to max(parent levels) + 1
until nothing changes.

Usage:
    cd backend && python3 scripts/recalculate_levels.py [--max-iterations N]
"""
import os
import sys
import argparse
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.services.filter_maintenance_service import FilterMaintenanceService


def main():
    parser = argparse.ArgumentParser(description='Recalculate custom filter levels')
    parser.add_argument('--max-iterations', type=int, default=100, help='Upper bound on update passes')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print("🔄 Factory Bay - Recalculate Filter Levels\n")
    print("=" * 50)

    session = None
    try:
        session = get_session()
        service = FilterMaintenanceService(session)

        result = service.recalculate_levels(max_iterations=args.max_iterations)
        print(f"\n   Roots reset to level 0: {result['roots']}")
        print(f"   Child updates:          {result['updated']}")
        print(f"   Iterations:             {result['iterations']}")

        print("\n📊 Level distribution:")
        for level, count in service.get_level_distribution().items():
            print(f"   Level {level}: {count} filters")

        if not result['converged']:
            print(f"\n❌ Levels did not settle after {args.max_iterations} iterations (possible cycle)")
            print("   Run scripts/validate_filters.py for details")
            sys.exit(1)

        print("\n✅ Levels recalculated")
    except Exception as e:
        print(f"\n❌ Recalculation failed: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()


if __name__ == "__main__":
    main()
