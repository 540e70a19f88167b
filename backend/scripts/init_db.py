"""
Initialize the Neo4j schema (unique constraints and indexes)

Safe to run repeatedly: every statement uses IF NOT EXISTS.

Usage:
    cd backend && python3 scripts/init_db.py

Author: TM3
Date: 2025-10-17
"""
import os
import sys
import logging

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load environment variables from .env file (override system vars)
from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.core.schema import get_database_stats, initialize_schema


def main():
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    print("🚀 Factory Bay - Database Initialization\n")
    print("=" * 50)

    session = None
    try:
        session = get_session()
        print("\n📦 Creating constraints and indexes...")
        counts = initialize_schema(session)
        print(f"   ✅ Constraints: {counts['constraints']}")
        print(f"   ✅ Indexes:     {counts['indexes']}")

        print("\n📊 Current node counts:")
        stats = get_database_stats(session)
        if not stats:
            print("   (database is empty)")
        for row in stats:
            print(f"   {row['label']:20s} {row['count']}")

        if counts['failed']:
            print(f"\n❌ {counts['failed']} schema statements failed (see log above)")
            sys.exit(1)

        print("\n✅ Database initialized")
    except Exception as e:
        print(f"\n❌ Initialization failed: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()


if __name__ == "__main__":
    main()
