"""
Delete every node and relationship in the database

Development only. Requires --yes.

Usage:
    cd backend && python3 scripts/clear_db.py --yes
"""
import os
import sys
import argparse
import logging

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.core.schema import clear_database, get_database_stats


def main():
    parser = argparse.ArgumentParser(description='Delete all data from the Neo4j database')
    parser.add_argument('--yes', action='store_true', help='Confirm deletion of all data')
    args = parser.parse_args()

    if not args.yes:
        print("⚠️  This deletes ALL nodes and relationships.")
        print("   Re-run with --yes to confirm.")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format='%(message)s')

    session = None
    try:
        session = get_session()
        before = sum(row['count'] for row in get_database_stats(session))
        print(f"\n🗑️  Deleting {before} nodes...")
        clear_database(session)
        print("✅ Database cleared")
    except Exception as e:
        print(f"\n❌ Clear failed: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()


if __name__ == "__main__":
    main()
