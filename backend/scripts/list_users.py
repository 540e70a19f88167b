"""
List all user accounts, newest first

Usage:
    cd backend && python3 scripts/list_users.py
"""
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.database import close_driver, get_session
from factorybay.repositories.user_repository import UserRepository


def main():
    session = None
    try:
        session = get_session()
        users = UserRepository(session).list_users()
    except Exception as e:
        print(f"❌ Could not list users: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()

    print(f"\n👥 {len(users)} users")
    print("=" * 80)
    print(f"{'Email':<40} {'Role':<10} {'Name':<20} Created")
    print("-" * 80)
    for user in users:
        name = " ".join(part for part in (user.first_name, user.last_name) if part)
        print(f"{user.email:<40} {user.role:<10} {name:<20} {user.created_at or ''}")


if __name__ == "__main__":
    main()
