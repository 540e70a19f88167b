"""
Grant the ADMIN role to an existing user

Usage:
    cd backend && python3 scripts/set_admin_role.py user@example.com
"""
import os
import sys
import argparse

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv(override=True)

from factorybay.core.auth import ROLE_ADMIN
from factorybay.core.database import close_driver, get_session
from factorybay.repositories.user_repository import UserRepository


def main():
    parser = argparse.ArgumentParser(description='Make a user an administrator')
    parser.add_argument('email', help='Email of the account to promote')
    args = parser.parse_args()

    session = None
    try:
        session = get_session()
        user = UserRepository(session).set_role_by_email(args.email, ROLE_ADMIN)
    except Exception as e:
        print(f"❌ Could not update role: {e}")
        sys.exit(1)
    finally:
        if session is not None:
            session.close()
        close_driver()

    if user is None:
        print(f"❌ No user found with email {args.email}")
        print("   The account has to sign up first")
        sys.exit(1)

    print(f"✅ {user.email} now has role {user.role}")


if __name__ == "__main__":
    main()
