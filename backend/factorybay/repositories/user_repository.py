"""
User Repository - account data access

Author: TM3
Date: 2025-10-17
"""
import uuid
from typing import List, Optional

from neo4j import Session
from neo4j.exceptions import ConstraintError

from factorybay.core.database import fetch_all, fetch_one, now_iso
from factorybay.core.exceptions import ConflictError, NotFoundError
from factorybay.domain.user import User, UserUpdate


class UserRepository:
    """Repository for User data access. Emails are stored lowercased."""

    def __init__(self, session: Session):
        self.session = session

    def create_user(
        self,
        email: str,
        password_hash: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        role: str = "CUSTOMER",
    ) -> User:
        now = now_iso()
        try:
            row = fetch_one(
                self.session,
                """
                CREATE (u:User {
                    id: $id,
                    email: $email,
                    passwordHash: $passwordHash,
                    role: $role,
                    firstName: $firstName,
                    lastName: $lastName,
                    phone: $phone,
                    createdAt: $now,
                    updatedAt: $now
                })
                RETURN u {.*} AS user
                """,
                id=str(uuid.uuid4()),
                email=email.lower(),
                passwordHash=password_hash,
                role=role,
                firstName=first_name,
                lastName=last_name,
                phone=phone,
                now=now,
            )
        except ConstraintError:
            raise ConflictError("An account with this email already exists")
        return User.model_validate(row["user"])

    def find_user_by_email(self, email: str) -> Optional[User]:
        """Lookup used by login; the returned user carries password_hash"""
        row = fetch_one(
            self.session,
            "MATCH (u:User {email: $email}) RETURN u {.*} AS user",
            email=email.lower(),
        )
        return User.model_validate(row["user"]) if row else None

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        row = fetch_one(
            self.session,
            "MATCH (u:User {id: $id}) RETURN u {.*} AS user",
            id=user_id,
        )
        return User.model_validate(row["user"]) if row else None

    def email_exists(self, email: str) -> bool:
        row = fetch_one(
            self.session,
            "MATCH (u:User {email: $email}) RETURN count(u) > 0 AS found",
            email=email.lower(),
        )
        return bool(row and row["found"])

    def update_user(self, user_id: str, data: UserUpdate) -> User:
        updates = data.model_dump(by_alias=True, exclude_none=True)
        updates["updatedAt"] = now_iso()
        row = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $id})
            SET u += $updates
            RETURN u {.*} AS user
            """,
            id=user_id,
            updates=updates,
        )
        if not row:
            raise NotFoundError("User not found")
        return User.model_validate(row["user"])

    def set_role_by_email(self, email: str, role: str) -> Optional[User]:
        row = fetch_one(
            self.session,
            """
            MATCH (u:User {email: $email})
            SET u.role = $role, u.updatedAt = $now
            RETURN u {.*} AS user
            """,
            email=email.lower(),
            role=role,
            now=now_iso(),
        )
        return User.model_validate(row["user"]) if row else None

    def list_users(self) -> List[User]:
        rows = fetch_all(
            self.session,
            "MATCH (u:User) RETURN u {.*} AS user ORDER BY u.createdAt DESC",
        )
        return [User.model_validate(row["user"]) for row in rows]
