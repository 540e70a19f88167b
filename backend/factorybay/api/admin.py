"""
Admin API - back office dashboard and user management

Author: TM3
Date: 2025-10-17
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from neo4j import Session

from factorybay.core.auth import ROLE_ADMIN, TokenUser, require_admin
from factorybay.core.database import session_dep
from factorybay.core.schema import get_database_stats
from factorybay.repositories.order_repository import OrderRepository
from factorybay.repositories.product_repository import ProductRepository
from factorybay.repositories.user_repository import UserRepository

router = APIRouter()


@router.get("/stats")
def get_stats(
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
) -> Dict[str, Any]:
    """
    Dashboard numbers

    Returns:
        products: Catalog size
        orders: Order counts and revenue (cancelled orders excluded)
        nodes: Node count per label, largest first
    """
    return {
        "success": True,
        "data": {
            "products": ProductRepository(session).get_product_count(),
            "orders": OrderRepository(session).get_order_stats(),
            "nodes": get_database_stats(session),
        },
    }


@router.get("/users")
def list_users(
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    users = UserRepository(session).list_users()
    return {"success": True, "count": len(users), "data": [u.to_dict() for u in users]}


@router.post("/users/{email}/make-admin")
def make_admin(
    email: str,
    session: Session = Depends(session_dep),
    admin: TokenUser = Depends(require_admin),
):
    user = UserRepository(session).set_role_by_email(email, ROLE_ADMIN)
    if user is None:
        raise HTTPException(status_code=404, detail=f"No user with email {email}")
    return {"success": True, "message": f"{user.email} is now an admin", "data": user.to_dict()}
