"""
Authentication API endpoints
- Signup and login (JWT returned in body and in the auth cookie)
- Logout
- Current user

A guest cart held in cookies is merged into the account on signup/login.

Author: TM3
Date: 2025-10-17
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from neo4j import Session
from pydantic import BaseModel

from factorybay.core.auth import (
    TokenUser,
    clear_auth_cookie,
    get_current_user,
    set_auth_cookie,
)
from factorybay.core.database import session_dep
from factorybay.domain.user import User, UserCreate
from factorybay.repositories.cart_repository import CartRepository
from factorybay.repositories.user_repository import UserRepository
from factorybay.services.auth_service import AuthService
from factorybay.services.guest_cart import (
    GUEST_CART_COOKIE,
    clear_guest_cart_cookie,
    merge_guest_cart_into_user,
    parse_guest_cart,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str


def _start_session(request: Request, response: Response, session: Session, user: User, token: str) -> dict:
    set_auth_cookie(response, token)

    guest_items = parse_guest_cart(request.cookies.get(GUEST_CART_COOKIE))
    merged = 0
    if guest_items:
        merged = merge_guest_cart_into_user(CartRepository(session), user.id, guest_items)
        clear_guest_cart_cookie(response)
        logger.info(f"Merged {merged} guest cart lines into {user.id}")

    return {"user": user.to_dict(), "token": token, "mergedCartItems": merged}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    data: UserCreate,
    request: Request,
    response: Response,
    session: Session = Depends(session_dep),
):
    """Create a customer account and sign it in"""
    user, token = AuthService(session).signup(data)
    return {
        "success": True,
        "message": "Account created successfully",
        "data": _start_session(request, response, session, user, token),
    }


@router.post("/login")
def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    session: Session = Depends(session_dep),
):
    user, token = AuthService(session).login(credentials.email, credentials.password)
    return {
        "success": True,
        "message": "Logged in successfully",
        "data": _start_session(request, response, session, user, token),
    }


@router.post("/logout")
def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True, "message": "Logged out"}


@router.get("/me")
def me(
    current_user: TokenUser = Depends(get_current_user),
    session: Session = Depends(session_dep),
):
    user = UserRepository(session).find_user_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": user.to_dict()}
