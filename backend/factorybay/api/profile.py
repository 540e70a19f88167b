"""
Profile API Endpoints
Account details, shopping preferences and body measurements of the signed-in user
"""
from fastapi import APIRouter, Depends
from neo4j import Session

from factorybay.core.auth import TokenUser, get_current_user
from factorybay.core.database import session_dep
from factorybay.domain.user import UserMeasurements, UserPreference, UserUpdate
from factorybay.repositories.user_profile_repository import UserProfileRepository
from factorybay.repositories.user_repository import UserRepository

router = APIRouter()


@router.patch("")
def update_profile(
    body: UserUpdate,
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    user = UserRepository(session).update_user(current_user.id, body)
    return {"success": True, "message": "Profile updated", "data": user.to_dict()}


@router.get("/preferences")
def get_preferences(
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    prefs = UserProfileRepository(session).get_user_preferences(current_user.id)
    return {"success": True, "data": prefs.to_dict() if prefs else None}


@router.put("/preferences")
def save_preferences(
    body: UserPreference,
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    prefs = UserProfileRepository(session).upsert_user_preferences(current_user.id, body)
    return {"success": True, "message": "Preferences saved", "data": prefs.to_dict()}


@router.get("/measurements")
def get_measurements(
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    measurements = UserProfileRepository(session).get_user_measurements(current_user.id)
    return {"success": True, "data": measurements.to_dict() if measurements else None}


@router.put("/measurements")
def save_measurements(
    body: UserMeasurements,
    session: Session = Depends(session_dep),
    current_user: TokenUser = Depends(get_current_user),
):
    measurements = UserProfileRepository(session).upsert_user_measurements(current_user.id, body)
    return {"success": True, "message": "Measurements saved", "data": measurements.to_dict()}
