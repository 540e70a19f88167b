"""
User Profile Repository - shopping preferences and body measurements

    (u:User)-[:HAS_PREFERENCES]->(:UserPreference)
    (u:User)-[:HAS_MEASUREMENTS]->(:UserMeasurements)

priceRange is stored on the preference node as a JSON string.
"""
import json
from typing import Optional

from neo4j import Session

from factorybay.core.database import fetch_one, now_iso
from factorybay.core.exceptions import NotFoundError
from factorybay.domain.user import UserMeasurements, UserPreference


class UserProfileRepository:
    """One preference node and one measurements node per user, upserted with MERGE"""

    def __init__(self, session: Session):
        self.session = session

    def get_user_preferences(self, user_id: str) -> Optional[UserPreference]:
        row = fetch_one(
            self.session,
            "MATCH (:User {id: $userId})-[:HAS_PREFERENCES]->(pref:UserPreference) RETURN pref {.*} AS pref",
            userId=user_id,
        )
        return UserPreference.model_validate(row["pref"]) if row else None

    def upsert_user_preferences(self, user_id: str, preferences: UserPreference) -> UserPreference:
        props = preferences.model_dump(by_alias=True, exclude={"user_id", "updated_at", "price_range"})
        props["priceRange"] = (
            json.dumps(preferences.price_range.model_dump()) if preferences.price_range else None
        )
        props["updatedAt"] = now_iso()
        row = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $userId})
            MERGE (u)-[:HAS_PREFERENCES]->(pref:UserPreference {userId: $userId})
            SET pref += $props
            RETURN pref {.*} AS pref
            """,
            userId=user_id,
            props=props,
        )
        if not row:
            raise NotFoundError("User not found")
        return UserPreference.model_validate(row["pref"])

    def get_user_measurements(self, user_id: str) -> Optional[UserMeasurements]:
        row = fetch_one(
            self.session,
            "MATCH (:User {id: $userId})-[:HAS_MEASUREMENTS]->(m:UserMeasurements) RETURN m {.*} AS m",
            userId=user_id,
        )
        return UserMeasurements.model_validate(row["m"]) if row else None

    def upsert_user_measurements(self, user_id: str, measurements: UserMeasurements) -> UserMeasurements:
        props = measurements.model_dump(by_alias=True, exclude={"user_id", "updated_at"})
        props["updatedAt"] = now_iso()
        row = fetch_one(
            self.session,
            """
            MATCH (u:User {id: $userId})
            MERGE (u)-[:HAS_MEASUREMENTS]->(m:UserMeasurements {userId: $userId})
            SET m += $props
            RETURN m {.*} AS m
            """,
            userId=user_id,
            props=props,
        )
        if not row:
            raise NotFoundError("User not found")
        return UserMeasurements.model_validate(row["m"])
