# app/profiles.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

from db.database import LabServiceError, error_message


logger = logging.getLogger(__name__)

USERS_TABLE = "users"


@dataclass(frozen=True)
class UserSession:
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> "UserSession":
        return cls(id=str(user.id), email=getattr(user, "email", None) or None,
                   phone=getattr(user, "phone", None) or None)


@dataclass(frozen=True)
class Profile:
    uid: str
    name: str
    phone: str
    email: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        return cls(
            uid=str(row["uid"]),
            name=row.get("name") or "",
            phone=row.get("phone") or "",
            email=row.get("email"),
            is_admin=bool(row.get("is_admin", False)),
        )


class ProfileStore:
    """One row per user in ``users``, keyed by the auth user id."""

    def __init__(self, client):
        self.client = client

    def load(self, uid: str) -> Optional[Profile]:
        try:
            res = self.client.table(USERS_TABLE).select("*").eq("uid", uid).execute()
        except Exception as e:
            logger.error(f"Loading profile {uid} failed: {e}", exc_info=True)
            raise LabServiceError(error_message(e)) from e

        if not res.data:
            return None
        return Profile.from_row(res.data[0])

    def save(self, session: Optional[UserSession], name: str, phone: str) -> Profile:
        if session is None:
            raise LabServiceError("Not logged in")

        name, phone = (name or "").strip(), (phone or "").strip()
        if not name or not phone:
            raise LabServiceError("Please enter your name and phone.")

        # is_admin is never taken from the caller; elevation happens in the database
        row = {
            "uid": session.id,
            "name": name,
            "phone": phone,
            "email": session.email,
            "is_admin": False,
        }
        try:
            res = self.client.table(USERS_TABLE).upsert(row, on_conflict="uid").execute()
        except Exception as e:
            logger.error(f"Saving profile {session.id} failed: {e}", exc_info=True)
            raise LabServiceError(error_message(e)) from e

        logger.info(f"Profile saved for {session.id}")
        return Profile.from_row(res.data[0] if res.data else row)
