# app/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from profiles import Profile, UserSession
from reports import Report


class AuthStage(str, Enum):
    ANONYMOUS = "anonymous"
    NEEDS_PROFILE = "needs_profile"
    READY = "ready"


@dataclass
class LabAppState:
    """Everything one browser session knows, kept in ``st.session_state``."""

    user: Optional[UserSession] = None
    profile: Optional[Profile] = None
    reports: List[Report] = field(default_factory=list)

    booking_message: str = ""
    booking_form_version: int = 0
    selected_service: Optional[str] = None

    otp_sent_to: Optional[str] = None
    oauth_url: Optional[str] = None
    last_error: Optional[str] = None

    @property
    def stage(self) -> AuthStage:
        if self.user is None:
            return AuthStage.ANONYMOUS
        if self.profile is None:
            return AuthStage.NEEDS_PROFILE
        return AuthStage.READY

    def clear_user(self) -> None:
        self.user = None
        self.profile = None
        self.reports = []
        self.otp_sent_to = None
        self.oauth_url = None

    def record_booking(self, result: dict) -> None:
        self.booking_message = result["message"]
        if result["success"]:
            # a new form version renders fresh, empty widgets
            self.booking_form_version += 1
            self.selected_service = None
