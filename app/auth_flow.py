from __future__ import annotations

from typing import Any, Dict, MutableMapping, Optional, Tuple
import logging
import secrets as _secrets
import time

from email_validator import validate_email, EmailNotValidError

from config import AuthConfig
from db.database import LabServiceError, error_message
from profiles import Profile, ProfileStore, UserSession
from reports import Report, ReportRegistry, ReportUploader
from state import LabAppState


logger = logging.getLogger(__name__)

SESSION_EVENTS = ("INITIAL_SESSION", "SIGNED_IN", "TOKEN_REFRESHED", "USER_UPDATED")

# an OAuth round trip not finished within this many seconds is dropped
OAUTH_FLOW_TTL = 600


def _call(what: str, fn, *args):
    try:
        return fn(*args)
    except Exception as e:
        logger.error(f"{what} failed: {e}", exc_info=True)
        raise LabServiceError(error_message(e)) from e


# ----------------- SIGN-IN STRATEGIES ------------------------

class PhoneOtpSignIn:
    mode = "phone_otp"
    label = "Mobile number"

    def __init__(self, auth, country_code: str = "+91"):
        self.auth = auth
        self.country_code = country_code

    def full_phone(self, phone: str) -> str:
        return self.country_code + phone.strip()

    def send(self, phone: str) -> str:
        if not phone or not phone.strip():
            raise LabServiceError("Enter phone number")
        target = self.full_phone(phone)
        _call("Sending SMS code", self.auth.sign_in_with_otp, {"phone": target})
        return target

    def verify(self, phone: str, token: str):
        # phone is the full number returned by send()
        return _call(
            "Verifying SMS code",
            self.auth.verify_otp,
            {"phone": phone, "token": token.strip(), "type": "sms"},
        )


class MagicLinkSignIn:
    mode = "magic_link"
    label = "Email address"

    def __init__(self, auth, redirect_url: str):
        self.auth = auth
        self.redirect_url = redirect_url

    def send(self, email: str) -> str:
        try:
            email = validate_email((email or "").strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise LabServiceError(str(e)) from e
        _call(
            "Sending magic link",
            self.auth.sign_in_with_otp,
            {"email": email, "options": {"email_redirect_to": self.redirect_url}},
        )
        return email

    def verify(self, email: str, token: str):
        return _call(
            "Verifying email code",
            self.auth.verify_otp,
            {"email": email.strip(), "token": token.strip(), "type": "email"},
        )


class OAuthSignIn:
    """PKCE OAuth. The code verifier is parked in ``pending`` under a nonce
    that travels in the redirect URL, because the redirect starts a fresh
    Streamlit session."""

    mode = "oauth"

    def __init__(self, auth, provider: str, redirect_url: str,
                 storage: MutableMapping[str, Any], pending: MutableMapping[str, Tuple[str, float]],
                 ttl: float = OAUTH_FLOW_TTL, clock=time.time):
        self.auth = auth
        self.provider = provider
        self.redirect_url = redirect_url
        self.storage = storage
        self.pending = pending
        self.ttl = ttl
        self.clock = clock
        self.nonce: Optional[str] = None

    def _prune(self, now: float) -> None:
        # pending is shared by every session of the process
        for nonce, (_, started) in list(self.pending.items()):
            if now - started > self.ttl:
                self.pending.pop(nonce, None)

    def begin(self) -> str:
        now = self.clock()
        self._prune(now)
        if self.nonce is not None:
            self.pending.pop(self.nonce, None)
            self.nonce = None

        nonce = _secrets.token_urlsafe(16)
        redirect_to = f"{self.redirect_url}?flow={nonce}"
        res = _call(
            "Starting OAuth sign-in",
            self.auth.sign_in_with_oauth,
            {"provider": self.provider, "options": {"redirect_to": redirect_to}},
        )
        for key, value in self.storage.items():
            if key.endswith("-code-verifier"):
                self.pending[nonce] = (value, now)
                self.nonce = nonce
        return res.url

    def complete(self, code: str, nonce: Optional[str]):
        entry = self.pending.pop(nonce, None) if nonce else None
        if entry is None or self.clock() - entry[1] > self.ttl:
            raise LabServiceError("Sign-in link expired. Please try again.")
        verifier = entry[0]
        return _call(
            "Exchanging OAuth code",
            self.auth.exchange_code_for_session,
            {"auth_code": code, "code_verifier": verifier},
        )


def make_strategy(cfg: AuthConfig, auth, storage=None, pending=None):
    if cfg.mode == "phone_otp":
        return PhoneOtpSignIn(auth, cfg.country_code)
    if cfg.mode == "magic_link":
        return MagicLinkSignIn(auth, cfg.redirect_url)
    if cfg.mode == "oauth":
        return OAuthSignIn(auth, cfg.oauth_provider, cfg.redirect_url,
                           storage if storage is not None else {},
                           pending if pending is not None else {})
    raise ValueError(f"Unknown auth mode {cfg.mode!r}")


# ----------------- SESSION CONTROLLER ------------------------

class AuthController:
    """Moves ``LabAppState`` between anonymous, needs-profile and ready.

    Supabase auth events set or clear the user; a finished profile load
    decides between the two signed-in stages.
    """

    def __init__(self, client, cfg: AuthConfig, state: LabAppState,
                 storage: Optional[Dict[str, Any]] = None,
                 pending: Optional[MutableMapping[str, Tuple[str, float]]] = None):
        self.client = client
        self.state = state
        self.profiles = ProfileStore(client)
        self.registry = ReportRegistry(client)
        self.strategy = make_strategy(cfg, client.auth, storage, pending)
        self.subscription = client.auth.on_auth_state_change(self.on_auth_event)

    @property
    def stage(self):
        return self.state.stage

    def on_auth_event(self, event: str, session: Any) -> None:
        logger.debug(f"Auth event {event}")
        if event == "SIGNED_OUT":
            self.state.clear_user()
            return
        if event in SESSION_EVENTS and session is not None and getattr(session, "user", None):
            self.on_signed_in(UserSession.from_user(session.user))

    def on_signed_in(self, user: UserSession) -> None:
        known = self.state.user is not None and self.state.user.id == user.id
        self.state.user = user
        if known and self.state.profile is not None:
            return
        try:
            self.load_profile()
        except LabServiceError as e:
            # called from inside the auth client, so the error is parked for the UI
            self.state.last_error = e.message

    def load_profile(self) -> Optional[Profile]:
        if self.state.user is None:
            return None
        profile = self.profiles.load(self.state.user.id)
        self.state.profile = profile
        if profile is not None:
            self.refresh_reports()
        return profile

    def save_profile(self, name: str, phone: str) -> Profile:
        profile = self.profiles.save(self.state.user, name, phone)
        self.state.profile = profile
        self.refresh_reports()
        return profile

    def refresh_reports(self) -> None:
        if self.state.profile is None:
            self.state.reports = []
            return
        self.state.reports = self.registry.fetch(self.state.profile.phone)

    def upload_report(self, uploader: ReportUploader, phone: str, file_name: Optional[str],
                      data: Optional[bytes], content_type: str = "application/pdf") -> Report:
        report = uploader.upload(self.state.profile, phone, file_name, data, content_type)
        # an admin uploading for their own phone sees it straight away
        if self.state.profile is not None and report.phone == self.state.profile.phone:
            self.refresh_reports()
        return report

    # --- sign-in entry points used by the UI ---

    def send_code(self, identifier: str) -> str:
        target = self.strategy.send(identifier)
        self.state.otp_sent_to = target
        return target

    def verify_code(self, token: str) -> None:
        if not self.state.otp_sent_to:
            raise LabServiceError("Request a code first.")
        if not token or not token.strip():
            raise LabServiceError("Enter the code you received.")
        res = self.strategy.verify(self.state.otp_sent_to, token)
        # normally already done by the SIGNED_IN event
        if self.state.user is None and getattr(res, "user", None):
            self.on_signed_in(UserSession.from_user(res.user))

    def oauth_url(self) -> str:
        return self.strategy.begin()

    def complete_oauth(self, code: str, nonce: Optional[str]) -> None:
        res = self.strategy.complete(code, nonce)
        if self.state.user is None and getattr(res, "user", None):
            self.on_signed_in(UserSession.from_user(res.user))

    def sign_out(self) -> None:
        _call("Signing out", self.client.auth.sign_out)
        self.state.clear_user()
