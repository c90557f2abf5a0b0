from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import streamlit as st


AUTH_MODES = ("phone_otp", "magic_link", "oauth")


# ---------------------- DATA CLASSES ----------------------

@dataclass
class SupabaseConfig:
    url: str
    anon_key: str  # the browser-facing key; RLS policies do the enforcing


@dataclass
class AuthConfig:
    mode: str = "phone_otp"
    country_code: str = "+91"
    oauth_provider: str = "google"
    redirect_url: str = "http://localhost:8501"


@dataclass
class BookingConfig:
    endpoint: str
    timeout: float = 10.0


@dataclass
class StorageConfig:
    bucket: str = "reports"


@dataclass
class AppConfig:
    supabase: SupabaseConfig
    auth: AuthConfig
    booking: BookingConfig
    storage: StorageConfig
    rate_list_path: str = "static/rate_list.pdf"
    log_level: str = "INFO"


# ---------------------- LOADING ----------------------

def _section(secrets: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    return secrets[name] if name in secrets else {}


def load_config(secrets: Optional[Mapping[str, Any]] = None) -> AppConfig:
    if secrets is None:
        secrets = st.secrets

    # --- Supabase ---
    supabase_cfg = SupabaseConfig(
        url=secrets["supabase"]["url"],
        anon_key=secrets["supabase"]["anon_key"],
    )

    # --- Auth ---
    auth = _section(secrets, "auth")
    mode = auth.get("mode", "phone_otp")
    if mode not in AUTH_MODES:
        raise ValueError(f"Unknown auth mode {mode!r}, expected one of {AUTH_MODES}")

    auth_cfg = AuthConfig(
        mode=mode,
        country_code=auth.get("country_code", "+91"),
        oauth_provider=auth.get("oauth_provider", "google"),
        redirect_url=auth.get("redirect_url", "http://localhost:8501"),
    )

    # --- Booking ---
    # endpoint may be relative; it is joined to base_url the way a browser would
    booking = _section(secrets, "booking")
    endpoint = booking.get("endpoint", "/api/book-appointment")
    base_url = booking.get("base_url", "")
    if base_url and endpoint.startswith("/"):
        endpoint = base_url.rstrip("/") + endpoint

    booking_cfg = BookingConfig(
        endpoint=endpoint,
        timeout=float(booking.get("timeout", 10)),
    )

    # --- Storage ---
    storage_cfg = StorageConfig(
        bucket=_section(secrets, "storage").get("bucket", "reports"),
    )

    app = _section(secrets, "app")

    return AppConfig(
        supabase=supabase_cfg,
        auth=auth_cfg,
        booking=booking_cfg,
        storage=storage_cfg,
        rate_list_path=app.get("rate_list_path", "static/rate_list.pdf"),
        log_level=str(app.get("log_level", "INFO")).upper(),
    )
