from __future__ import annotations

import sys
import os
import logging
from datetime import date, time
from pathlib import Path

# --- Add project root to sys.path ---
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(current_dir)
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

import streamlit as st

# IMPORTS
from config import AppConfig, load_config
from catalog import SERVICES, filter_services, get_service, rate_list_csv
from booking_flow import BookingRequest, submit_booking
from auth_flow import AuthController
from admin_dashboard import render_admin_panel
from reports import ReportUploader
from state import AuthStage, LabAppState
from db.database import LabServiceError, get_supabase_client

LAB_NAME = "Bagree Diagnostic Centre"


@st.cache_resource
def pending_oauth_flows() -> dict:
    # shared by all sessions: the OAuth redirect lands in a new one
    return {}


def _init_app_state(cfg: AppConfig) -> LabAppState:
    if "lab_state" not in st.session_state:
        st.session_state.lab_state = LabAppState()
    state = st.session_state.lab_state

    if "auth_controller" not in st.session_state:
        client = get_supabase_client()
        st.session_state.auth_controller = AuthController(
            client,
            cfg.auth,
            state,
            storage=st.session_state.supabase_auth_storage.storage,
            pending=pending_oauth_flows(),
        )
    return state


def _booking_key(state: LabAppState, name: str) -> str:
    return f"booking_{name}_{state.booking_form_version}"


# --- CSS STYLING ---
def inject_custom_css():
    st.markdown("""
    <style>
        .service-price {font-weight: 600; text-align: right;}
        footer {visibility: hidden;}
    </style>
    """, unsafe_allow_html=True)


# --- CATALOG ---
def render_catalog(state: LabAppState):
    st.subheader("🔎 Quick Test Search")
    query = st.text_input("Search by test name (e.g. Thyroid, CBC)", key="catalog_query")

    def select(name: str):
        state.selected_service = name
        st.session_state[_booking_key(state, "test")] = name

    results = filter_services(SERVICES, query)
    for s in results:
        c1, c2, c3 = st.columns([4, 1, 1])
        c1.markdown(f"**{s.name}**  \n{s.description}")
        c2.markdown(f"<div class='service-price'>{s.price}</div>", unsafe_allow_html=True)
        c3.button("Book", key=f"book-{s.id}", on_click=select, args=(s.name,))

    if not results:
        st.info("No tests found. Try different keyword.")

    selected = get_service(SERVICES, state.selected_service or "")
    if selected:
        st.success(f"Selected: {selected.name} • {selected.description} • {selected.price}")


def render_rate_list(cfg: AppConfig):
    st.subheader("📄 Rate List")
    st.caption("For bulk or corporate packages, contact us for custom pricing.")
    c1, c2 = st.columns(2)

    pdf = Path(cfg.rate_list_path)
    if pdf.is_file():
        c1.download_button(
            "Download Rate List (PDF)",
            pdf.read_bytes(),
            pdf.name,
            "application/pdf",
            key="download-rate-pdf",
        )
    else:
        c1.caption("Printed rate list available at the centre.")

    c2.download_button(
        "📥 Download as CSV",
        rate_list_csv(SERVICES),
        "rate_list.csv",
        "text/csv",
        key="download-rate-csv",
    )


# --- BOOKING ---
def render_booking(cfg: AppConfig, state: LabAppState):
    st.subheader("🗓️ Book an Appointment / Home Collection")

    with st.form("booking"):
        c1, c2 = st.columns(2)
        name = c1.text_input("Patient name", key=_booking_key(state, "name"))
        phone = c2.text_input("Phone (10 digits)", key=_booking_key(state, "phone"))
        email = c1.text_input("Email (optional)", key=_booking_key(state, "email"))
        day = c2.date_input("Date", value=None, key=_booking_key(state, "date"))
        slot = c1.time_input("Time (optional)", value=None, key=_booking_key(state, "time"))
        options = [""] + [s.name for s in SERVICES]
        test = c2.selectbox(
            "Test / sample type",
            options,
            format_func=lambda o: o or "Select test / sample type",
            key=_booking_key(state, "test"),
        )
        submitted = st.form_submit_button("Confirm Booking")

    if submitted:
        booking = BookingRequest(
            name=name,
            phone=phone,
            email=email,
            date=day.isoformat() if isinstance(day, date) else "",
            time=slot.strftime("%H:%M") if isinstance(slot, time) else "",
            test=test or "",
        )
        with st.spinner("Booking..."):
            result = submit_booking(cfg.booking, booking)
        state.record_booking(result)
        if result["success"]:
            st.rerun()

    if state.booking_message:
        st.caption(state.booking_message)


# --- ACCOUNT ---
def render_sign_in(cfg: AppConfig, controller: AuthController, state: LabAppState):
    st.write("Sign in to see your reports.")

    if cfg.auth.mode == "oauth":
        params = st.query_params
        if "code" in params:
            try:
                controller.complete_oauth(params["code"], params.get("flow"))
            except LabServiceError as e:
                state.last_error = e.message
            st.query_params.clear()
            st.rerun()

        if st.button(f"Sign in with {cfg.auth.oauth_provider.title()}"):
            try:
                state.oauth_url = controller.oauth_url()
            except LabServiceError as e:
                st.error(e.message)
        if state.oauth_url:
            st.link_button("Continue", state.oauth_url)
        return

    label = controller.strategy.label
    identifier = st.text_input(label, key="signin_identifier")
    if st.button("Send code"):
        try:
            target = controller.send_code(identifier)
            st.success(f"Code sent to {target}. Check your messages.")
        except LabServiceError as e:
            st.error(e.message)

    if state.otp_sent_to:
        token = st.text_input("Code", key="signin_code")
        if st.button("Verify"):
            try:
                controller.verify_code(token)
                st.rerun()
            except LabServiceError as e:
                st.error(e.message)


def render_profile_setup(controller: AuthController, state: LabAppState):
    st.write("Complete your profile once to see your reports.")
    with st.form("profile"):
        name = st.text_input("Full name")
        phone = st.text_input("Phone (as given at the centre)")
        submitted = st.form_submit_button("Save profile")

    if submitted:
        try:
            controller.save_profile(name, phone)
            st.rerun()
        except LabServiceError as e:
            st.error(e.message)


def render_reports(controller: AuthController, state: LabAppState):
    profile = state.profile
    st.write(f"Welcome, **{profile.name}** ({profile.phone})")

    c1, c2 = st.columns([1, 1])
    if c1.button("🔄 Refresh reports"):
        try:
            controller.refresh_reports()
        except LabServiceError as e:
            st.error(f"Error loading reports: {e.message}")
    if c2.button("Sign out"):
        try:
            controller.sign_out()
        except LabServiceError as e:
            st.error(e.message)
        st.rerun()

    if not state.reports:
        st.info("No reports yet for this phone number.")
    for r in state.reports:
        st.markdown(f"- 📄 [{r.file_name}]({r.url})")


def render_account(cfg: AppConfig, state: LabAppState):
    st.subheader("📋 Reports")
    controller: AuthController = st.session_state.auth_controller

    if state.last_error:
        st.error(state.last_error)
        state.last_error = None

    if state.stage == AuthStage.ANONYMOUS:
        render_sign_in(cfg, controller, state)
    elif state.stage == AuthStage.NEEDS_PROFILE:
        render_profile_setup(controller, state)
    else:
        render_reports(controller, state)
        render_admin_panel(
            state,
            controller,
            ReportUploader(controller.client, cfg.storage.bucket),
        )


def render_contact():
    st.subheader("📍 Contact & Location")
    st.markdown(
        f"{LAB_NAME}  \nOpp. XYZ, Main Road  \nCity, State - PIN\n\n"
        "Phone: [+91 12345 67890](tel:+911234567890)  \n"
        "Email: [info@bagreedx.com](mailto:info@bagreedx.com)"
    )


def main():
    st.set_page_config(
        page_title=LAB_NAME,
        page_icon="🔬",
        layout="wide",
    )

    cfg = load_config()
    logging.basicConfig(level=cfg.log_level)
    inject_custom_css()
    state = _init_app_state(cfg)

    st.title(f"🔬 {LAB_NAME}")
    st.caption("Complete diagnostics. Fast reports. Trusted care.")

    left, right = st.columns(2)
    with left:
        render_catalog(state)
    with right:
        render_account(cfg, state)

    st.divider()
    render_booking(cfg, state)
    st.divider()
    render_rate_list(cfg)
    st.divider()
    render_contact()


if __name__ == "__main__":
    main()
