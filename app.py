# app.py
"""
Production Tracker Dashboard - Main Entry Point

Login against the backend, then a role-based list of screens:
agents log production, QA/managers review and export, everyone sees
billable hours, managers maintain projects, tasks and user assignments.

Version: 2.0.0
"""

import logging

import streamlit as st

from utils.api import check_api_connection
from utils.auth import AuthManager
from utils.config import config
from utils.production_tracker import AccessControl, VIEW_LABELS, VIEW_PAGES
from utils.production_tracker.constants import (
    COLORS,
    VIEW_BILLABLE_REPORT,
    VIEW_MANAGE_PROJECTS,
    VIEW_MANAGE_USERS,
    VIEW_TRACKER,
    VIEW_TRACKER_REPORT,
)

logging.basicConfig(
    level=logging.DEBUG if config.is_feature_enabled("DEBUG_MODE") else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_NAME = "Production Tracker"
APP_ICON = "🏭"
APP_VERSION = "2.0.0"

VIEW_DESCRIPTIONS = {
    VIEW_TRACKER: "Log your production per task and shift, and review your own entries.",
    VIEW_TRACKER_REPORT: "Filter every agent's entries, correct or remove them, and enter daily QC.",
    VIEW_BILLABLE_REPORT: "Daily and monthly billable hours, QC scores and goals.",
    VIEW_MANAGE_PROJECTS: "Create and maintain projects and their tasks.",
    VIEW_MANAGE_USERS: "Activate or deactivate users and assign them to tasks.",
}

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown(f"""
<style>
    .pt-title {{ font-size: 2.2rem; font-weight: 700; color: {COLORS['tenure_target']}; }}
    .pt-role {{
        display: inline-block; padding: 0.15rem 0.6rem; border-radius: 1rem;
        background: {COLORS['grid']}; color: {COLORS['text_dark']}; font-size: 0.85rem;
    }}
</style>
""", unsafe_allow_html=True)

auth = AuthManager()


# =============================================================================
# LOGIN
# =============================================================================

def render_login():
    st.markdown(f'<div class="pt-title">{APP_ICON} {APP_NAME}</div>', unsafe_allow_html=True)
    st.caption("Sign in with your work account.")

    backend_ok, backend_error = check_api_connection()
    if not backend_ok:
        st.error(f"⚠️ {backend_error}")
        return

    _, center, _ = st.columns([1, 2, 1])
    with center:
        with st.form("pt_login_form"):
            email = st.text_input("Email", placeholder="name@company.com", key="pt_login_email")
            password = st.text_input("Password", type="password", key="pt_login_password")
            submitted = st.form_submit_button("🔑 Sign in", type="primary", use_container_width=True)

        if not submitted:
            st.caption(f"Sessions expire after {config.get_app_setting('SESSION_TIMEOUT_HOURS', 8)} hours.")
            return

        if not email or not password:
            st.warning("Enter both email and password.")
            return

        with st.spinner("Signing in..."):
            ok, result = auth.authenticate(email.strip(), password)

        if ok:
            auth.login(result)
            st.rerun()
        else:
            st.error(result.get("error", "Authentication failed"))


# =============================================================================
# HOME
# =============================================================================

def render_home():
    access = AccessControl.from_user(
        auth.get_current_user(),
        tz=config.get_app_setting("TIMEZONE", "UTC")
    )
    views = access.nav_items()

    with st.sidebar:
        st.markdown(f"**{auth.get_user_display_name()}**")
        st.markdown(f'<span class="pt-role">{access.role_label}</span>', unsafe_allow_html=True)
        st.divider()
        for view in views:
            st.page_link(VIEW_PAGES[view], label=VIEW_LABELS[view])
        st.divider()
        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f'<div class="pt-title">{APP_ICON} {APP_NAME}</div>', unsafe_allow_html=True)
    st.subheader(f"Hello, {auth.get_user_display_name()}")

    if not views:
        logger.warning(f"No screens for user {auth.get_user_id()} (role {access.role_label})")
        st.warning("Your role has no screens assigned. Please contact your administrator.")
        return

    for column, view in zip(st.columns(len(views)), views):
        with column.container(border=True):
            st.page_link(VIEW_PAGES[view], label=f"**{VIEW_LABELS[view]}**")
            st.caption(VIEW_DESCRIPTIONS[view])

    st.caption(f"v{APP_VERSION} · dates shown in {config.get_app_setting('TIMEZONE', 'UTC')}")


if auth.check_session():
    render_home()
else:
    render_login()
