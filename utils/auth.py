# utils/auth.py
"""
Login and session handling for the Production Tracker dashboard

Version: 2.0.0

Credentials are checked by the backend (POST /auth/user); the dashboard
keeps only the returned user dict and bearer token in st.session_state,
for at most SESSION_TIMEOUT_HOURS.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

import streamlit as st

from .api import ApiError, api_post
from .config import config

logger = logging.getLogger(__name__)

KEY_AUTHENTICATED = 'authenticated'
KEY_USER = 'current_user'
KEY_TOKEN = 'auth_token'
KEY_LOGIN_TIME = 'login_time'
KEY_DEBUG = 'debug_mode'

SESSION_KEYS = [KEY_AUTHENTICATED, KEY_USER, KEY_TOKEN, KEY_LOGIN_TIME, KEY_DEBUG]

# Page state (filters, caches, selections) is namespaced with this prefix
PAGE_STATE_PREFIX = 'pt_'


def _unwrap_login_body(body: Dict[str, Any]) -> Tuple[Dict, Optional[str]]:
    """
    The backend answers either {data: {user, token}} or {data: user, token}.
    """
    data = body.get('data') or {}
    if isinstance(data, dict) and isinstance(data.get('user'), dict):
        return data['user'], data.get('token')
    return (data if isinstance(data, dict) else {}), body.get('token')


class AuthManager:
    """
    Session-backed authentication.

    Usage:
        auth = AuthManager()
        auth.require_auth()          # top of every page

        user_id = auth.get_user_id()
        token = auth.get_token()
    """

    def __init__(self):
        self.session_timeout = timedelta(hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8))

    # ==================== LOGIN ====================

    def authenticate(self, username: str, password: str) -> Tuple[bool, Dict]:
        """
        Verify credentials with the backend.

        Returns:
            (True, {'user', 'token', 'login_time'}) or (False, {'error': message})
        """
        api_config = config.get_api_config()
        try:
            body = api_post('/auth/user', json={
                'user_email': username,
                'user_password': password,
                'device_id': api_config['device_id'],
                'device_type': api_config['device_type'],
            })
        except ApiError as e:
            logger.warning(f"Login rejected for {username}: {e}")
            return False, {'error': e.friendly_message}

        user, token = _unwrap_login_body(body)
        if not user:
            return False, {'error': "Invalid username or password"}

        if not user.get('user_id') and user.get('id'):
            user['user_id'] = user['id']
        logger.info(f"Login ok for {username} (user_id={user.get('user_id')})")
        return True, {'user': user, 'token': token, 'login_time': datetime.now()}

    def login(self, user_info: Dict):
        st.session_state[KEY_AUTHENTICATED] = True
        st.session_state[KEY_USER] = user_info['user']
        st.session_state[KEY_TOKEN] = user_info.get('token')
        st.session_state[KEY_LOGIN_TIME] = user_info['login_time']
        st.session_state[KEY_DEBUG] = config.is_feature_enabled("DEBUG_MODE")

    def logout(self):
        """Drop auth keys and all page state, then clear cached data."""
        user_id = self.get_user_id()
        for key in list(st.session_state.keys()):
            if key in SESSION_KEYS or str(key).startswith(PAGE_STATE_PREFIX):
                del st.session_state[key]
        st.cache_data.clear()
        logger.info(f"User {user_id} logged out")

    # ==================== SESSION ====================

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        login_time = st.session_state.get(KEY_LOGIN_TIME)
        if login_time is None:
            return False
        return (now or datetime.now()) - login_time > self.session_timeout

    def check_session(self) -> bool:
        if not st.session_state.get(KEY_AUTHENTICATED):
            return False
        if self.is_expired():
            logger.info(f"Session expired for user {self.get_user_id()}")
            self.logout()
            return False
        return True

    def require_auth(self) -> bool:
        """Stop the page unless a valid session exists."""
        if self.check_session():
            return True
        st.warning("⚠️ Please login to access this page")
        st.page_link("app.py", label="Go to login", icon="🔐")
        st.stop()
        return False

    # ==================== CURRENT USER ====================

    def get_current_user(self) -> Dict:
        return st.session_state.get(KEY_USER) or {}

    def get_user_id(self) -> Optional[Any]:
        return self.get_current_user().get('user_id')

    def get_token(self) -> Optional[str]:
        return st.session_state.get(KEY_TOKEN)

    def get_user_display_name(self) -> str:
        user = self.get_current_user()
        return user.get('user_name') or user.get('name') or 'User'


__all__ = [
    'AuthManager',
    'SESSION_KEYS',
]
