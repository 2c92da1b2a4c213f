# utils/api.py
"""
Backend API Connection Management

Version: 2.0.0
Features:
- Singleton HTTP session with thread-safe double-checked locking
- Connection pooling with keep-alive (requests.Session)
- Health check utilities
- Request helpers returning parsed JSON bodies
- Friendly error messages for transport/backend failures
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

import requests

from .config import config

logger = logging.getLogger(__name__)

# ==================== ERROR MAPPING ====================

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."

FRIENDLY_ERRORS = {
    'NETWORK_ERROR': 'Unable to connect. Please check your internet connection.',
    'INVALID_CREDENTIALS': 'Incorrect username or password.',
    'USER_NOT_FOUND': 'User not found. Please check the details and try again.',
    'PROJECT_NOT_FOUND': 'Project not found. Please refresh or contact support.',
    'VALIDATION_ERROR': 'Some fields are invalid. Please review and try again.',
    'SERVER_ERROR': 'Something went wrong on our end. Please try again later.',
}


class ApiError(Exception):
    """
    Transport or backend failure.

    Attributes:
        status_code: HTTP status (None for network failures)
        code: Backend error code if provided
        friendly_message: Message safe to show to the user
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        friendly_message: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.friendly_message = friendly_message or get_friendly_error_message(code or message)


def get_friendly_error_message(error: Any) -> str:
    """Map a backend code or message to a user-facing message."""
    if not error:
        return "An unknown error occurred."
    return FRIENDLY_ERRORS.get(str(error), GENERIC_ERROR_MESSAGE)


def is_success(status_code: int, body: Any = None) -> bool:
    """
    Backend success check.

    Some endpoints answer HTTP 200 with a `status` field of 201 in the body,
    so both are accepted.
    """
    if status_code in (200, 201):
        return True
    if isinstance(body, dict) and body.get('status') in (200, 201):
        return True
    return False


# ==================== SINGLETON SESSION ====================

_session: Optional[requests.Session] = None
_session_lock = threading.Lock()


def get_api_session() -> requests.Session:
    """
    Get HTTP session (singleton pattern)

    Thread-safe implementation using double-checked locking.
    Reuses the same session across all calls so the connection
    pool is shared.
    """
    global _session

    if _session is None:
        with _session_lock:
            if _session is None:
                _session = _create_session()

    return _session


def _create_session() -> requests.Session:
    """Create new HTTP session with default headers"""
    session = requests.Session()
    session.headers.update({'Accept': 'application/json'})

    api_config = config.get_api_config()
    logger.info(f"🔌 Creating API session: {api_config['base_url'] or '<unset>'}")

    return session


def reset_api_session():
    """
    Reset the HTTP session (force new connections)

    Call this after persistent connection errors.
    """
    global _session

    with _session_lock:
        if _session is not None:
            try:
                _session.close()
                logger.info("🔄 API session closed")
            except Exception as e:
                logger.error(f"Error closing API session: {e}")
            _session = None

    logger.info("🔄 API session reset - will reconnect on next request")


# ==================== REQUEST HELPERS ====================

def _build_url(path: str) -> str:
    base_url = config.get_api_config()['base_url']
    return f"{base_url}/{path.lstrip('/')}"


def _build_headers(token: Optional[str]) -> Dict[str, str]:
    token = token or config.get_api_config().get('token')
    return {'Authorization': f"Bearer {token}"} if token else {}


def api_request(
    method: str,
    path: str,
    json: Dict = None,
    data: Dict = None,
    files: Dict = None,
    token: str = None,
    session: requests.Session = None
) -> Dict:
    """
    Send a request to the backend and return the parsed JSON body.

    Multipart is used automatically when `files` is given (requests sets
    the boundary). Nothing is retried.

    Raises:
        ApiError: network failure, non-2xx response or unparseable body
    """
    session = session or get_api_session()
    url = _build_url(path)
    timeout = config.get_api_config()['timeout_seconds']

    logger.debug(f"[API Request] {method.upper()} {path}")

    try:
        response = session.request(
            method.upper(),
            url,
            json=json if files is None and data is None else None,
            data=data,
            files=files,
            headers=_build_headers(token),
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.error(f"❌ [API] {method.upper()} {path} failed: {e}")
        raise ApiError(str(e), code='NETWORK_ERROR') from e

    try:
        body = response.json()
    except ValueError:
        body = {}

    if not is_success(response.status_code, body):
        code = body.get('code') if isinstance(body, dict) else None
        message = body.get('message') if isinstance(body, dict) else None
        logger.error(f"❌ [API] {path} - Status: {response.status_code} - {message or 'no message'}")
        if response.status_code >= 500:
            code = code or 'SERVER_ERROR'
        raise ApiError(
            message or f"HTTP {response.status_code}",
            status_code=response.status_code,
            code=code,
            friendly_message=message or get_friendly_error_message(code),
        )

    logger.debug(f"[API Response] {path} - Status: {response.status_code}")
    return body if isinstance(body, dict) else {'data': body}


def api_post(path: str, **kwargs) -> Dict:
    """POST helper (see api_request)"""
    return api_request('POST', path, **kwargs)


# ==================== CONNECTION MANAGEMENT ====================

def check_api_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if the backend is reachable

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    if not config.get_api_config()['base_url']:
        return False, "Backend URL is not configured. Please set API_BASE_URL."

    try:
        get_api_session().head(_build_url('/'), timeout=5)
        return True, None
    except requests.RequestException as e:
        logger.error(f"❌ API connection failed: {e}")
        reset_api_session()
        return False, "Cannot connect to backend. Please check your network/VPN connection."


# ==================== EXPORTS ====================

__all__ = [
    'ApiError',
    'GENERIC_ERROR_MESSAGE',
    'get_friendly_error_message',
    'is_success',
    'get_api_session',
    'reset_api_session',
    'api_request',
    'api_post',
    'check_api_connection',
]
