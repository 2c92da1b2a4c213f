# utils/__init__.py
"""
Shared Utilities Package for the Production Tracker dashboard

This package contains common utilities shared across all pages:
- auth: Backend login and session management
- config: Configuration management (local + Streamlit Cloud)
- api: Backend REST session, request helpers and ApiError

Usage:
    from utils.auth import AuthManager
    from utils.api import api_post, ApiError
    from utils.config import config

    # Or import commonly used items directly
    from utils import AuthManager, api_post, config
"""

# Authentication
from .auth import AuthManager

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    API_CONFIG,
    APP_CONFIG,
)

# API
from .api import (
    ApiError,
    api_post,
    is_success,
    check_api_connection,
    reset_api_session,
)

__all__ = [
    # Auth
    'AuthManager',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'API_CONFIG',
    'APP_CONFIG',

    # API
    'ApiError',
    'api_post',
    'is_success',
    'check_api_connection',
    'reset_api_session',
]

__version__ = '2.0.0'
