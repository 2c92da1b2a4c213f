# utils/config.py
"""
Configuration for the Production Tracker dashboard

Version: 2.0.0

Settings come from Streamlit Cloud secrets when present, otherwise from
a local .env file (python-dotenv) and the process environment.

    Secrets section/key      .env variable            default
    -----------------------  -----------------------  --------------------
    API.BASE_URL             API_BASE_URL             ""
    API.TIMEOUT_SECONDS      API_TIMEOUT_SECONDS      30
    API.TOKEN                API_TOKEN                None
    API.DEVICE_ID            DEVICE_ID                streamlit-dashboard
    API.DEVICE_TYPE          DEVICE_TYPE              LAPTOP
    APP.<NAME>               <NAME>                   see APP_DEFAULTS
"""

import os
import logging
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# name -> (default, parser)
APP_DEFAULTS: Dict[str, tuple] = {
    "SESSION_TIMEOUT_HOURS": (8, int),
    "CACHE_TTL_SECONDS": (300, int),
    "TIMEZONE": ("UTC", str),
    "MAX_FILE_SIZE_MB": (10, int),
    "ENABLE_DEBUG_MODE": (False, None),
    "ENABLE_DAILY_QC": (True, None),
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _streamlit_secrets():
    """st.secrets if a secrets file is present, else None."""
    try:
        import streamlit as st
        return st.secrets if len(st.secrets) > 0 else None
    except Exception:
        # st.secrets raises when no secrets.toml exists
        return None


@dataclass
class ApiConfig:
    """Backend REST API settings"""
    base_url: str
    timeout_seconds: float = 30.0
    token: Optional[str] = None
    device_id: str = "streamlit-dashboard"
    device_type: str = "LAPTOP"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_configured(self) -> bool:
        return bool(self.base_url)


class Config:
    """
    Singleton holding API and app settings.

    Usage:
        from utils.config import config

        base_url = config.get_api_config()['base_url']
        tz = config.get_app_setting("TIMEZONE", "UTC")

        if config.is_feature_enabled("DAILY_QC"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._secrets = _streamlit_secrets()
        self.is_cloud = self._secrets is not None
        if not self.is_cloud:
            self._load_env_file()

        self._api_config = self._read_api_config()
        self._app_config = self._read_app_config()
        self._initialized = True

        logger.info(
            f"{'☁️ Streamlit Cloud' if self.is_cloud else '💻 Local'} config: "
            f"API={self._api_config.base_url or '<unset>'}, "
            f"token={'yes' if self._api_config.token else 'session only'}, "
            f"TIMEZONE={self._app_config['TIMEZONE']}"
        )
        if not self._api_config.is_configured():
            logger.error("API base URL is not configured (API_BASE_URL / [API] BASE_URL)")

    # ==================== LOADING ====================

    @staticmethod
    def _load_env_file():
        for env_path in (Path.cwd() / ".env", Path(__file__).resolve().parent.parent / ".env"):
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                return

    def _read(self, section: str, key: str, env_name: str, default: Any = None) -> Any:
        if self._secrets is not None:
            value = self._secrets.get(section, {}).get(key)
            if value is not None:
                return value
        return os.getenv(env_name, default)

    def _read_api_config(self) -> ApiConfig:
        return ApiConfig(
            base_url=str(self._read("API", "BASE_URL", "API_BASE_URL", "")).rstrip('/'),
            timeout_seconds=float(self._read("API", "TIMEOUT_SECONDS", "API_TIMEOUT_SECONDS", 30)),
            token=self._read("API", "TOKEN", "API_TOKEN"),
            device_id=str(self._read("API", "DEVICE_ID", "DEVICE_ID", "streamlit-dashboard")),
            device_type=str(self._read("API", "DEVICE_TYPE", "DEVICE_TYPE", "LAPTOP")),
        )

    def _read_app_config(self) -> Dict[str, Any]:
        settings = {}
        for name, (default, parser) in APP_DEFAULTS.items():
            raw = self._read("APP", name, name, default)
            convert: Callable = parser or _to_bool
            try:
                settings[name] = convert(raw)
            except (TypeError, ValueError):
                logger.warning(f"Invalid value for {name}: {raw!r}, using {default!r}")
                settings[name] = default
        return settings

    # ==================== GETTERS ====================

    def get_api_config(self) -> Dict[str, Any]:
        return self._api_config.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """ENABLE_<FEATURE> flag; unknown features count as enabled."""
        return self._app_config.get(f"ENABLE_{feature.upper()}", True)

    @property
    def api_config(self) -> Dict[str, Any]:
        return self.get_api_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return dict(self._app_config)


config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
API_CONFIG = config.api_config
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'ApiConfig',
    'APP_DEFAULTS',
    'IS_RUNNING_ON_CLOUD',
    'API_CONFIG',
    'APP_CONFIG',
]
