# utils/config.py
"""
Centralized Configuration Management

Version: 2.1.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
- Vendor sales API settings (timeout, retries, bearer token)
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    host: str
    port: int
    user: str
    password: str
    database: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database
        }

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)


@dataclass
class VendorAPIConfig:
    """Vendor sales API configuration container"""
    base_url: str = ""
    token: Optional[str] = None
    endpoint: str = "/financeiro/vendas-por-funcionario"
    timeout_seconds: float = 15.0
    max_retries: int = 3
    retry_delay_seconds: float = 0.5
    extra_headers: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_url': self.base_url,
            'token': self.token,
            'endpoint': self.endpoint,
            'timeout_seconds': self.timeout_seconds,
            'max_retries': self.max_retries,
            'retry_delay_seconds': self.retry_delay_seconds,
            'extra_headers': dict(self.extra_headers),
        }

    def is_configured(self) -> bool:
        return bool(self.base_url and self.token)


SALES_SOURCE_CHOICES = ("ledger", "vendor")
ABSENT_TODAY_POLICY_CHOICES = ("exclude", "include")


def _validate_choice(key: str, value: str, choices) -> str:
    """Reject a setting outside its allowed values with a readable message"""
    if value not in choices:
        raise ValueError(
            f"Invalid {key}='{value}'. Expected one of: {', '.join(choices)}"
        )
    return value


def _parse_headers(raw: Optional[str]) -> Dict[str, str]:
    """Parse 'name=value;name=value' into a header dict"""
    headers = {}
    if not raw:
        return headers
    for pair in raw.split(";"):
        if "=" not in pair:
            continue
        name, value = pair.split("=", 1)
        if name.strip():
            headers[name.strip()] = value.strip()
    return headers


class Config:
    """
    Centralized configuration management

    Usage:
        from utils.config import config

        # Get database config
        db_config = config.get_db_config()

        # Get vendor API config
        api_config = config.get_vendor_api_config()

        # Get app settings
        tz_name = config.get_app_setting("TIMEZONE", "America/Sao_Paulo")

        # Check feature flags
        if config.is_feature_enabled("DEBUG_MODE"):
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

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        # Database
        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", ""),
            port=int(db_secrets.get("port", 5432)),
            user=db_secrets.get("user", ""),
            password=db_secrets.get("password", ""),
            database=db_secrets.get("database", "painel_vendas")
        )

        # Vendor sales API
        api_secrets = st.secrets.get("VENDOR_API", {})
        self._vendor_api_config = VendorAPIConfig(
            base_url=api_secrets.get("BASE_URL", ""),
            token=api_secrets.get("TOKEN"),
            endpoint=api_secrets.get("ENDPOINT", "/financeiro/vendas-por-funcionario"),
            timeout_seconds=float(api_secrets.get("TIMEOUT_SECONDS", 15)),
            max_retries=int(api_secrets.get("MAX_RETRIES", 3)),
            retry_delay_seconds=float(api_secrets.get("RETRY_DELAY_SECONDS", 0.5)),
            extra_headers=dict(api_secrets.get("EXTRA_HEADERS", {}))
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        # Find and load .env file
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        # Database
        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", ""),
            port=int(os.getenv("DB_PORT", "5432")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", os.getenv("DB_DATABASE", "painel_vendas"))
        )

        # Vendor sales API
        self._vendor_api_config = VendorAPIConfig(
            base_url=os.getenv("VENDOR_API_BASE_URL", ""),
            token=os.getenv("VENDOR_API_TOKEN"),
            endpoint=os.getenv("VENDOR_API_ENDPOINT", "/financeiro/vendas-por-funcionario"),
            timeout_seconds=float(os.getenv("VENDOR_API_TIMEOUT_SECONDS", "15")),
            max_retries=int(os.getenv("VENDOR_API_MAX_RETRIES", "3")),
            retry_delay_seconds=float(os.getenv("VENDOR_API_RETRY_DELAY_SECONDS", "0.5")),
            extra_headers=_parse_headers(os.getenv("VENDOR_API_EXTRA_HEADERS"))
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        settings = {
            # Session
            "SESSION_TIMEOUT_HOURS": int(os.getenv("SESSION_TIMEOUT_HOURS", "8")),

            # Database pool
            "DB_POOL_TIMEOUT": int(os.getenv("DB_POOL_TIMEOUT", "30")),
            "DB_COMMAND_TIMEOUT": int(os.getenv("DB_COMMAND_TIMEOUT", "60")),

            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "America/Sao_Paulo"),

            # Goal pacing
            "ABSENT_TODAY_POLICY": os.getenv("ABSENT_TODAY_POLICY", "exclude").lower(),
            "STORE_SALES_SOURCE": os.getenv("STORE_SALES_SOURCE", "vendor").lower(),
            "COLLABORATOR_SALES_SOURCE": os.getenv("COLLABORATOR_SALES_SOURCE", "ledger").lower(),
            "CATEGORY_ALIAS_FILE": os.getenv("CATEGORY_ALIAS_FILE", ""),

            # Feature flags
            "ENABLE_EXCEL_EXPORT": os.getenv("ENABLE_EXCEL_EXPORT", "true").lower() == "true",
            "ENABLE_TEAM_PROGRESS": os.getenv("ENABLE_TEAM_PROGRESS", "true").lower() == "true",
            "ENABLE_DEBUG_MODE": os.getenv("ENABLE_DEBUG_MODE", "false").lower() == "true",
        }

        _validate_choice("ABSENT_TODAY_POLICY", settings["ABSENT_TODAY_POLICY"], ABSENT_TODAY_POLICY_CHOICES)
        _validate_choice("STORE_SALES_SOURCE", settings["STORE_SALES_SOURCE"], SALES_SOURCE_CHOICES)
        _validate_choice("COLLABORATOR_SALES_SOURCE", settings["COLLABORATOR_SALES_SOURCE"], SALES_SOURCE_CHOICES)

        self._app_config = settings

    def _log_config_status(self):
        """Log configuration status"""
        if self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.warning("⚠️ Database: Not configured")
        logger.info(f"✅ Vendor API: {'Configured' if self._vendor_api_config.is_configured() else 'Not configured'}")
        logger.info(f"✅ Timezone: {self._app_config['TIMEZONE']}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        if not self._db_config.is_configured():
            logger.error("Missing required database configuration")
            raise ValueError("Missing required database configuration. Please check .env file.")
        return self._db_config.to_dict()

    def get_vendor_api_config(self) -> Dict[str, Any]:
        """Get vendor sales API configuration as dictionary"""
        return self._vendor_api_config.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

IS_RUNNING_ON_CLOUD = config.is_cloud
APP_CONFIG = config.app_config

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'VendorAPIConfig',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',
]
