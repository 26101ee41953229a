# utils/__init__.py
"""
Shared Utilities Package for Streamlit Apps

This package contains common utilities shared across all pages:
- auth: Authentication and session management
- config: Configuration management (local + Streamlit Cloud)
- db: Async database engine and query helpers
- vendor_api: Vendor sales API client

Usage:
    # Import specific modules
    from utils.auth import AuthManager
    from utils.db import execute_query, run_async
    from utils.config import config
    from utils.vendor_api import get_vendor_client

    # Or import commonly used items directly
    from utils import AuthManager, run_async, config
"""

# Authentication
from .auth import (
    AuthManager,
    require_login,
    require_roles,
)

# Configuration
from .config import (
    config,
    Config,
    IS_RUNNING_ON_CLOUD,
    APP_CONFIG,
)

# Database
from .db import (
    get_db_engine,
    run_async,
    check_db_connection,
    reset_db_engine,
    get_connection,
    execute_query,
    execute_query_df,
    execute_update,
)

# Vendor sales API
from .vendor_api import (
    VendorAPIError,
    VendorSalesClient,
    get_vendor_client,
)

__all__ = [
    # Auth
    'AuthManager',
    'require_login',
    'require_roles',

    # Config
    'config',
    'Config',
    'IS_RUNNING_ON_CLOUD',
    'APP_CONFIG',

    # Database
    'get_db_engine',
    'run_async',
    'check_db_connection',
    'reset_db_engine',
    'get_connection',
    'execute_query',
    'execute_query_df',
    'execute_update',

    # Vendor API
    'VendorAPIError',
    'VendorSalesClient',
    'get_vendor_client',
]

__version__ = '3.0.0'
