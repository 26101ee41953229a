# utils/db.py
"""
Database Connection Management

Version: 2.1.0
Features:
- Lazy async engine (SQLAlchemy asyncio + asyncpg)
- Health check utilities
- Query execution helpers (dicts / DataFrame)
- run_async() bridge for synchronous Streamlit scripts
"""

import asyncio
import pandas as pd
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool
from sqlalchemy.exc import OperationalError
from urllib.parse import quote_plus
import logging
import threading
from typing import Tuple, Optional, Dict, Any, List
from contextlib import asynccontextmanager

from .config import config

logger = logging.getLogger(__name__)

# ==================== SINGLETON ENGINE ====================

_engine: Optional[AsyncEngine] = None
_engine_lock = threading.Lock()


def get_db_engine() -> AsyncEngine:
    """
    Get SQLAlchemy async engine (singleton pattern)

    Double-checked locking guards creation because Streamlit serves
    sessions from several script threads.

    Returns:
        SQLAlchemy AsyncEngine instance
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def _create_engine() -> AsyncEngine:
    """Create new async database engine with configured settings"""
    db_config = config.get_db_config()

    user = db_config["user"]
    password = quote_plus(str(db_config["password"]))
    host = db_config["host"]
    port = db_config["port"]
    database = db_config["database"]

    url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"

    logger.info(f"🔌 Creating database engine: postgresql+asyncpg://{user}:***@{host}:{port}/{database}")

    command_timeout = config.get_app_setting("DB_COMMAND_TIMEOUT", 60)

    # asyncpg connections belong to the event loop that opened them and every
    # Streamlit rerun runs its own loop, so connections are not pooled.
    engine = create_async_engine(
        url,
        poolclass=NullPool,
        connect_args={"command_timeout": command_timeout},
        echo=False
    )

    logger.info(f"✅ Database engine created (command_timeout={command_timeout}s)")

    return engine


# ==================== EVENT LOOP BRIDGE ====================

def run_async(coro):
    """
    Run a coroutine to completion from synchronous Streamlit code.

    Usage:
        metrics = run_async(orchestrator.fetch_store_metrics(store, period))
    """
    return asyncio.run(coro)


# ==================== CONNECTION MANAGEMENT ====================

async def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    try:
        engine = get_db_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True, None
    except ValueError as e:
        logger.error(f"❌ Database not configured: {e}")
        return False, str(e)
    except OperationalError as e:
        error_msg = "Cannot connect to database. Please check your network/VPN connection."
        logger.error(f"❌ Database connection failed: {e}")
        return False, error_msg
    except Exception as e:
        error_msg = f"Database error: {str(e)}"
        logger.error(f"❌ Database error: {e}")
        return False, error_msg


async def reset_db_engine():
    """
    Reset the database engine (force new connection)

    Call this after persistent connection errors or
    when you need to reconnect with different settings.
    """
    global _engine

    engine = None
    with _engine_lock:
        engine, _engine = _engine, None

    if engine is not None:
        try:
            await engine.dispose()
            logger.info("🔄 Database engine disposed")
        except Exception as e:
            logger.error(f"Error disposing engine: {e}")

    logger.info("🔄 Database engine reset - will reconnect on next query")


# ==================== CONTEXT MANAGERS ====================

@asynccontextmanager
async def get_connection():
    """
    Async context manager for database connections

    Usage:
        async with get_connection() as conn:
            result = await conn.execute(text("SELECT * FROM table"))
    """
    engine = get_db_engine()
    async with engine.connect() as conn:
        try:
            yield conn
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise


# ==================== QUERY HELPERS ====================

async def execute_query(query: str, params: Dict = None) -> List[Dict]:
    """
    Execute SELECT query and return results as list of dicts

    Args:
        query: SQL query string
        params: Query parameters

    Returns:
        List of dictionaries
    """
    engine = get_db_engine()

    async with engine.connect() as conn:
        result = await conn.execute(text(query), params or {})
        return [dict(row._mapping) for row in result]


async def execute_query_df(query: str, params: Dict = None) -> pd.DataFrame:
    """
    Execute SELECT query and return results as DataFrame

    Args:
        query: SQL query string
        params: Query parameters

    Returns:
        pandas DataFrame
    """
    engine = get_db_engine()

    async with engine.connect() as conn:
        result = await conn.execute(text(query), params or {})
        columns = list(result.keys())
        return pd.DataFrame([dict(row) for row in result.mappings()], columns=columns)


async def execute_update(query: str, params: Dict = None) -> int:
    """
    Execute INSERT/UPDATE/DELETE query

    Args:
        query: SQL query string
        params: Query parameters

    Returns:
        Number of affected rows
    """
    async with get_connection() as conn:
        result = await conn.execute(text(query), params or {})
        return result.rowcount


# ==================== EXPORTS ====================

__all__ = [
    'get_db_engine',
    'run_async',
    'check_db_connection',
    'reset_db_engine',
    'get_connection',
    'execute_query',
    'execute_query_df',
    'execute_update',
]
