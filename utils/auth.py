# utils/auth.py
"""
Authentication Manager for Streamlit Apps

Version: 3.0.0
Features:
- SHA256 + salt password hashing (usuarios.senha_hash / senha_salt)
- Role (usuarios.tipo) and store (usuarios.loja_id) in session
- Session management with timeout
"""

import streamlit as st
import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple, List
from functools import wraps
import logging
from .db import execute_query, execute_update, run_async
from .config import config

logger = logging.getLogger(__name__)

AUTH_SESSION_KEYS = [
    'authenticated', 'user_id', 'username', 'user_role', 'user_fullname',
    'store_id', 'employee_code', 'login_time', 'debug_mode',
]


class AuthManager:
    """Authentication manager for Streamlit apps"""

    def __init__(self):
        self.session_timeout = timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )

    # ==================== PASSWORD HASHING ====================

    def hash_password(self, password: str, salt: str = None) -> Tuple[str, str]:
        """
        Hash password with SHA256 + salt

        Args:
            password: Plain text password
            salt: Optional salt (generated if not provided)

        Returns:
            Tuple of (hash, salt)
        """
        if not salt:
            salt = secrets.token_hex(32)

        pwd_hash = hashlib.sha256((password + salt).encode()).hexdigest()
        return pwd_hash, salt

    def verify_password(self, password: str, stored_hash: str, salt: str) -> bool:
        """Verify password against stored hash"""
        if not stored_hash or not salt:
            return False
        pwd_hash, _ = self.hash_password(password, salt)
        return secrets.compare_digest(pwd_hash, stored_hash)

    # ==================== AUTHENTICATION ====================

    async def _load_user(self, login: str) -> Optional[Dict]:
        rows = await execute_query(
            """
            SELECT id, login, nome, tipo, loja_id, codigo_funcionario,
                   status, senha_hash, senha_salt
            FROM usuarios
            WHERE login = :login
            """,
            {'login': login}
        )
        return rows[0] if rows else None

    def authenticate(self, username: str, password: str) -> Tuple[bool, Optional[Dict]]:
        """
        Authenticate user against database

        Args:
            username: usuarios.login
            password: Plain text password

        Returns:
            Tuple of (success: bool, user_info: dict or error: dict)
        """
        try:
            user = run_async(self._load_user(username))

            if not user:
                logger.warning(f"Login attempt for non-existent user: {username}")
                return False, {"error": "Usuário ou senha inválidos"}

            if (user.get('status') or '').lower() != 'ativo':
                logger.warning(f"Login attempt for inactive user: {username}")
                return False, {"error": "Usuário inativo. Procure o administrador."}

            if not self.verify_password(password, user.get('senha_hash'), user.get('senha_salt')):
                logger.warning(f"Invalid password for user: {username}")
                return False, {"error": "Usuário ou senha inválidos"}

            self._update_last_login(user['id'])

            logger.info(f"User {username} authenticated successfully")

            return True, {
                'id': user['id'],
                'username': user['login'],
                'role': (user.get('tipo') or '').lower(),
                'full_name': user.get('nome') or user['login'],
                'store_id': user.get('loja_id'),
                'employee_code': user.get('codigo_funcionario'),
                'login_time': datetime.now()
            }

        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return False, {"error": "Falha na autenticação. Tente novamente."}

    def _update_last_login(self, user_id: int):
        """Update user's last login timestamp"""
        try:
            run_async(execute_update(
                "UPDATE usuarios SET ultimo_login = NOW() WHERE id = :user_id",
                {'user_id': user_id}
            ))
        except Exception as e:
            logger.warning(f"Could not update last login: {e}")

    # ==================== SESSION MANAGEMENT ====================

    def check_session(self) -> bool:
        """Check if user session is valid and not expired"""
        if not st.session_state.get('authenticated'):
            return False

        login_time = st.session_state.get('login_time')
        if login_time:
            elapsed = datetime.now() - login_time
            if elapsed > self.session_timeout:
                logger.info(f"Session expired for user: {st.session_state.get('username')}")
                self.logout()
                return False

        return True

    def login(self, user_info: Dict):
        """Initialize user session after successful authentication"""
        st.session_state.authenticated = True
        st.session_state.user_id = user_info['id']
        st.session_state.username = user_info['username']
        st.session_state.user_role = user_info['role']
        st.session_state.user_fullname = user_info['full_name']
        st.session_state.store_id = user_info.get('store_id')
        st.session_state.employee_code = user_info.get('employee_code')
        st.session_state.login_time = user_info['login_time']

        st.session_state.debug_mode = False

        logger.info(f"User {user_info['username']} ({user_info['role']}) logged in successfully")

    def logout(self):
        """Clear user session and cache"""
        username = st.session_state.get('username', 'Unknown')

        for key in AUTH_SESSION_KEYS:
            if key in st.session_state:
                del st.session_state[key]

        st.cache_data.clear()

        logger.info(f"User {username} logged out")

    # ==================== ACCESS CONTROL ====================

    def require_auth(self) -> bool:
        """
        Require authentication to access a page
        Use at the beginning of each protected page
        """
        if not self.check_session():
            st.warning("⚠️ Faça login para acessar esta página")
            st.stop()
            return False
        return True

    def require_role(self, allowed_roles: List[str]) -> bool:
        """
        Require specific role(s) to access a page

        Usage:
            auth.require_role(['admin', 'supervisor'])
        """
        if not self.require_auth():
            return False

        current_role = st.session_state.get('user_role', '')

        if current_role not in allowed_roles:
            st.error(f"🚫 Acesso negado. Perfis permitidos: {', '.join(allowed_roles)}")
            st.stop()
            return False

        return True

    def has_role(self, role: str) -> bool:
        return st.session_state.get('user_role', '') == role

    def is_admin(self) -> bool:
        return self.has_role('admin')

    # ==================== USER INFO HELPERS ====================

    def get_user_display_name(self) -> str:
        """Get user's display name for UI"""
        if st.session_state.get('user_fullname'):
            return st.session_state.user_fullname
        return st.session_state.get('username', 'Usuário')

    def get_user_id(self) -> Optional[int]:
        return st.session_state.get('user_id')

    def get_current_user(self) -> Dict:
        """Get all current user info as dictionary"""
        return {
            'id': st.session_state.get('user_id'),
            'username': st.session_state.get('username'),
            'role': st.session_state.get('user_role'),
            'fullname': st.session_state.get('user_fullname'),
            'store_id': st.session_state.get('store_id'),
            'employee_code': st.session_state.get('employee_code'),
        }


# ==================== DECORATORS ====================

def require_login(func):
    """Decorator to require login for a function"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        auth = AuthManager()
        if auth.require_auth():
            return func(*args, **kwargs)
    return wrapper


def require_roles(*roles):
    """Decorator to require specific roles"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            auth = AuthManager()
            if auth.require_role(list(roles)):
                return func(*args, **kwargs)
        return wrapper
    return decorator


# ==================== MODULE EXPORTS ====================

__all__ = [
    'AuthManager',
    'require_login',
    'require_roles',
]
