# utils/goal_pacing/access_control.py
"""
Role-based Access Control for Goal Pacing

Handles what a logged-in user may see, based on usuarios.tipo:
- admin/supervisor/rh: every store and collaborator
- gerente/lider/sublider/subgerente: own store, its team table
- auxiliar/farmaceutico/consultora: own individual goals only

Also owns the role -> individual goal categories mapping.
"""

import logging
from typing import Iterable, List, Optional

from .constants import (
    FULL_ACCESS_ROLES, STORE_ACCESS_ROLES,
    CATEGORIES_BY_ROLE, GENERAL_CATEGORY,
)

logger = logging.getLogger(__name__)

ACCESS_FULL = 'full'
ACCESS_STORE = 'store'
ACCESS_SELF = 'self'


def categories_for_role(role: Optional[str]) -> List[str]:
    """Individual goal categories shown for a role ('geral' only for unknown roles)."""
    role = (role or '').lower()
    categories = CATEGORIES_BY_ROLE.get(role)
    if categories is None:
        logger.debug(f"No category set for role '{role}', using {GENERAL_CATEGORY} only")
        return [GENERAL_CATEGORY]
    return list(categories)


class AccessControl:
    """
    Manage data access based on user role and store.

    Usage:
        access = AccessControl(
            user_role=st.session_state.user_role,
            user_id=st.session_state.user_id,
            store_id=st.session_state.store_id
        )

        level = access.get_access_level()  # 'full', 'store' or 'self'
        store_ids = access.filter_store_ids(all_store_ids)
    """

    def __init__(self, user_role: str, user_id: int, store_id: Optional[int] = None):
        """
        Initialize access control.

        Args:
            user_role: usuarios.tipo of the logged-in user
            user_id: usuarios.id
            store_id: usuarios.loja_id (None for chain-wide users)
        """
        self.user_role = user_role.lower() if user_role else ''
        self.user_id = user_id
        self.store_id = store_id

        logger.info(
            f"AccessControl initialized: role={self.user_role}, "
            f"user_id={self.user_id}, store_id={self.store_id}"
        )

    # =========================================================================
    # ACCESS LEVEL DETERMINATION
    # =========================================================================

    def get_access_level(self) -> str:
        """
        Determine access level based on role.

        Returns:
            'full' - Any store, any collaborator
            'store' - Own store and its collaborators
            'self' - Own individual goals only
        """
        if self.user_role in FULL_ACCESS_ROLES:
            return ACCESS_FULL
        elif self.user_role in STORE_ACCESS_ROLES:
            return ACCESS_STORE
        else:
            return ACCESS_SELF

    def can_select_store(self) -> bool:
        return self.get_access_level() == ACCESS_FULL

    def can_view_store_goals(self) -> bool:
        return self.get_access_level() != ACCESS_SELF or self.store_id is not None

    def can_view_team(self) -> bool:
        return self.get_access_level() in (ACCESS_FULL, ACCESS_STORE)

    def has_individual_goals(self) -> bool:
        """Chain-wide roles have no individual targets of their own."""
        return self.get_access_level() != ACCESS_FULL

    # =========================================================================
    # FILTERING
    # =========================================================================

    def filter_store_ids(self, store_ids: Iterable[int]) -> List[int]:
        """Stores this user may select."""
        store_ids = list(store_ids)
        if self.can_select_store():
            return store_ids
        if self.store_id is None:
            return []
        return [s for s in store_ids if s == self.store_id]

    def validate_store(self, store_id: Optional[int]) -> Optional[int]:
        """
        Store actually shown for a requested store id.

        Users bound to a store always get their own store back.
        """
        if self.can_select_store():
            return store_id
        if store_id is not None and store_id != self.store_id:
            logger.warning(
                f"User {self.user_id} requested store {store_id}, "
                f"falling back to own store {self.store_id}"
            )
        return self.store_id

    def __repr__(self) -> str:
        return (
            f"AccessControl(role='{self.user_role}', "
            f"user_id={self.user_id}, "
            f"level='{self.get_access_level()}')"
        )
