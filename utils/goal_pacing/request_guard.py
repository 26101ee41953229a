# utils/goal_pacing/request_guard.py
"""
Stale-response guard.

Each view slot hands out a ticket per request. A result is accepted only
when its ticket is still the newest one for that slot, so a slow answer for
a store the user already navigated away from never replaces the current one.

Results are not kept: every render loads and computes again.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Dict, Hashable, MutableMapping, Optional, Tuple

logger = logging.getLogger(__name__)

SESSION_KEY = '_goal_pacing_request_guard'


class RequestGuard:
    """
    Usage:
        guard = get_request_guard(st.session_state)

        data = guard.run(
            'daily_goals', (store_id, period_id),
            lambda: run_async(load_dashboard(store_id, period))
        )
        if data is None:
            st.stop()  # superseded by a newer request
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._latest: Dict[str, Tuple[int, Hashable]] = {}

    def begin(self, slot: str, request_key: Hashable) -> int:
        """Register a new request for a slot; older tickets become stale."""
        with self._lock:
            ticket = next(self._counter)
            self._latest[slot] = (ticket, request_key)
            return ticket

    def is_current(self, slot: str, ticket: int) -> bool:
        with self._lock:
            latest = self._latest.get(slot)
            return latest is not None and latest[0] == ticket

    def run(self, slot: str, request_key: Hashable, load: Callable[[], Any]) -> Optional[Any]:
        """
        Load a fresh result for request_key.

        Returns:
            The loaded result, or None when a newer request for the same
            slot began while this one was loading
        """
        ticket = self.begin(slot, request_key)
        result = load()
        if not self.is_current(slot, ticket):
            logger.debug(f"Discarding stale result for {slot} (ticket {ticket})")
            return None
        return result


def get_request_guard(state: MutableMapping) -> RequestGuard:
    """Guard kept in a session state mapping (one per browser session)."""
    if SESSION_KEY not in state:
        state[SESSION_KEY] = RequestGuard()
    return state[SESSION_KEY]
