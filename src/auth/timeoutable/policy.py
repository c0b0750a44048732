from datetime import datetime, timedelta
from typing import Callable, Optional

from .session_clock import utc_now


class TimeoutPolicy:
    """Decides whether a session has been idle for too long.

    Example:
        policy = TimeoutPolicy(timedelta(minutes=30))
        policy.is_timed_out(utc_now() - timedelta(minutes=31))  # True
    """

    def __init__(self, timeout_in: Optional[timedelta], now: Callable[[], datetime] = utc_now):
        self.timeout_in = timeout_in
        self._now = now

    def is_timed_out(self, last_access: Optional[datetime]) -> bool:
        """
        Check whether the session expired based on the configured timeout.

        A missing timeout means the principal never times out, and a missing
        last access means this is the first request after login. A session
        idle for exactly `timeout_in` counts as timed out.
        """
        if self.timeout_in is None or last_access is None:
            return False
        return last_access <= self._now() - self.timeout_in

    def __repr__(self) -> str:
        return f"TimeoutPolicy(timeout_in={self.timeout_in!r})"
