"""
Idle-timeout capability.

Principal types opt in explicitly: those whose sessions should expire after
inactivity inherit from `TimeoutAware`, those that must never be timed out
(e.g. machine clients) inherit from `NotTimeoutAware`. The hook dispatches on
this capability only.
"""
from datetime import datetime, timedelta
from functools import singledispatch
from typing import Optional

from .policy import TimeoutPolicy


class TimeoutAware:
    """Capability for principals whose sessions expire after inactivity."""

    # Attached per instance by the principal store, from the configured type
    timeout_policy: Optional[TimeoutPolicy] = None

    def _policy(self) -> TimeoutPolicy:
        if self.timeout_policy is None:
            raise RuntimeError(
                f"{type(self).__name__} has no timeout policy attached, register it with a PrincipalStore"
            )
        return self.timeout_policy

    def timed_out(self, last_access: Optional[datetime]) -> bool:
        return self._policy().is_timed_out(last_access)

    @property
    def timeout_in(self) -> Optional[timedelta]:
        return self._policy().timeout_in


class NotTimeoutAware:
    """Capability for principals that are never timed out."""


@singledispatch
def supports_timeout(principal: object) -> bool:
    return False


@supports_timeout.register
def _(principal: TimeoutAware) -> bool:
    return True


@supports_timeout.register
def _(principal: NotTimeoutAware) -> bool:
    return False
