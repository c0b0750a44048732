"""
Per-request idle-timeout enforcement.

Each time a principal is resolved for a request, the hook checks whether its
session has already timed out based on the last request time. If so, the
principal is signed out and a `TimeoutSignal` is raised so the service can
redirect to the sign in page. Otherwise the last request time is refreshed
so the next request can be checked against it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, MutableMapping, Optional, Protocol

from .capability import supports_timeout
from .config import TimeoutConfig
from .errors import TimeoutSignal
from .session_clock import SessionClock, utc_now

logger = logging.getLogger('sessionguard.auth.timeoutable')


class RememberMe(Protocol):
    def is_remember_me_active(self, principal: Any) -> bool:
        ...


class SessionAccessor(Protocol):
    store: bool

    def is_authenticated(self, scope: str) -> bool:
        ...

    def session(self, scope: str) -> MutableMapping[str, Any]:
        ...

    def sign_out(self, scope: Optional[str] = None) -> None:
        ...


class _NeverRemembered:
    def is_remember_me_active(self, principal: Any) -> bool:
        return False


@dataclass
class RequestContext:
    """Per-request escape hatches and collaborators seen by the hook."""
    scope: str
    remember_me: RememberMe = field(default_factory=_NeverRemembered)
    skip_timeoutable: bool = False
    skip_timeout: bool = False
    skip_trackable: bool = False


class TimeoutHook:
    def __init__(self, config: TimeoutConfig, now: Callable[[], datetime] = utc_now):
        self.config = config
        self._now = now

    def applies_to(self, principal: Any, accessor: SessionAccessor, context: RequestContext) -> bool:
        return (
            principal is not None
            and supports_timeout(principal)
            and accessor.is_authenticated(context.scope)
            and accessor.store is not False
            and not context.skip_timeoutable
        )

    def __call__(self, principal: Any, accessor: SessionAccessor, context: RequestContext) -> None:
        """
        Run the idle-timeout check for one request.

        Raises:
            TimeoutSignal: the session was idle too long and has been signed out.
            MalformedTimestamp: the stored timestamps are corrupted.
        """
        if not self.applies_to(principal, accessor, context):
            return

        scope = context.scope
        clock = SessionClock(accessor.session(scope))
        last_request_at = clock.get_last_request_at()
        reset_time = clock.get_pending_reset_time()
        now = self._now()

        # A pending reset time, even one that cannot be applied yet, suppresses the timeout check
        if (
            principal.timed_out(last_request_at)
            and not context.skip_timeout
            and not context.remember_me.is_remember_me_active(principal)
            and reset_time is None
        ):
            logger.info(f"Session for {principal.principal_type} {principal.id} timed out in scope '{scope}'")
            if self.config.sign_out_all_scopes:
                accessor.sign_out()
            else:
                accessor.sign_out(scope)
            raise TimeoutSignal(scope, "timeout")
        elif (
            reset_time is not None
            and reset_time <= now
            and (last_request_at is None or reset_time > last_request_at)
        ):
            logger.info(f"Applying reset time {reset_time.isoformat()} to scope '{scope}'")
            clock.set_last_request_at(reset_time)
            clock.set_last_reset_time(reset_time)
            clock.consume_pending_reset_time()

        if not context.skip_trackable:
            clock.set_last_request_at(now)
            logger.debug(f"Refreshed last request time for scope '{scope}'")
