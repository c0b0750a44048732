"""Session idle-timeout enforcement."""

from .capability import NotTimeoutAware, TimeoutAware, supports_timeout
from .config import TimeoutConfig, load_timeout_config
from .errors import MalformedTimestamp, TimeoutSignal
from .hook import RequestContext, TimeoutHook
from .policy import TimeoutPolicy
from .session_clock import SessionClock, parse_timestamp, utc_now

__all__ = [
    "NotTimeoutAware",
    "TimeoutAware",
    "supports_timeout",
    "TimeoutConfig",
    "load_timeout_config",
    "MalformedTimestamp",
    "TimeoutSignal",
    "RequestContext",
    "TimeoutHook",
    "TimeoutPolicy",
    "SessionClock",
    "parse_timestamp",
    "utc_now",
]
