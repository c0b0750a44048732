"""
Idle-timeout configuration.

Loaded once at startup and injected into the hook and the principal store,
so nothing here is read from module-level state at request time.
"""
import os
import logging
from datetime import timedelta
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger('sessionguard.auth.timeoutable.config')

TIMEOUT_ENV_PREFIX = "TIMEOUT_IN_"
DEFAULT_REMEMBER_FOR = timedelta(weeks=2)


class TimeoutConfig(BaseModel):
    timeout_in: Dict[str, Optional[timedelta]] = Field(
        default_factory=dict,
        description="Idle timeout per principal type; None means the type never times out",
    )
    sign_out_all_scopes: bool = Field(
        default=True,
        description="Sign out every scope on timeout instead of only the timed out one",
    )
    remember_for: timedelta = Field(
        default=DEFAULT_REMEMBER_FOR,
        description="How long a remember-me token keeps a principal signed in",
    )
    sign_in_path: str = Field(
        default="/login",
        description="Where timed out browser requests are redirected",
    )

    def timeout_for(self, principal_type: str) -> Optional[timedelta]:
        return self.timeout_in.get(principal_type)


def _parse_seconds(name: str, raw: str) -> Optional[timedelta]:
    raw = raw.strip().lower()
    if raw in ("", "none", "never"):
        return None
    try:
        seconds = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got '{raw}'")
    if seconds <= 0:
        raise ValueError(f"{name} must be positive, got {seconds}")
    return timedelta(seconds=seconds)


def _parse_flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"{name} must be true or false, got '{raw}'")


def load_timeout_config(environ: Optional[Mapping[str, str]] = None) -> TimeoutConfig:
    """
    Build the timeout configuration from environment variables.

    TIMEOUT_IN_<TYPE> sets the idle timeout in seconds for principals of that
    type (e.g. TIMEOUT_IN_USER=1800). SIGN_OUT_ALL_SCOPES, REMEMBER_FOR and
    SIGN_IN_PATH cover the process-wide settings.
    """
    env = os.environ if environ is None else environ

    timeout_in: Dict[str, Optional[timedelta]] = {}
    for name, raw in env.items():
        if name.startswith(TIMEOUT_ENV_PREFIX):
            principal_type = name[len(TIMEOUT_ENV_PREFIX):].lower()
            timeout_in[principal_type] = _parse_seconds(name, raw)

    remember_for = _parse_seconds("REMEMBER_FOR", env.get("REMEMBER_FOR", ""))

    config = TimeoutConfig(
        timeout_in=timeout_in,
        sign_out_all_scopes=_parse_flag("SIGN_OUT_ALL_SCOPES", env.get("SIGN_OUT_ALL_SCOPES", "true")),
        remember_for=remember_for or DEFAULT_REMEMBER_FOR,
        sign_in_path=env.get("SIGN_IN_PATH", "/login"),
    )
    logger.info(f"Timeout configuration loaded: {config.timeout_in}, sign_out_all_scopes={config.sign_out_all_scopes}")
    return config
