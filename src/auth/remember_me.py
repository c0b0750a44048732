import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Mapping

from auth.principals import Principal
from auth.timeoutable.session_clock import utc_now

logger = logging.getLogger('sessionguard.auth.remember_me')


def remember_cookie_name(scope: str) -> str:
    return f"remember_{scope}_token"


class CookieRememberMe:
    """Remember-me check backed by the request's `remember_<scope>_token` cookie."""

    def __init__(
        self,
        cookies: Mapping[str, str],
        scope: str,
        remember_for: timedelta,
        now: Callable[[], datetime] = utc_now,
    ):
        self.cookies = cookies
        self.scope = scope
        self.remember_for = remember_for
        self._now = now

    def is_remember_me_active(self, principal: Principal) -> bool:
        token = self.cookies.get(remember_cookie_name(self.scope))
        if not token or not principal.remember_token or principal.remember_created_at is None:
            return False

        if not secrets.compare_digest(token, principal.remember_token):
            logger.warning(f"Remember-me token mismatch for {principal.principal_type} {principal.id}")
            return False

        return principal.remember_created_at + self.remember_for > self._now()


def remember(principal: Principal, now: Callable[[], datetime] = utc_now) -> str:
    """Issue a fresh remember-me token for the principal and return it."""
    principal.remember_token = secrets.token_urlsafe(32)
    principal.remember_created_at = now()
    return principal.remember_token


def forget(principal: Principal) -> None:
    principal.remember_token = None
    principal.remember_created_at = None
