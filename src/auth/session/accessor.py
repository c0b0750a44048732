import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from auth.principals import Principal
from auth.timeoutable.session_clock import parse_timestamp, to_epoch
from .models import SessionData

logger = logging.getLogger('sessionguard.auth.session')


class SessionAccessor:
    """Scoped view over one request's `SessionData`.

    Mutations happen in place; the caller persists `session_data` afterwards.
    `store` is False when the request must not persist session changes.
    """

    def __init__(self, session_data: SessionData, store: bool = True):
        self.session_data = session_data
        self.store = store
        self.signed_out: List[str] = []

    def is_authenticated(self, scope: str) -> bool:
        bag = self.session_data.scopes.get(scope)
        return bool(bag and bag.get("authenticated"))

    def session(self, scope: str) -> Dict[str, Any]:
        return self.session_data.scopes.setdefault(scope, {})

    def principal_ref(self, scope: str) -> Optional[Tuple[str, str]]:
        bag = self.session_data.scopes.get(scope)
        if not bag or "principal_type" not in bag or "principal_id" not in bag:
            return None
        return bag["principal_type"], bag["principal_id"]

    def set_remember_me(self, scope: str, principal: Principal) -> None:
        """Keep the principal's remember-me token with the scope, so other workers can check it."""
        bag = self.session(scope)
        bag["remember_token"] = principal.remember_token
        bag["remember_created_at"] = (
            None if principal.remember_created_at is None else to_epoch(principal.remember_created_at)
        )

    def remember_me_state(self, scope: str) -> Tuple[Optional[str], Optional[datetime]]:
        bag = self.session_data.scopes.get(scope) or {}
        return bag.get("remember_token"), parse_timestamp("remember_created_at", bag.get("remember_created_at"))

    def sign_in(self, scope: str, principal: Principal) -> None:
        # A fresh bag: the first request after login has no last request time
        self.session_data.scopes[scope] = {
            "principal_type": principal.principal_type,
            "principal_id": principal.id,
            "authenticated": True,
        }
        logger.info(f"Signed in {principal.principal_type} {principal.id} to scope '{scope}'")

    def sign_out(self, scope: Optional[str] = None) -> None:
        """Sign out one scope, or every scope when no scope is given."""
        if scope is None:
            scopes = list(self.session_data.scopes)
            self.session_data.scopes.clear()
        else:
            scopes = [scope] if self.session_data.scopes.pop(scope, None) is not None else []

        self.signed_out.extend(scopes)
        logger.info(f"Signed out scopes: {scopes}")

    @property
    def is_empty(self) -> bool:
        return not self.session_data.scopes
