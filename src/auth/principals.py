"""Authenticated principals and the in-memory store that resolves them."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ClassVar, Dict, Optional, Tuple, Type

from auth.timeoutable.capability import NotTimeoutAware, TimeoutAware
from auth.timeoutable.config import TimeoutConfig
from auth.timeoutable.policy import TimeoutPolicy
from auth.timeoutable.session_clock import utc_now

logger = logging.getLogger('sessionguard.auth.principals')


@dataclass
class Principal:
    id: str
    remember_token: Optional[str] = None
    remember_created_at: Optional[datetime] = None

    principal_type: ClassVar[str] = "principal"


@dataclass
class User(Principal, TimeoutAware):
    principal_type: ClassVar[str] = "user"


@dataclass
class Admin(Principal, TimeoutAware):
    principal_type: ClassVar[str] = "admin"


@dataclass
class ApiClient(Principal, NotTimeoutAware):
    principal_type: ClassVar[str] = "api_client"


PRINCIPAL_TYPES: Dict[str, Type[Principal]] = {
    cls.principal_type: cls for cls in (User, Admin, ApiClient)
}


class PrincipalStore:
    """In-memory registry of principals, keyed by (principal_type, id).

    Every timeout aware principal added here gets the `TimeoutPolicy` for its
    type from the injected configuration.
    """

    def __init__(self, config: TimeoutConfig, now: Callable[[], datetime] = utc_now):
        self.config = config
        self._now = now
        self._policies: Dict[str, TimeoutPolicy] = {}
        self._principals: Dict[Tuple[str, str], Principal] = {}

    def policy_for(self, principal_type: str) -> TimeoutPolicy:
        if principal_type not in self._policies:
            self._policies[principal_type] = TimeoutPolicy(self.config.timeout_for(principal_type), now=self._now)
        return self._policies[principal_type]

    def add(self, principal: Principal) -> Principal:
        if isinstance(principal, TimeoutAware):
            principal.timeout_policy = self.policy_for(principal.principal_type)
        self._principals[(principal.principal_type, principal.id)] = principal
        logger.debug(f"Registered {principal.principal_type} principal {principal.id}")
        return principal

    def create(self, principal_type: str, principal_id: str) -> Principal:
        try:
            cls = PRINCIPAL_TYPES[principal_type]
        except KeyError:
            raise ValueError(f"Unknown principal type '{principal_type}'")
        return self.add(cls(id=principal_id))

    def get(self, principal_type: str, principal_id: str) -> Optional[Principal]:
        return self._principals.get((principal_type, principal_id))

    def restore(
        self,
        principal_type: str,
        principal_id: str,
        remember_token: Optional[str] = None,
        remember_created_at: Optional[datetime] = None,
    ) -> Principal:
        """
        Return the registered principal, rebuilding it from session state when
        this process has not seen it yet (after a restart, or on another worker
        sharing the session store).
        """
        principal = self.get(principal_type, principal_id)
        if principal is None:
            principal = self.create(principal_type, principal_id)
            principal.remember_token = remember_token
            principal.remember_created_at = remember_created_at
            logger.info(f"Restored {principal_type} principal {principal_id} from session state")
        return principal
