import os
import logging
import secrets
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger('sessionguard.auth')


def mask_token(token: str) -> str:
    return f"{token[:6]}...{token[-4:]}" if len(token) > 12 else token[:3] + "..."


class BaseAuth():
    """
    A strategy that turns a login credential into a principal reference.

    Checking the credential itself is delegated to the strategy; the session
    layer only ever sees the resulting (principal_type, principal_id).
    """

    async def acheck_auth(self, token: str) -> bool:
        raise NotImplementedError

    async def get_current_user(self, token: str) -> Optional[dict]:
        raise NotImplementedError


class AuthConfig:
    # This class is used to store different types of authentication methods

    def __init__(self):
        self.auth_strategies: Dict[str, BaseAuth] = {}

    def register_auth_strategy(self, name: str, auth_strategy: BaseAuth):
        """
        Register a new authentication strategy.

        Args:
            name (str): The name of the authentication strategy.
            auth_strategy (BaseAuth): An instance of a class that inherits from BaseAuth.
        """
        if not isinstance(auth_strategy, BaseAuth):
            raise TypeError(f"{name} must be an instance of BaseAuth")
        self.auth_strategies[name] = auth_strategy


class LoginTokenAuth(BaseAuth):
    """
    Authenticates pre-issued login tokens.

    Tokens are configured up front, either directly or through the
    LOGIN_TOKENS environment variable as a comma separated list of
    `token:principal_type:principal_id` entries.
    """

    def __init__(self, tokens: Optional[Dict[str, Tuple[str, str]]] = None):
        self.tokens = tokens if tokens is not None else self.tokens_from_env()

    @staticmethod
    def tokens_from_env(raw: Optional[str] = None) -> Dict[str, Tuple[str, str]]:
        raw = os.getenv("LOGIN_TOKENS", "") if raw is None else raw
        tokens: Dict[str, Tuple[str, str]] = {}
        for entry in raw.split(","):
            entry = entry.strip()
            if not entry:
                continue
            parts = entry.split(":")
            if len(parts) != 3 or not all(parts):
                raise ValueError(f"LOGIN_TOKENS entry must be 'token:principal_type:principal_id', got '{entry}'")
            token, principal_type, principal_id = parts
            tokens[token] = (principal_type, principal_id)
        return tokens

    def _lookup(self, token: str) -> Optional[Tuple[str, str]]:
        for known, ref in self.tokens.items():
            if secrets.compare_digest(known, token):
                return ref
        return None

    async def acheck_auth(self, token: str) -> bool:
        if not token:
            raise ValueError('Login token is required')
        valid = self._lookup(token) is not None
        if not valid:
            logger.error(f"Login token rejected: {mask_token(token)}")
        return valid

    async def get_current_user(self, token: str) -> Optional[dict]:
        """
        Resolve the principal a login token belongs to.

        Returns:
            Optional[dict]: {'principal_type': ..., 'principal_id': ...} or None
            when the token is unknown.
        """
        ref = self._lookup(token)
        if ref is None:
            return None
        principal_type, principal_id = ref
        logger.debug(f"Login token {mask_token(token)} resolved to {principal_type} {principal_id}")
        return {"principal_type": principal_type, "principal_id": principal_id}
