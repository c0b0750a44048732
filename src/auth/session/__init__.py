"""HTTP session management for authentication scopes."""

from .config import session_cookie, backend, session_verifier, secure_cookies
from .models import SessionData
from .accessor import SessionAccessor

__all__ = [
    "session_cookie",
    "backend",
    "session_verifier",
    "secure_cookies",
    "SessionData",
    "SessionAccessor",
]
