from .auth import AuthConfig, BaseAuth, LoginTokenAuth
from .principals import Admin, ApiClient, Principal, PrincipalStore, User

__all__ = [
    "AuthConfig",
    "BaseAuth",
    "LoginTokenAuth",
    "Admin",
    "ApiClient",
    "Principal",
    "PrincipalStore",
    "User",
]
