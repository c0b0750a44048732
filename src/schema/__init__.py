from .schema import (
    ResetTimeRequest,
    SessionCreateResponse,
    SessionDeleteResponse,
    SessionStatusResponse,
    SignInRequiredResponse,
)

__all__ = [
    "ResetTimeRequest",
    "SessionCreateResponse",
    "SessionDeleteResponse",
    "SessionStatusResponse",
    "SignInRequiredResponse",
]
