from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field

# 9999-12-31T23:59:59Z, the last second a datetime can represent
MAX_EPOCH_SECONDS = 253402300799

EpochSeconds = Annotated[int, Field(ge=0, le=MAX_EPOCH_SECONDS)]


class SessionCreateResponse(BaseModel):
    message: str = Field(
        description="Message about session creation"
    )
    scope: str = Field(
        description="Authentication scope the principal was signed in to"
    )
    principal_type: str = Field(
        description="Type of the signed in principal",
        examples=["user", "admin", "api_client"],
    )
    remember_me: bool = Field(
        description="Whether a remember-me token was issued",
        default=False,
    )


class SessionStatusResponse(BaseModel):
    scope: str
    principal_id: str
    principal_type: str
    timeout_in: Optional[int] = Field(
        description="Idle timeout in seconds, null when the principal never times out",
        default=None,
    )
    last_request_at: Optional[int] = Field(
        description="Epoch seconds of the last request that refreshed the session",
        default=None,
    )
    pending_reset_time: Optional[int] = Field(
        description="Staged reset of the last request time, in epoch seconds",
        default=None,
    )
    last_reset_time: Optional[int] = Field(
        description="Epoch seconds of the last applied reset",
        default=None,
    )


class ResetTimeRequest(BaseModel):
    """Stage a new effective last-activity time for the session."""

    reset_at: Optional[EpochSeconds] = Field(
        description="Epoch seconds; null clears a staged reset",
        examples=[1767225600],
    )


class SignInRequiredResponse(BaseModel):
    message: str
    scope: Optional[str] = None
    reason: Optional[str] = None


class SessionDeleteResponse(BaseModel):
    message: str
    status: Literal["signed_out", "not_signed_in"]
