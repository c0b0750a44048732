from fastapi import APIRouter
from typing import Any, Optional
from schema import SignInRequiredResponse
import logging

logger = logging.getLogger('sessionguard.service.routers.misc')

router = APIRouter()


@router.get("/status")
async def get_status() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/login")
async def sign_in_page(scope: Optional[str] = None, reason: Optional[str] = None) -> SignInRequiredResponse:
    """
    Landing point for timed out sessions.

    The actual credential entry happens in the client; this only reports why
    the user was sent here.
    """
    message = "Your session timed out, please sign in again" if reason == "timeout" else "Please sign in"
    return SignInRequiredResponse(message=message, scope=scope, reason=reason)
