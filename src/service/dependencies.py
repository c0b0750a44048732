"""
FastAPI dependencies for the session guard service.

This module provides reusable dependency functions that can be injected
into route handlers throughout the application. `current_principal` is where
the idle-timeout hook runs: right after the principal of a request has been
resolved from its session.
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable
from uuid import UUID

from fastapi import Depends, HTTPException, Request

from auth.auth import AuthConfig
from auth.principals import Principal, PrincipalStore
from auth.remember_me import CookieRememberMe
from auth.session import SessionAccessor, SessionData, backend, session_cookie, session_verifier
from auth.timeoutable import RequestContext, TimeoutConfig, TimeoutHook, TimeoutSignal, utc_now
from .config import setup_auth, setup_timeouts

logger = logging.getLogger('sessionguard.service.dependencies')


@lru_cache
def get_auth_config() -> AuthConfig:
    """
    Get the application's authentication configuration.

    This is cached as a singleton to avoid recreating the auth config
    on every request. The auth config is immutable after initialization.
    """
    return setup_auth()


@lru_cache
def get_timeout_config() -> TimeoutConfig:
    return setup_timeouts()


def get_clock() -> Callable[[], datetime]:
    return utc_now


@lru_cache
def get_principal_store() -> PrincipalStore:
    return PrincipalStore(get_timeout_config())


def get_timeout_hook(
    config: TimeoutConfig = Depends(get_timeout_config),
    now: Callable[[], datetime] = Depends(get_clock),
) -> TimeoutHook:
    return TimeoutHook(config, now=now)


@dataclass
class TimeoutFlags:
    skip_timeoutable: bool = False
    skip_timeout: bool = False
    skip_trackable: bool = False


def request_flags(
    *,
    skip_timeoutable: bool = False,
    skip_timeout: bool = False,
    skip_trackable: bool = False,
    store: bool = True,
):
    """
    Build a route dependency that sets the per-request timeout escape hatches.

    Declare it in the route's `dependencies` so it runs before
    `current_principal`, e.g. a polling endpoint that must not keep the
    session alive uses `request_flags(skip_trackable=True)`.
    """
    def set_flags(request: Request) -> None:
        request.state.timeout_flags = TimeoutFlags(
            skip_timeoutable=skip_timeoutable,
            skip_timeout=skip_timeout,
            skip_trackable=skip_trackable,
        )
        request.state.session_store = store

    return set_flags


async def save_session(request: Request) -> None:
    """Persist the request's session, deleting it once no scope is signed in."""
    accessor: SessionAccessor = request.state.session_accessor
    if not accessor.store:
        return

    if accessor.is_empty:
        await backend.delete(request.state.session_id)
        request.state.session_deleted = True
        logger.info(f"Session {request.state.session_id} deleted, no scope left signed in")
    else:
        await backend.update(request.state.session_id, accessor.session_data)


async def current_principal(
    request: Request,
    scope: str,
    session_id: UUID = Depends(session_cookie),
    session_data: SessionData = Depends(session_verifier),
    store: PrincipalStore = Depends(get_principal_store),
    config: TimeoutConfig = Depends(get_timeout_config),
    hook: TimeoutHook = Depends(get_timeout_hook),
    now: Callable[[], datetime] = Depends(get_clock),
) -> Principal:
    """
    Resolve the principal signed in to `scope` and run the idle-timeout hook.

    Raises:
        HTTPException: 401 when nobody is signed in to the scope.
        TimeoutSignal: the session timed out; the exception handler redirects.
    """
    accessor = SessionAccessor(session_data, store=getattr(request.state, "session_store", True))
    request.state.session_id = session_id
    request.state.session_accessor = accessor
    request.state.sign_in_path = config.sign_in_path

    principal = None
    ref = accessor.principal_ref(scope)
    if ref and accessor.is_authenticated(scope):
        # MalformedTimestamp from a corrupted bag propagates
        remember_token, remember_created_at = accessor.remember_me_state(scope)
        try:
            principal = store.restore(*ref, remember_token=remember_token, remember_created_at=remember_created_at)
        except ValueError as e:
            logger.warning(f"Session {session_id} references an unusable principal in scope '{scope}': {e}")

    if principal is None:
        raise HTTPException(
            status_code=401,
            detail={
                "error": "Authentication required: Please sign in",
                "error_code": "not_authenticated",
                "message": f"No principal is signed in to scope '{scope}'.",
                "action_required": "Please sign in to continue"
            }
        )

    flags = getattr(request.state, "timeout_flags", TimeoutFlags())
    context = RequestContext(
        scope=scope,
        remember_me=CookieRememberMe(request.cookies, scope, config.remember_for, now=now),
        **asdict(flags),
    )

    try:
        hook(principal, accessor, context)
    except TimeoutSignal:
        await save_session(request)
        raise

    await save_session(request)
    return principal
