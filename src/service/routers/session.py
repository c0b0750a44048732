from fastapi import APIRouter, Request, Response, HTTPException, Depends
from datetime import datetime, timezone
from typing import Callable, Optional
import logging
import uuid

from auth.auth import AuthConfig
from auth.principals import Principal, PrincipalStore
from auth.remember_me import forget, remember, remember_cookie_name
from auth.session import SessionAccessor, SessionData, backend, secure_cookies, session_cookie
from auth.timeoutable import SessionClock, TimeoutAware, TimeoutConfig
from auth.timeoutable.session_clock import to_epoch
from schema import ResetTimeRequest, SessionCreateResponse, SessionDeleteResponse, SessionStatusResponse
from service.dependencies import (
    current_principal,
    get_auth_config,
    get_clock,
    get_principal_store,
    get_timeout_config,
    request_flags,
    save_session,
)

logger = logging.getLogger('sessionguard.service.routers.session')

router = APIRouter(
    tags=["session"],
)


def _existing_session_id(request: Request) -> Optional[uuid.UUID]:
    # A missing or badly signed cookie yields a FrontendError, or raises with auto_error
    try:
        session_id = session_cookie(request)
    except HTTPException:
        return None
    return session_id if isinstance(session_id, uuid.UUID) else None


def _epoch(time: Optional[datetime]) -> Optional[int]:
    return None if time is None else to_epoch(time)


def _status(scope: str, request: Request, principal: Principal) -> SessionStatusResponse:
    clock = SessionClock(request.state.session_accessor.session(scope))
    timeout_in = principal.timeout_in if isinstance(principal, TimeoutAware) else None
    return SessionStatusResponse(
        scope=scope,
        principal_id=principal.id,
        principal_type=principal.principal_type,
        timeout_in=None if timeout_in is None else int(timeout_in.total_seconds()),
        last_request_at=_epoch(clock.get_last_request_at()),
        pending_reset_time=_epoch(clock.get_pending_reset_time()),
        last_reset_time=_epoch(clock.last_reset_time),
    )


@router.post("/sessions/{scope}")
async def create_session(
    scope: str,
    request: Request,
    response: Response,
    remember_me: bool = False,
    auth_config: AuthConfig = Depends(get_auth_config),
    store: PrincipalStore = Depends(get_principal_store),
    config: TimeoutConfig = Depends(get_timeout_config),
    now: Callable[[], datetime] = Depends(get_clock),
) -> SessionCreateResponse:
    """
    Sign a principal in to `scope` using the Login-Token header.

    An existing session cookie is reused so several scopes can be signed in
    at once; signing in again to a scope starts its idle tracking afresh.
    """
    token = request.headers.get("Login-Token")
    if not token:
        raise HTTPException(status_code=401, detail="Missing Login-Token header")

    strategy = auth_config.auth_strategies["login_token"]
    if not await strategy.acheck_auth(token):
        raise HTTPException(status_code=401, detail="Invalid Login-Token")

    user_data = await strategy.get_current_user(token)
    if not user_data:
        raise HTTPException(status_code=403, detail="Could not resolve principal from Login-Token")

    principal_type, principal_id = user_data["principal_type"], user_data["principal_id"]
    try:
        principal = store.get(principal_type, principal_id) or store.create(principal_type, principal_id)
    except ValueError as e:
        raise HTTPException(status_code=403, detail=str(e))

    session_id = _existing_session_id(request)
    session_data = await backend.read(session_id) if session_id else None

    is_new = session_data is None
    if is_new:
        session_id = uuid.uuid4()
        session_data = SessionData()

    accessor = SessionAccessor(session_data)
    accessor.sign_in(scope, principal)
    remember_token = remember(principal, now) if remember_me else None
    if remember_token:
        accessor.set_remember_me(scope, principal)

    if is_new:
        await backend.create(session_id, session_data)
    else:
        await backend.update(session_id, session_data)

    session_cookie.attach_to_response(response, session_id)

    if remember_token:
        response.set_cookie(
            remember_cookie_name(scope),
            remember_token,
            max_age=int(config.remember_for.total_seconds()),
            httponly=True,
            secure=secure_cookies,
            samesite="lax",
        )

    logger.info(f"Created session for {principal_type} {principal_id} in scope '{scope}' (remember_me={remember_me})")
    return SessionCreateResponse(
        message="Session created",
        scope=scope,
        principal_type=principal_type,
        remember_me=remember_me,
    )


@router.delete("/sessions/{scope}")
async def delete_session(
    scope: str,
    response: Response,
    session_id: uuid.UUID = Depends(session_cookie),
    store: PrincipalStore = Depends(get_principal_store),
) -> SessionDeleteResponse:
    """Sign out of one scope; the session itself goes once no scope is left."""
    session_data = await backend.read(session_id) if isinstance(session_id, uuid.UUID) else None
    accessor = SessionAccessor(session_data) if session_data else None
    ref = accessor.principal_ref(scope) if accessor else None

    if accessor is None or ref is None:
        return SessionDeleteResponse(message=f"Not signed in to scope '{scope}'", status="not_signed_in")

    principal = store.get(*ref)
    if principal is not None:
        forget(principal)
    response.delete_cookie(remember_cookie_name(scope))

    accessor.sign_out(scope)
    if accessor.is_empty:
        await backend.delete(session_id)
        session_cookie.delete_from_response(response)
    else:
        await backend.update(session_id, accessor.session_data)

    return SessionDeleteResponse(message=f"Signed out of scope '{scope}'", status="signed_out")


@router.get("/sessions/{scope}/status")
async def session_status(
    scope: str,
    request: Request,
    principal: Principal = Depends(current_principal),
) -> SessionStatusResponse:
    return _status(scope, request, principal)


@router.get("/sessions/{scope}/ping", dependencies=[Depends(request_flags(skip_trackable=True))])
async def ping_session(
    scope: str,
    request: Request,
    principal: Principal = Depends(current_principal),
) -> SessionStatusResponse:
    """Check the session without counting as activity."""
    return _status(scope, request, principal)


@router.get("/sessions/{scope}/poll", dependencies=[Depends(request_flags(skip_timeout=True))])
async def poll_session(
    scope: str,
    request: Request,
    principal: Principal = Depends(current_principal),
) -> SessionStatusResponse:
    """Background polling: never signs out, still refreshes activity."""
    return _status(scope, request, principal)


@router.get("/sessions/{scope}/peek", dependencies=[Depends(request_flags(store=False))])
async def peek_session(
    scope: str,
    request: Request,
    principal: Principal = Depends(current_principal),
) -> SessionStatusResponse:
    """Read the session without persisting anything, so no timeout check runs either."""
    return _status(scope, request, principal)


@router.put("/sessions/{scope}/reset-time", dependencies=[Depends(request_flags(skip_trackable=True))])
async def stage_reset_time(
    scope: str,
    body: ResetTimeRequest,
    request: Request,
    principal: Principal = Depends(current_principal),
) -> SessionStatusResponse:
    """
    Stage a new effective last-activity time for the session.

    The next qualifying request applies it when it is already due and newer
    than the stored last request time, then clears it.
    """
    clock = SessionClock(request.state.session_accessor.session(scope))
    reset_at = None if body.reset_at is None else datetime.fromtimestamp(body.reset_at, tz=timezone.utc)
    clock.overwrite_reset_time(reset_at)
    await save_session(request)

    logger.info(f"Staged reset time {body.reset_at} for {principal.principal_type} {principal.id} in scope '{scope}'")
    return _status(scope, request, principal)
