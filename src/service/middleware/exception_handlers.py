import logging
from urllib.parse import urlencode

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.exception_handlers import http_exception_handler

from auth.session import session_cookie
from auth.timeoutable import TimeoutSignal

logger = logging.getLogger('sessionguard.service.middleware')


async def custom_http_exception_handler(request: Request, exc: HTTPException):
    """Custom handler for HTTPExceptions to keep authentication errors in one format"""
    if exc.status_code in (401, 403):
        if isinstance(exc.detail, dict):
            error_response = exc.detail
        else:
            error_response = {
                "error": "Authentication required: Please sign in",
                "error_code": "authentication_failed",
                "message": str(exc.detail) if exc.detail else "Session invalid or expired",
                "action_required": "Please sign in to continue"
            }

        logger.warning(f"AUTH_ERROR_RESPONSE: {exc.status_code} - {error_response}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response,
            headers=exc.headers,
        )

    # For other HTTP exceptions, use default handler but log the details
    logger.error(f"OTHER_HTTP_EXCEPTION: {exc.status_code} - {exc.detail}")
    return await http_exception_handler(request, exc)


def wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


async def timeout_signal_handler(request: Request, exc: TimeoutSignal):
    """
    Translate a timed out session into a redirect to the sign in page.

    Clients asking for JSON get a 401 carrying the same scope and reason
    instead, since they cannot follow a redirect to an HTML form.
    """
    logger.info(f"TIMEOUT_SIGNAL: scope={exc.scope} reason={exc.reason} for {request.url.path}")

    if wants_json(request):
        response = JSONResponse(
            status_code=401,
            content={
                "error": "Session timed out: Please sign in again",
                "error_code": f"session_{exc.reason}",
                "message": "Your session expired after a period of inactivity.",
                "action_required": "Please sign in to continue",
                "scope": exc.scope,
                "reason": exc.reason,
            }
        )
    else:
        sign_in_path = getattr(request.state, "sign_in_path", "/login")
        query = urlencode({"scope": exc.scope, "reason": exc.reason})
        response = RedirectResponse(f"{sign_in_path}?{query}", status_code=303)

    if getattr(request.state, "session_deleted", False):
        session_cookie.delete_from_response(response)

    return response
