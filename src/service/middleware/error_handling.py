import logging
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from auth.timeoutable import MalformedTimestamp

logger = logging.getLogger('sessionguard.service.middleware')


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to turn unexpected errors into a consistent JSON error response"""

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except HTTPException:
            # Http Exceptions should be handled by fastapi's default handler or the custom one we set up
            raise
        except MalformedTimestamp as exc:
            logger.error(f"Corrupted session data for {request.url}: {exc}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Session data is corrupted",
                    "error_code": "session_corrupted",
                    "message": "Your session could not be read. Please sign in again.",
                    "action_required": "Please sign in to continue"
                }
            )
        except Exception as exc:
            # Handle unexpected errors
            logger.error(f"Unexpected error for {request.url}: {str(exc)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error occurred",
                    "error_code": "internal_error",
                    "message": "An unexpected error occurred. Please try again later.",
                    "action_required": "Please refresh the page and try again"
                }
            )
