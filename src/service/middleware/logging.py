import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request, HTTPException

logger = logging.getLogger('sessionguard.service.middleware')


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log requests and responses for debugging session issues"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        logger.debug(f"REQUEST_DEBUG: {request.method} {request.url}")

        # Never log cookie values, only whether they are present
        logger.debug(f"REQUEST_DEBUG: Session cookie present: {'session' in request.cookies}")
        remember_cookies = [name for name in request.cookies if name.startswith("remember_")]
        if remember_cookies:
            logger.debug(f"REQUEST_DEBUG: Remember-me cookies: {remember_cookies}")

        try:
            response = await call_next(request)

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(f"RESPONSE_DEBUG: Status {response.status_code} in {elapsed_ms:.1f}ms")

            if response.status_code >= 400:
                logger.error(f"ERROR_RESPONSE_DEBUG: Status {response.status_code} for {request.url}")
            elif response.status_code == 303:
                logger.info(f"REDIRECT_DEBUG: {request.url.path} -> {response.headers.get('location')}")

            return response

        except HTTPException as exc:
            logger.error(f"HTTP_EXCEPTION_DEBUG: Status {exc.status_code}, Detail: {exc.detail}")
            raise
        except Exception as exc:
            logger.error(f"UNEXPECTED_EXCEPTION_DEBUG: {type(exc)}: {str(exc)}")
            raise
