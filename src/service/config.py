"""
Configuration setup for the session guard service.

This module handles all configuration initialization including:
- CORS settings
- Authentication configuration
- Idle-timeout settings
"""
import os
import logging
from typing import Tuple

from dotenv import load_dotenv

from auth.auth import AuthConfig, LoginTokenAuth
from auth.timeoutable.config import TimeoutConfig, load_timeout_config

load_dotenv()

logger = logging.getLogger('sessionguard.service.config')


def get_cors_config() -> Tuple[list[str], list[str], list[str]]:
    """
    Parse and return CORS configuration from environment variables.

    Returns:
        Tuple containing (origins, methods, headers) lists
    """
    cors_allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
    cors_allowed_origins = [origin.strip() for origin in cors_allowed_origins if origin.strip()]

    # Development fallback
    if not cors_allowed_origins:
        logger.warning("CORS_ALLOWED_ORIGINS not set, using development defaults")
        cors_allowed_origins = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]

    cors_allowed_methods = os.getenv("CORS_ALLOWED_METHODS", "GET,POST,PUT,DELETE,OPTIONS").split(",")
    cors_allowed_methods = [method.strip() for method in cors_allowed_methods if method.strip()]

    cors_allowed_headers = os.getenv("CORS_ALLOWED_HEADERS", "Content-Type,Login-Token").split(",")
    cors_allowed_headers = [header.strip() for header in cors_allowed_headers if header.strip()]

    return cors_allowed_origins, cors_allowed_methods, cors_allowed_headers


def setup_auth() -> AuthConfig:
    """
    Configure and return authentication strategies.

    Currently only pre-issued login tokens are supported.
    """
    auth_config = AuthConfig()
    auth_config.register_auth_strategy("login_token", LoginTokenAuth())
    logger.info("Authentication configured with login token strategy")
    return auth_config


def setup_timeouts() -> TimeoutConfig:
    """
    Load idle-timeout settings from the environment.

    Raises:
        ValueError: if a timeout or REMEMBER_FOR value is not a positive number of seconds
    """
    return load_timeout_config()


__all__ = [
    'get_cors_config',
    'setup_auth',
    'setup_timeouts',
]
