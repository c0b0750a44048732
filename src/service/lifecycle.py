import logging
from typing import AsyncGenerator
from fastapi import FastAPI
from contextlib import asynccontextmanager

from .redis_client import close_redis_clients
from .dependencies import get_timeout_config

logger = logging.getLogger("sessionguard.service.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Fail at startup rather than on the first request when the timeout settings are invalid
    config = get_timeout_config()
    logger.info(f"Idle timeouts per principal type: {config.timeout_in}")

    yield

    await close_redis_clients()
