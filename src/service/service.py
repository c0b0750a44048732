import logging

from fastapi import FastAPI

from .config import get_cors_config
from .lifecycle import lifespan
from .middleware import setup_middleware
from .routers.misc import router as misc_router
from .routers.session import router as session_router

logger = logging.getLogger('sessionguard.service')

app = FastAPI(title="Session Guard", lifespan=lifespan)

setup_middleware(app, *get_cors_config())

app.include_router(misc_router)
app.include_router(session_router)
