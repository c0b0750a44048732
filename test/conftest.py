import sys
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
import pytest
import pytest_asyncio
import logging

# Add src to Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Set environment variables before importing modules
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret-key")
os.environ["SECURE_COOKIES"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ["LOGIN_TOKENS"] = (
    "alice-token:user:alice,"
    "root-token:admin:root,"
    "bot-token:api_client:bot"
)

from httpx import AsyncClient, ASGITransport

from auth.principals import PrincipalStore
from auth.timeoutable import TimeoutConfig


class FakeClock:
    """Callable standing in for utc_now, moved forward explicitly by tests."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current

    @property
    def epoch(self) -> int:
        return int(self.current.timestamp())


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.INFO)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def sign_out_all_scopes():
    return False


@pytest.fixture
def timeout_config(sign_out_all_scopes):
    return TimeoutConfig(
        timeout_in={
            "user": timedelta(minutes=30),
            "admin": timedelta(minutes=10),
            "api_client": timedelta(minutes=1),
        },
        sign_out_all_scopes=sign_out_all_scopes,
        remember_for=timedelta(days=14),
    )


@pytest.fixture
def principal_store(timeout_config, clock):
    return PrincipalStore(timeout_config, now=clock)


@pytest_asyncio.fixture
async def client(clock, timeout_config, principal_store):
    from service.service import app
    from service.dependencies import get_clock, get_principal_store, get_timeout_config

    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_timeout_config] = lambda: timeout_config
    app.dependency_overrides[get_principal_store] = lambda: principal_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()
