import json
from typing import Any, Dict, Generic, Type
from fastapi_sessions.backends.session_backend import (
    BackendError,
    SessionBackend,
    SessionModel,
)
import redis.asyncio as aioredis
from redis import RedisError, ConnectionError as RedisConnectionError
from pydantic import ValidationError
import logging
from fastapi_sessions.frontends.session_frontend import ID

logger = logging.getLogger('sessionguard.session.redis')


def to_redis_mapping(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a dumped session model into values a Redis hash can hold.

    Nested mappings and lists (the per-scope bags) are JSON encoded so they
    survive the round trip; the session model decodes them again on read.
    """
    # Note: Check bool BEFORE int since bool is a subclass of int in Python
    return {
        k: json.dumps(v) if isinstance(v, (dict, list))
        else str(v) if isinstance(v, bool)
        else v if isinstance(v, (str, int, float))
        else str(v)
        for k, v in data.items()
    }


class RedisBackend(Generic[ID, SessionModel], SessionBackend[ID, SessionModel]):
    def __init__(self, redis_client: aioredis.Redis, session_model: Type[SessionModel]):
        """Initialize the Redis backend with an async Redis client."""
        self.redis_client = redis_client
        self.session_model = session_model

    def _handle_redis_error(self, operation: str, session_id: ID, error: Exception) -> None:
        """Centralized error handling for Redis operations."""
        if isinstance(error, RedisConnectionError):
            logger.error(f"Redis connection failed during {operation} for session {session_id}: {error}")
            raise BackendError(f"Database connection error during {operation}")
        elif isinstance(error, RedisError):
            logger.error(f"Redis error during {operation} for session {session_id}: {error}")
            raise BackendError(f"Database error during {operation}")
        else:
            logger.error(f"Unexpected error during {operation} for session {session_id}: {error}")
            raise BackendError(f"Unexpected error during {operation}")

    def _validate(self, session_id: ID, raw: Dict[str, Any]) -> SessionModel:
        try:
            return self.session_model.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Invalid session data found for session {session_id}: {e}")
            raise BackendError("Corrupted session data")

    async def create(self, session_id: ID, data: SessionModel) -> None:
        try:
            if await self.redis_client.exists(str(session_id)):
                raise BackendError("create can't overwrite an existing session")
            await self.redis_client.hset(str(session_id), mapping=to_redis_mapping(data.model_dump()))  # type: ignore[misc]
            logger.debug(f"Session {session_id} created")
        except BackendError:
            raise
        except Exception as e:
            self._handle_redis_error("session creation", session_id, e)

    async def update(self, session_id: ID, data: SessionModel) -> None:
        try:
            existing = await self.redis_client.hgetall(str(session_id))  # type: ignore[misc]
            if not existing:
                raise BackendError("Session does not exist, cannot update")

            merged = self._validate(session_id, existing).model_copy(deep=True, update=data.model_dump())

            # Replace the whole hash so scopes removed by a sign out do not linger
            async with self.redis_client.pipeline(transaction=True) as pipe:
                pipe.delete(str(session_id))
                pipe.hset(str(session_id), mapping=to_redis_mapping(merged.model_dump()))
                await pipe.execute()
            logger.debug(f"Session {session_id} updated")
        except BackendError:
            raise
        except Exception as e:
            self._handle_redis_error("session update", session_id, e)

    async def read(self, session_id: ID) -> SessionModel | None:
        try:
            raw = await self.redis_client.hgetall(str(session_id))  # type: ignore[misc]
        except Exception as e:
            self._handle_redis_error("session read", session_id, e)
            raise  # Never reached, but helps type checker

        if not raw:
            logger.debug(f"Session {session_id} not found")
            return None
        return self._validate(session_id, raw)

    async def delete(self, session_id: ID) -> None:
        try:
            deleted_count = await self.redis_client.delete(str(session_id))
        except Exception as e:
            self._handle_redis_error("session deletion", session_id, e)
            return

        if deleted_count == 0:
            logger.warning(f"Session {session_id} was not deleted, may have been removed concurrently")
        else:
            logger.debug(f"Session {session_id} deleted")
