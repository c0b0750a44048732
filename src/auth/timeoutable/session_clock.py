import logging
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

from dateutil.parser import parse as dtparse

from .errors import MalformedTimestamp

logger = logging.getLogger('sessionguard.auth.timeoutable')

LAST_REQUEST_AT = "last_request_at"
PENDING_RESET_TIME = "pending_reset_time"
LAST_RESET_TIME = "last_reset_time"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch(time: datetime) -> int:
    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    return int(time.timestamp())


def parse_timestamp(key: str, value: Any) -> Optional[datetime]:
    """
    Normalise a stored timestamp into an aware UTC datetime.

    Args:
        key (str): The session key the value was read from, used in errors.
        value: Epoch seconds (int or float), a string of digits holding epoch
            seconds (string-typed stores such as Redis hashes), or a date-time
            string. Naive date-times are taken as UTC.

    Returns:
        Optional[datetime]: None when nothing is stored.

    Raises:
        MalformedTimestamp: for any other value.
    """
    if value is None:
        return None

    # bool is a subclass of int, reject it before the numeric check
    if isinstance(value, bool):
        raise MalformedTimestamp(key, value)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise MalformedTimestamp(key, value)

    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return parse_timestamp(key, int(text))
        try:
            parsed = dtparse(text)
        except (ValueError, OverflowError):
            raise MalformedTimestamp(key, value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    raise MalformedTimestamp(key, value)


class SessionClock:
    """Typed access to the timestamps kept in one scope's session bag.

    The bag is the mutable mapping returned by `SessionAccessor.session(scope)`.
    Timestamps are written as integer epoch seconds and read back in any of the
    forms `parse_timestamp` accepts.
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self.session = session

    def _read(self, key: str) -> Optional[datetime]:
        try:
            return parse_timestamp(key, self.session.get(key))
        except MalformedTimestamp as e:
            logger.error(f"Corrupted session timestamp: {e}")
            raise

    def get_last_request_at(self) -> Optional[datetime]:
        return self._read(LAST_REQUEST_AT)

    def set_last_request_at(self, time: Optional[datetime] = None) -> None:
        self.session[LAST_REQUEST_AT] = to_epoch(time or utc_now())

    def get_pending_reset_time(self) -> Optional[datetime]:
        return self._read(PENDING_RESET_TIME)

    def consume_pending_reset_time(self) -> None:
        self.session[PENDING_RESET_TIME] = None

    def overwrite_reset_time(self, time: Optional[datetime]) -> None:
        """Stage a new effective last-activity time, or clear it with None."""
        self.session[PENDING_RESET_TIME] = None if time is None else to_epoch(time)

    @property
    def last_reset_time(self) -> Optional[datetime]:
        return self._read(LAST_RESET_TIME)

    def set_last_reset_time(self, time: datetime) -> None:
        self.session[LAST_RESET_TIME] = to_epoch(time)
