from typing import Any


class MalformedTimestamp(ValueError):
    """Raised when a stored session timestamp cannot be normalised.

    A value that is neither epoch seconds nor a parseable date-time string
    means the session store holds corrupted data, so it is never coerced.
    """

    def __init__(self, key: str, value: Any):
        self.key = key
        self.value = value
        super().__init__(f"Malformed timestamp in session key '{key}': {value!r}")


class TimeoutSignal(Exception):
    """Control-flow interrupt raised when an idle session has been signed out.

    Only the service's exception handler catches this; it turns it into a
    redirect to the sign in page.
    """

    def __init__(self, scope: str, reason: str = "timeout"):
        self.scope = scope
        self.reason = reason
        super().__init__(f"Session for scope '{scope}' ended: {reason}")
