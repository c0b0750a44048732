import json
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class SessionData(BaseModel):
    """Server-side session, one bag of values per authentication scope.

    Each scope bag holds `principal_type`, `principal_id`, `authenticated` and
    the timestamps managed by `SessionClock`.
    """
    scopes: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-scope session values, e.g. {'user': {...}, 'admin': {...}}",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def decode_scopes(cls, value: Any) -> Any:
        # String-typed stores hand the nested mapping back as JSON
        if isinstance(value, str):
            return json.loads(value)
        return value
