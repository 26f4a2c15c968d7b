from pydantic import BaseModel
from typing import Any, Literal, Optional

EXTERNAL_API_ERROR = "External API error"
SERVICE_UNAVAILABLE = "Service temporarily unavailable"


class ErrorResponse(BaseModel):
    error: str


class UpstreamResult(BaseModel):
    """Outcome of a single upstream call. Exactly one tag per call."""
    kind: Literal["ok", "upstream_error", "unavailable"]
    body: Any = None
    status_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == "ok"


class HealthResponse(BaseModel):
    status: str
    upstream: str
    cache_ttl: int
