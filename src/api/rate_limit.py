"""Rate limiting configuration using slowapi."""

from opentelemetry import metrics
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

meter = metrics.get_meter("ride-dispatch")

rate_limit_hits = meter.create_counter(
    name="api_rate_limit_hits_total",
    description="Total API requests rejected by rate limiting",
    unit="1",
)


def get_caller_or_ip(request: Request) -> str:
    """Rate limit by caller identity if present, otherwise by IP.

    Each caller gets its own quota so one busy rider cannot exhaust the
    limit for everyone sharing the service API key.
    """
    caller = request.headers.get("X-Caller-Identity")
    if caller:
        return f"caller:{caller}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=get_caller_or_ip)


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """429 handler with OTel tracking and Retry-After header."""
    assert isinstance(exc, RateLimitExceeded)
    rate_limit_hits.add(
        1,
        {"endpoint": request.url.path, "method": request.method},
    )

    retry_after = "60"
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit:
        window_map = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
        for unit, seconds in window_map.items():
            if unit in str(view_rate_limit):
                retry_after = str(seconds)
                break

    response = JSONResponse(
        status_code=429,
        content={"error": "rate_limited", "detail": str(exc.detail)},
    )
    response.headers["retry-after"] = retry_after
    return response
