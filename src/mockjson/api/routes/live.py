"""Public live-data endpoint.

GET /api/get-resource?resourceID=<id> serves a published resource's data to
any origin, metered against the owner's monthly quota. A per-process burst
limiter keyed by client IP runs before quota accounting.
"""

from http import HTTPStatus
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from mockjson.api.dependencies import get_live_data_gateway, get_rate_limiter
from mockjson.services.exceptions import GatewayError, QuotaExceeded
from mockjson.services.live_data import LiveDataGateway, RequestMetadata
from mockjson.services.rate_limiter import SlidingWindowRateLimiter

logger = structlog.get_logger()
router = APIRouter(prefix="/api", tags=["live"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error(status_code: int, message: str, headers: Optional[dict] = None):
    # "error" is always the reason phrase; "message" carries the detail
    return JSONResponse(
        status_code=status_code,
        content={"error": HTTPStatus(status_code).phrase, "message": message},
        headers={**CORS_HEADERS, **(headers or {})},
    )


@router.get("/get-resource")
async def get_live_resource(
    request: Request,
    resource_id: Optional[str] = Query(default=None, alias="resourceID"),
    gateway: LiveDataGateway = Depends(get_live_data_gateway),
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> JSONResponse:
    """Serve a live resource's stored data.

    Returns:
        200: The resource's data array, with X-RateLimit-Limit / X-RateLimit-Remaining
        400: resourceID missing, or resource not live
        404: Resource not found
        429: Burst limit or monthly quota exceeded
        500: Resource owner missing
    """
    if not resource_id:
        return _error(status.HTTP_400_BAD_REQUEST, "resourceID required")

    client_ip = request.client.host if request.client else "unknown"
    if not limiter.allow(client_ip):
        retry_after = limiter.retry_after(client_ip)
        logger.warning("live.burst_limited", client_ip=client_ip)
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Too many requests. Please slow down.",
            headers={"Retry-After": str(max(int(retry_after), 1))},
        )

    metadata = RequestMetadata(
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent"),
    )
    try:
        served = await gateway.serve(resource_id, metadata)
    except QuotaExceeded as e:
        return _error(
            e.status_code,
            str(e),
            headers={
                "X-RateLimit-Limit": str(e.limit),
                "X-RateLimit-Remaining": "0",
            },
        )
    except GatewayError as e:
        return _error(e.status_code, str(e))

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=served.data,
        headers={
            **CORS_HEADERS,
            "X-RateLimit-Limit": str(served.limit),
            "X-RateLimit-Remaining": str(served.remaining),
        },
    )
