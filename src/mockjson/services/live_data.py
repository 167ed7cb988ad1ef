"""Public live-data gateway: serve a published resource against the owner's monthly quota."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from mockjson.core.config import Settings
from mockjson.core.timezone import current_period_key, utcnow
from mockjson.models.api_usage import ApiUsageLog
from mockjson.services.exceptions import (
    OwnerMissing,
    QuotaExceeded,
    ResourceNotFound,
    ResourceNotLive,
)

logger = structlog.get_logger()


@dataclass
class RequestMetadata:
    """Caller details recorded in the audit trail."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def __post_init__(self) -> None:
        # Column widths of api_usage_logs
        if self.ip_address:
            self.ip_address = self.ip_address[:64]
        if self.user_agent:
            self.user_agent = self.user_agent[:512]


@dataclass
class LiveDataResponse:
    """Data served for a live resource plus quota headers."""

    data: list[dict[str, Any]]
    limit: int
    used: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)


class LiveDataGateway:
    """Serve live resources with lazy monthly quota reset and audit logging.

    The period reset, the limit check and the increment happen in one
    conditional UPDATE (UserRepository.consume_api_request), so concurrent
    requests for the same owner neither lose increments nor overshoot the limit.

    Args:
        uow_factory: Factory producing UnitOfWork instances
        settings: Application settings (tier limits)
        now: Clock returning naive UTC datetimes (tests pin the billing period)
    """

    def __init__(
        self,
        uow_factory: Callable[[], Any],
        settings: Settings,
        now: Callable[[], datetime] = utcnow,
    ):
        self.uow_factory = uow_factory
        self.settings = settings
        self.now = now

    def limit_for(self, is_pro: bool) -> int:
        if is_pro:
            return self.settings.pro_monthly_api_limit
        return self.settings.free_monthly_api_limit

    async def serve(
        self, resource_id: str | UUID, request: Optional[RequestMetadata] = None
    ) -> LiveDataResponse:
        """Return a live resource's data, counting the request against the owner's quota.

        Raises:
            ResourceNotFound: Resource id is unknown or not a valid id (404)
            ResourceNotLive: Resource is not published (400)
            OwnerMissing: Resource references a missing user (500)
            QuotaExceeded: Owner used up this period's quota; counter unchanged (429)
        """
        request = request or RequestMetadata()
        try:
            resource_uuid = resource_id if isinstance(resource_id, UUID) else UUID(resource_id)
        except ValueError as e:
            raise ResourceNotFound("Resource not found") from e

        period = current_period_key(self.now())

        async with await self.uow_factory() as uow:
            resource = await uow.resources.get_by_id(resource_uuid)
            if resource is None:
                raise ResourceNotFound("Resource not found")
            if not resource.live:
                raise ResourceNotLive("Resource is not live")

            owner = await uow.users.get_by_id(resource.user_id)
            if owner is None:
                logger.error(
                    "live.owner_missing",
                    resource_id=str(resource.id),
                    user_id=str(resource.user_id),
                )
                raise OwnerMissing("Resource owner not found")

            limit = self.limit_for(owner.is_pro)
            used = await uow.users.consume_api_request(owner.id, period, limit)
            status_code = 200 if used is not None else 429

            await uow.api_usage_logs.add(
                ApiUsageLog(
                    resource_id=resource.id,
                    user_id=owner.id,
                    status_code=status_code,
                    ip_address=request.ip_address,
                    user_agent=request.user_agent,
                )
            )
            data = list(resource.data or [])

        if used is None:
            logger.warning(
                "live.quota_exceeded",
                resource_id=str(resource_uuid),
                user_id=str(owner.id),
                period=period,
                limit=limit,
            )
            raise QuotaExceeded(
                f"Monthly API limit of {limit} requests reached. "
                "Upgrade to Pro or wait for the next billing period.",
                limit=limit,
                used=limit,
            )

        logger.debug(
            "live.served",
            resource_id=str(resource_uuid),
            user_id=str(owner.id),
            period=period,
            used=used,
        )
        return LiveDataResponse(data=data, limit=limit, used=used)
