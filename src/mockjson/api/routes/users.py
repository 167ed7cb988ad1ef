"""Account endpoints.

- GET /api/users/me - Credits, tier and this period's live API usage
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from mockjson.api.dependencies import get_current_user_id, get_settings
from mockjson.core.config import Settings
from mockjson.core.dependencies import get_uow
from mockjson.core.timezone import current_period_key
from mockjson.uow import UnitOfWork

router = APIRouter(prefix="/api/users", tags=["users"])


class AccountResponse(BaseModel):
    id: UUID
    email: str
    is_pro: bool
    credits: int
    api_requests_this_month: int
    api_requests_period: Optional[str]
    monthly_api_limit: int


@router.get("/me", response_model=AccountResponse)
async def get_account(
    user_id: UUID = Depends(get_current_user_id),
    uow: UnitOfWork = Depends(get_uow),
    settings: Settings = Depends(get_settings),
) -> AccountResponse:
    """Caller's account state.

    Usage from an earlier period reads as zero; the stored counter itself is
    reset lazily by the next live request.
    """
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    period = current_period_key()
    used = user.api_requests_this_month if user.api_requests_period == period else 0
    return AccountResponse(
        id=user.id,
        email=user.email,
        is_pro=user.is_pro,
        credits=user.credits,
        api_requests_this_month=used,
        api_requests_period=period,
        monthly_api_limit=(
            settings.pro_monthly_api_limit if user.is_pro else settings.free_monthly_api_limit
        ),
    )
