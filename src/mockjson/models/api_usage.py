"""ApiUsageLog entity - audit trail for public live-data requests."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from mockjson.core.timezone import utcnow


class ApiUsageLog(SQLModel, table=True):
    """ApiUsageLog records one metered request against a live resource."""

    __tablename__ = "api_usage_logs"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    resource_id: UUID = Field(index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    status_code: int
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(default_factory=utcnow, index=True)
