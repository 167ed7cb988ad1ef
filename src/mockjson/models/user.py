"""User entity - account with generation credits and monthly API usage counter."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from mockjson.core.timezone import utcnow


class User(SQLModel, table=True):
    """User owns jobs and resources, and carries the per-user mutable counters.

    Identity and sessions live with the external identity provider; this table
    stores only what the generation pipeline and the live gateway need.
    """

    __tablename__ = "users"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=320, unique=True, index=True)
    is_pro: bool = Field(default=False)
    credits: int = Field(default=1000)

    # Monthly live-gateway usage (lazily reset when the period key changes)
    api_requests_this_month: int = Field(default=0, ge=0)
    api_requests_period: Optional[str] = Field(default=None, max_length=16)

    created_at: datetime = Field(default_factory=utcnow)
