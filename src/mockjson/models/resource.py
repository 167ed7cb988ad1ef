"""Resource entity - a named, persisted result set bound to a project."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from mockjson.core.timezone import utcnow


class Resource(SQLModel, table=True):
    """Resource holds generated records; visible through the public gateway iff live."""

    __tablename__ = "resources"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: str = Field(max_length=255, index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=255)
    data: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    live: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
