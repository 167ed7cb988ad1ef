"""SQLModel database entities.

All models are imported here to ensure they're registered with SQLModel metadata
for Alembic autogenerate support.
"""

from mockjson.models.api_usage import ApiUsageLog
from mockjson.models.job import GenerationJob, InvalidStateTransition, JobStatus
from mockjson.models.resource import Resource
from mockjson.models.user import User

__all__ = [
    "User",
    "GenerationJob",
    "JobStatus",
    "InvalidStateTransition",
    "Resource",
    "ApiUsageLog",
]
