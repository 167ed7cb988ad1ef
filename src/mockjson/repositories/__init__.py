"""Repository layer for the mockjson backend.

Provides data access abstractions for all domain entities.
No base classes - each repository is self-contained.
"""

from mockjson.repositories.api_usage import ApiUsageLogRepository
from mockjson.repositories.job import GenerationJobRepository
from mockjson.repositories.resource import ResourceRepository
from mockjson.repositories.user import UserRepository

__all__ = [
    "UserRepository",
    "GenerationJobRepository",
    "ResourceRepository",
    "ApiUsageLogRepository",
]
