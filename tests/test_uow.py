"""Unit of Work pattern tests.

Tests focus on transaction management:
- Successful commits persist changes
- Exceptions trigger rollback
- Multiple repository operations are atomic
"""

import pytest

from mockjson.models.job import GenerationJob
from mockjson.models.user import User


@pytest.mark.asyncio
async def test_uow_commits_on_successful_exit(uow_factory):
    """Changes made within the context persist after the context exits."""
    async with await uow_factory() as uow:
        user = await uow.users.add(User(email="commit@example.com"))
        user_id = user.id

    async with await uow_factory() as uow:
        found = await uow.users.get_by_id(user_id)
        assert found is not None
        assert found.email == "commit@example.com"


@pytest.mark.asyncio
async def test_uow_rollback_on_exception(uow_factory):
    """Changes are rolled back and the exception propagates."""
    with pytest.raises(ValueError, match="Simulated error"):
        async with await uow_factory() as uow:
            user = await uow.users.add(User(email="rollback@example.com"))
            user_id = user.id
            raise ValueError("Simulated error")

    async with await uow_factory() as uow:
        assert await uow.users.get_by_id(user_id) is None


@pytest.mark.asyncio
async def test_uow_multiple_operations_atomic(uow_factory):
    """A user and its job are saved together or not at all."""
    with pytest.raises(RuntimeError):
        async with await uow_factory() as uow:
            user = await uow.users.add(User(email="atomic@example.com"))
            job = await uow.jobs.add(
                GenerationJob(user_id=user.id, project_id="p", prompt="x", objects_count=1)
            )
            user_id, job_id = user.id, job.id
            raise RuntimeError("Simulated failure after both inserts")

    async with await uow_factory() as uow:
        assert await uow.users.get_by_id(user_id) is None
        assert await uow.jobs.get_by_id(job_id) is None


@pytest.mark.asyncio
async def test_uow_exposes_all_repositories(uow_factory):
    async with await uow_factory() as uow:
        assert uow.users is not None
        assert uow.jobs is not None
        assert uow.resources is not None
        assert uow.api_usage_logs is not None
