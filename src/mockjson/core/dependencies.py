"""Request-scoped Unit of Work dependency.

Routes that only read or write through repositories take a UnitOfWork
directly; routes that drive services take the factory from
mockjson.api.dependencies instead, since services open their own units.
"""

from typing import AsyncGenerator

from fastapi import Request

from mockjson.uow import UnitOfWork


async def get_uow(request: Request) -> AsyncGenerator[UnitOfWork, None]:
    """Yield a UnitOfWork spanning the request.

    Commits when the route returns, rolls back if it raises.

    Example:
        @router.get("/api/users/me")
        async def get_account(uow: UnitOfWork = Depends(get_uow)):
            return await uow.users.get_by_id(user_id)
    """
    async with await request.app.state.uow_factory() as uow:
        yield uow
