"""FastAPI dependencies for request context and service construction.

This module provides reusable FastAPI dependencies for:
- Settings and the UnitOfWork factory stored on app.state
- Caller identification (X-User-Id header set by the authentication layer)
- Service objects (JobStore, GenerationJobRunner, ResourceStore, LiveDataGateway)
"""

from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from mockjson.core.config import Settings
from mockjson.services.generation.orchestrator import FallbackOrchestrator
from mockjson.services.job_runner import GenerationJobRunner
from mockjson.services.job_store import JobStore
from mockjson.services.live_data import LiveDataGateway
from mockjson.services.rate_limiter import SlidingWindowRateLimiter
from mockjson.services.resource_store import ResourceStore
from mockjson.uow import UnitOfWork


def get_settings(request: Request) -> Settings:
    """Get application settings loaded during lifespan startup."""
    return request.app.state.settings


def get_uow_factory(request: Request) -> Callable[[], UnitOfWork]:
    """Get UnitOfWork factory from app state.

    Example:
        >>> @router.get("/endpoint")
        >>> async def endpoint(uow_factory=Depends(get_uow_factory)):
        ...     async with await uow_factory() as uow:
        ...         await uow.jobs.get_by_id(job_id)
    """
    return request.app.state.uow_factory


def get_orchestrator(request: Request) -> FallbackOrchestrator:
    return request.app.state.orchestrator


def get_rate_limiter(request: Request) -> SlidingWindowRateLimiter:
    return request.app.state.rate_limiter


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Identify the caller from the X-User-Id header.

    Authentication happens upstream; this dependency only parses the identity
    it forwards.

    Raises:
        HTTPException: 401 if the header is missing or not a UUID
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header"
        )
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid X-User-Id header"
        )


def get_job_store(
    uow_factory=Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
) -> JobStore:
    return JobStore(uow_factory, settings)


def get_job_runner(
    job_store: JobStore = Depends(get_job_store),
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
    uow_factory=Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
) -> GenerationJobRunner:
    return GenerationJobRunner(job_store, orchestrator, uow_factory, settings)


def get_resource_store(
    uow_factory=Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
) -> ResourceStore:
    return ResourceStore(uow_factory, settings)


def get_live_data_gateway(
    uow_factory=Depends(get_uow_factory),
    settings: Settings = Depends(get_settings),
) -> LiveDataGateway:
    return LiveDataGateway(uow_factory, settings)
