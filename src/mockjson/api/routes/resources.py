"""Resource management API endpoints.

- POST /api/resources - Save a resource from explicit data or a completed job
- GET /api/resources/{resource_id} - Fetch one of the caller's resources
- POST /api/resources/{resource_id}/live - Publish, unpublish or toggle
- DELETE /api/resources/{resource_id} - Delete a resource
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from mockjson.api.dependencies import get_current_user_id, get_resource_store
from mockjson.models.resource import Resource
from mockjson.services.exceptions import (
    InvalidState,
    JobNotFound,
    ResourceLimitReached,
    ResourceNotFound,
    UserNotFound,
)
from mockjson.services.resource_store import ResourceStore

router = APIRouter(prefix="/api/resources", tags=["resources"])


class CreateResourceRequest(BaseModel):
    """Request model for saving a resource. Give either data or job_id."""

    project_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    data: Optional[list[dict[str, Any]]] = None
    job_id: Optional[UUID] = None


class SetLiveRequest(BaseModel):
    """Target visibility; omit to toggle."""

    live: Optional[bool] = None


class ResourceDTO(BaseModel):
    id: UUID
    project_id: str
    name: str
    data: list[dict[str, Any]]
    live: bool
    created_at: datetime

    @classmethod
    def from_resource(cls, resource: Resource) -> "ResourceDTO":
        return cls(
            id=resource.id,
            project_id=resource.project_id,
            name=resource.name,
            data=resource.data or [],
            live=resource.live,
            created_at=resource.created_at,
        )


@router.post("", response_model=ResourceDTO, status_code=status.HTTP_201_CREATED)
async def create_resource(
    request: CreateResourceRequest,
    user_id: UUID = Depends(get_current_user_id),
    store: ResourceStore = Depends(get_resource_store),
) -> ResourceDTO:
    """Save a resource.

    Raises:
        HTTPException 403: Free-tier resource limit reached
        HTTPException 404: Unknown user or job
        HTTPException 409: Job has not completed
        HTTPException 422: Neither or both of data/job_id given
    """
    try:
        resource = await store.create_resource(
            user_id=user_id,
            project_id=request.project_id,
            name=request.name,
            data=request.data,
            job_id=request.job_id,
        )
    except ResourceLimitReached as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except (UserNotFound, JobNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidState as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return ResourceDTO.from_resource(resource)


@router.get("/{resource_id}", response_model=ResourceDTO)
async def get_resource(
    resource_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    store: ResourceStore = Depends(get_resource_store),
) -> ResourceDTO:
    try:
        resource = await store.get_resource(user_id, resource_id)
    except ResourceNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ResourceDTO.from_resource(resource)


@router.post("/{resource_id}/live", response_model=ResourceDTO)
async def set_resource_live(
    resource_id: UUID,
    request: Optional[SetLiveRequest] = None,
    user_id: UUID = Depends(get_current_user_id),
    store: ResourceStore = Depends(get_resource_store),
) -> ResourceDTO:
    """Publish or unpublish a resource on the public endpoint."""
    live = request.live if request else None
    try:
        resource = await store.set_live(user_id, resource_id, live)
    except ResourceNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ResourceDTO.from_resource(resource)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    store: ResourceStore = Depends(get_resource_store),
) -> Response:
    try:
        await store.delete_resource(user_id, resource_id)
    except ResourceNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
