"""Users — CRUD, blocking and onboarding history for user accounts.

Invariants:
    - Handlers are thin: validate via schemas, delegate to UserService, shape the response
    - No try/except here; AppError reaches the global handler untouched
    - DELETE is a soft delete and returns 204
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import get_onboarding_service, get_user_service
from app.core.domain_types import UserStatus
from app.schemas.onboarding import OnboardingListResponse, OnboardingResponse
from app.schemas.user import (
    Pagination, UserCreate, UserListResponse, UserResponse, UserUpdate,
)
from app.services.onboarding_service import OnboardingService
from app.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate, service: UserService = Depends(get_user_service),
):
    """Register a new user."""
    user = await service.create_user(body)
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    status_filter: UserStatus | None = Query(None, alias="status"),
    service: UserService = Depends(get_user_service),
):
    """List users with pagination, newest first."""
    users, total = await service.list_users(limit, offset, status_filter)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination(limit=limit, offset=offset, total=total),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID, service: UserService = Depends(get_user_service),
):
    user = await service.get_user(user_id)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    """Partial update: only fields present in the body change."""
    user = await service.update_user(user_id, body)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID, service: UserService = Depends(get_user_service),
):
    await service.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/block", response_model=UserResponse)
async def block_user(
    user_id: UUID, service: UserService = Depends(get_user_service),
):
    user = await service.block_user(user_id)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/unblock", response_model=UserResponse)
async def unblock_user(
    user_id: UUID, service: UserService = Depends(get_user_service),
):
    user = await service.unblock_user(user_id)
    return UserResponse.model_validate(user)


@router.get("/{user_id}/onboardings", response_model=OnboardingListResponse)
async def list_user_onboardings(
    user_id: UUID,
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Onboarding attempts for a user, newest first."""
    onboardings = await service.list_for_user(user_id)
    return OnboardingListResponse(
        items=[OnboardingResponse.from_model(o) for o in onboardings],
    )
