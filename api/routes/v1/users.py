"""
api/routes/v1/users.py -- Role lookup for client apps.

Routes:
  GET /api/v1/users/{user_id}/is_admin -- admin flag of a user

Apps call this after verifying a token to make their own authorization
decision. 404 for an unknown user id.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from api.models import MAX_ID, IsAdminResponse
from auth.dependencies import get_auth_service
from auth.service import AuthService

router = APIRouter()


@router.get("/users/{user_id}/is_admin", response_model=IsAdminResponse)
async def is_admin(
    user_id: int = Path(gt=0, le=MAX_ID),
    service: AuthService = Depends(get_auth_service),
) -> IsAdminResponse:
    admin = await service.is_admin(user_id)
    return IsAdminResponse(user_id=user_id, is_admin=admin)
