# yaatrabuddy/services/admin/routes.py
"""
Роутер /admin.

Endpoints:
- POST /admin/set-25-rides-unlock-spin - только администратор
- GET /admin/signed-id-url?path=<uuid>/<file> - администратор или владелец
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from yaatrabuddy.api.dependencies import CurrentIdentity, get_admin_service
from yaatrabuddy.services.admin.service import AdminService
from yaatrabuddy.shared.models.common import ErrorResponse
from yaatrabuddy.shared.models.data import SignedUrlResponse, UnlockSpinResponse

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)

Service = Annotated[AdminService, Depends(get_admin_service)]


@router.post(
    "/set-25-rides-unlock-spin",
    response_model=UnlockSpinResponse,
    responses={404: {"model": ErrorResponse}},
    summary="25 поездок и повторный спин",
)
async def set_25_rides_unlock_spin(
    identity: CurrentIdentity,
    service: Service,
    body: Annotated[dict[str, Any] | None, Body()] = None,
) -> UnlockSpinResponse:
    # Тело разбирается после проверки роли: не-администратор всегда получает 403
    user_id = await service.set_25_rides_unlock_spin(identity, (body or {}).get("user_id"))
    return UnlockSpinResponse(user_id=user_id, message="25 rides set; spin unlocked")


@router.get("/signed-id-url", response_model=SignedUrlResponse, summary="Ссылка на студенческий")
async def signed_id_url(identity: CurrentIdentity, service: Service, path: str | None = None) -> SignedUrlResponse:
    return SignedUrlResponse(signedUrl=await service.signed_id_url(identity, path))
