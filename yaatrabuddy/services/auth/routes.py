# yaatrabuddy/services/auth/routes.py
"""
Роутер /auth.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from yaatrabuddy.api.dependencies import CurrentIdentity, get_credential_service
from yaatrabuddy.services.auth.service import CredentialService
from yaatrabuddy.shared.models.auth import (
    AuthResponse,
    EnsureAdminResponse,
    PasswordResetRequest,
    SigninRequest,
    SignupRequest,
    VerifyResetTokenRequest,
)
from yaatrabuddy.shared.models.common import ErrorResponse, MessageResponse

router = APIRouter(prefix="/auth", tags=["Auth"])

Service = Annotated[CredentialService, Depends(get_credential_service)]


@router.post(
    "/signup",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Регистрация",
)
async def signup(request: SignupRequest, service: Service) -> AuthResponse:
    return await service.signup(request.email, request.password, request.full_name)


@router.post(
    "/signin",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Вход",
)
async def signin(request: SigninRequest, service: Service) -> AuthResponse:
    return await service.signin(request.email, request.password)


@router.post("/request-password-reset", response_model=MessageResponse, summary="Запросить код сброса")
async def request_password_reset(request: PasswordResetRequest, service: Service) -> MessageResponse:
    """Ответ одинаков для существующих и несуществующих email."""
    message = await service.request_password_reset(request.email)
    return MessageResponse(message=message)


@router.post(
    "/verify-reset-token",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Подтвердить код и задать новый пароль",
)
async def verify_reset_token(request: VerifyResetTokenRequest, service: Service) -> MessageResponse:
    message = await service.verify_reset_token(request.email, request.otp, request.newPassword)
    return MessageResponse(message=message)


@router.post("/admin/ensure-admin", response_model=EnsureAdminResponse, summary="Выдать роль основателю")
async def ensure_admin(identity: CurrentIdentity, service: Service) -> EnsureAdminResponse:
    return EnsureAdminResponse(isAdmin=await service.ensure_admin(identity))
