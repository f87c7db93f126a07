# yaatrabuddy/services/uploads/routes.py
"""
Роутер /upload.

Endpoints:
- POST /upload/avatar - аватар пользователя
- POST /upload/university-id - студенческий билет для верификации
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from yaatrabuddy.api.dependencies import CurrentIdentity, get_upload_service
from yaatrabuddy.common.constants import UploadKind
from yaatrabuddy.common.errors import InvalidArgument
from yaatrabuddy.services.uploads.service import UploadService
from yaatrabuddy.shared.models.common import ErrorResponse
from yaatrabuddy.shared.models.data import UploadResponse

router = APIRouter(
    prefix="/upload",
    tags=["Upload"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)

Service = Annotated[UploadService, Depends(get_upload_service)]
FileField = Annotated[UploadFile | None, File()]


async def read_limited(file: UploadFile | None, max_bytes: int) -> tuple[str | None, bytes | None]:
    """
    Имя и содержимое файла. Читается не больше max_bytes + 1 байт,
    превышение лимита отклоняет сервис.

    Raises:
        InvalidArgument: заявленный размер уже больше лимита
    """
    if file is None:
        return None, None
    if file.size is not None and file.size > max_bytes:
        raise InvalidArgument("File too large")
    return file.filename, await file.read(max_bytes + 1)


@router.post("/avatar", response_model=UploadResponse, summary="Загрузить аватар")
async def upload_avatar(identity: CurrentIdentity, service: Service, file: FileField = None) -> UploadResponse:
    filename, content = await read_limited(file, service.max_bytes)
    url = await service.upload(identity, UploadKind.AVATARS, filename, content)
    return UploadResponse(url=url)


@router.post("/university-id", response_model=UploadResponse, summary="Загрузить студенческий")
async def upload_university_id(
    identity: CurrentIdentity, service: Service, file: FileField = None
) -> UploadResponse:
    filename, content = await read_limited(file, service.max_bytes)
    url = await service.upload(identity, UploadKind.UNIVERSITY_IDS, filename, content)
    return UploadResponse(url=url)
