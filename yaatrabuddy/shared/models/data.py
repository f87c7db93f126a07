# yaatrabuddy/shared/models/data.py
"""
Модели тел запросов для ресурсных роутеров /data.
Поля-идентификаторы проверяются по формату UUID до обращения к БД.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from yaatrabuddy.common.constants import RequestStatus, TransportMode
from yaatrabuddy.common.validators import is_uuid


def _check_uuid(value: Any, field: str) -> Any:
    if value is not None and not is_uuid(value):
        raise ValueError(f"Invalid or missing UUID for parameter {field}")
    return value


class UuidFieldsModel(BaseModel):
    """Базовая модель: все поля из UUID_FIELDS должны быть UUID."""

    UUID_FIELDS: ClassVar[tuple[str, ...]] = ()

    @field_validator("*", mode="after")
    @classmethod
    def validate_uuid_fields(cls, value: Any, info) -> Any:
        if info.field_name in cls.UUID_FIELDS:
            return _check_uuid(value, info.field_name)
        return value


class RideCreate(UuidFieldsModel):
    UUID_FIELDS = ("from_location_id", "to_location_id")

    from_location: str
    to_location: str
    from_location_id: str | None = None
    to_location_id: str | None = None
    ride_date: str
    ride_time: str
    seats_available: int = Field(ge=0)
    transport_mode: TransportMode = TransportMode.CAR


class RideRequestCreate(UuidFieldsModel):
    UUID_FIELDS = ("ride_id",)

    ride_id: str
    status: str = RequestStatus.PENDING.value
    show_profile_photo: bool = False
    show_mobile_number: bool = False
    requester_show_profile_photo: bool = True
    requester_show_mobile_number: bool = False


class ConnectionCreate(UuidFieldsModel):
    UUID_FIELDS = ("ride_id", "ride_request_id", "user1_id", "user2_id")

    ride_id: str
    ride_request_id: str
    user1_id: str
    user2_id: str


class ChatMessageCreate(UuidFieldsModel):
    UUID_FIELDS = ("connection_id",)

    connection_id: str
    message: str


class GroupChatMessageCreate(UuidFieldsModel):
    UUID_FIELDS = ("group_chat_id",)

    group_chat_id: str
    message: str


class NotificationCreate(UuidFieldsModel):
    UUID_FIELDS = ("user_id", "ride_id")

    user_id: str | None = None  # по умолчанию - текущий пользователь
    title: str = ""
    message: str = ""
    type: str = "info"
    ride_id: str | None = None


class UserReportCreate(UuidFieldsModel):
    UUID_FIELDS = ("reported_user_id", "ride_id")

    reported_user_id: str
    ride_id: str
    reason: str
    description: str | None = None


class UserReportUpdate(BaseModel):
    status: str


class RatingCreate(UuidFieldsModel):
    UUID_FIELDS = ("rated_user_id", "ride_id")

    rated_user_id: str
    ride_id: str
    rating: int = Field(ge=1, le=5)
    comment: str | None = None


class LocationCreate(BaseModel):
    name: str
    category: str
    city: str = "Vadodara"
    display_order: int = 0
    active: bool = True


class LocationUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    city: str | None = None
    display_order: int | None = None
    active: bool | None = None


class UploadResponse(BaseModel):
    url: str


class UnlockSpinResponse(BaseModel):
    success: bool = True
    user_id: str
    message: str


class SignedUrlResponse(BaseModel):
    signedUrl: str
