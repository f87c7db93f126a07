# yaatrabuddy/services/data/routes.py
"""
Роутер /data: ресурсы приложения поверх RLS.

Endpoints:
- /data/profiles, /data/rides, /data/ride_requests, /data/connections
- /data/chat_messages, /data/group_chat_messages, /data/group_chat_members
- /data/notifications, /data/user_reports, /data/ratings
- /data/locations, /data/user_roles, /data/reward_history
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from yaatrabuddy.api.dependencies import CurrentIdentity, get_data_service
from yaatrabuddy.common.validators import parse_uuid_list
from yaatrabuddy.services.data.service import DataService
from yaatrabuddy.shared.models.common import ErrorResponse, OkResponse
from yaatrabuddy.shared.models.data import (
    ChatMessageCreate,
    ConnectionCreate,
    GroupChatMessageCreate,
    LocationCreate,
    LocationUpdate,
    NotificationCreate,
    RatingCreate,
    RideCreate,
    RideRequestCreate,
    UserReportCreate,
    UserReportUpdate,
)

router = APIRouter(
    prefix="/data",
    tags=["Data"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)

Service = Annotated[DataService, Depends(get_data_service)]
PatchBody = Annotated[dict[str, Any], Body()]
Row = dict[str, Any]


# === ПРОФИЛИ ===

@router.get("/profiles/me", summary="Мой профиль")
async def get_my_profile(identity: CurrentIdentity, service: Service) -> Row:
    return await service.get_my_profile(identity)


@router.patch("/profiles/me", summary="Обновить мой профиль")
async def update_my_profile(body: PatchBody, identity: CurrentIdentity, service: Service) -> Row | None:
    return await service.update_my_profile(identity, body)


@router.get("/profiles/{user_id}", summary="Профиль по user_id")
async def get_profile(user_id: str, identity: CurrentIdentity, service: Service) -> Row:
    return await service.get_profile(identity, user_id)


@router.patch("/profiles/{user_id}", summary="Обновить профиль (администратор или владелец)")
async def update_profile(user_id: str, body: PatchBody, identity: CurrentIdentity, service: Service) -> Row:
    return await service.update_profile(identity, user_id, body)


@router.get("/profiles", summary="Список профилей")
async def list_profiles(
    identity: CurrentIdentity,
    service: Service,
    ids: Annotated[str | None, Query(description="UUID через запятую")] = None,
) -> list[Row]:
    """Без ids возвращает все видимые профили, с ids только сводные поля."""
    return await service.list_profiles(identity, parse_uuid_list(ids, "ids") or None)


# === ПОЕЗДКИ ===

@router.get("/rides", summary="Список поездок")
async def list_rides(
    identity: CurrentIdentity,
    service: Service,
    user_id: str | None = None,
    from_location: str | None = None,
    to_location: str | None = None,
    from_ilike: str | None = None,
    to_ilike: str | None = None,
    ride_date_gte: str | None = None,
    id: str | None = None,
) -> list[Row]:
    filters = {
        "user_id": user_id,
        "from_location": from_location,
        "to_location": to_location,
        "from_ilike": from_ilike,
        "to_ilike": to_ilike,
        "ride_date_gte": ride_date_gte,
        "id": id,
    }
    return await service.list_rides(identity, filters)


@router.post("/rides", status_code=status.HTTP_201_CREATED, summary="Создать поездку")
async def create_ride(ride: RideCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_ride(identity, ride)


@router.patch("/rides/{ride_id}", summary="Обновить поездку")
async def update_ride(ride_id: str, body: PatchBody, identity: CurrentIdentity, service: Service) -> Row:
    return await service.update_ride(identity, ride_id, body)


# === ЗАЯВКИ ===

@router.get("/ride_requests", summary="Заявки на поездки")
async def list_ride_requests(
    identity: CurrentIdentity,
    service: Service,
    ride_id: str | None = None,
    requester_id: str | None = None,
) -> list[Row]:
    return await service.list_ride_requests(identity, ride_id, requester_id)


@router.post("/ride_requests", status_code=status.HTTP_201_CREATED, summary="Создать заявку")
async def create_ride_request(request: RideRequestCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_ride_request(identity, request)


@router.patch("/ride_requests/{request_id}", summary="Обновить заявку")
async def update_ride_request(request_id: str, body: PatchBody, identity: CurrentIdentity, service: Service) -> Row:
    return await service.update_ride_request(identity, request_id, body)


# === СВЯЗИ ===

@router.get("/connections", summary="Мои связи")
async def list_connections(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_connections(identity)


@router.post("/connections", status_code=status.HTTP_201_CREATED, summary="Создать связь")
async def create_connection(connection: ConnectionCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_connection(identity, connection)


# === ЧАТЫ ===

@router.get("/chat_messages", summary="Сообщения чата")
async def list_chat_messages(
    identity: CurrentIdentity, service: Service, connection_id: str | None = None
) -> list[Row]:
    return await service.list_chat_messages(identity, connection_id)


@router.post("/chat_messages", status_code=status.HTTP_201_CREATED, summary="Отправить сообщение")
async def create_chat_message(message: ChatMessageCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_chat_message(identity, message)


@router.patch("/chat_messages/{message_id}", summary="Отметить сообщение прочитанным")
async def mark_chat_message_read(message_id: str, identity: CurrentIdentity, service: Service) -> Row:
    return await service.mark_chat_message_read(identity, message_id)


@router.get("/group_chat_messages", summary="Сообщения группового чата")
async def list_group_chat_messages(
    identity: CurrentIdentity, service: Service, group_chat_id: str | None = None
) -> list[Row]:
    return await service.list_group_chat_messages(identity, group_chat_id)


@router.post("/group_chat_messages", status_code=status.HTTP_201_CREATED, summary="Сообщение в групповой чат")
async def create_group_chat_message(
    message: GroupChatMessageCreate, identity: CurrentIdentity, service: Service
) -> Row:
    return await service.create_group_chat_message(identity, message)


@router.get("/group_chat_members", summary="Участники группового чата")
async def list_group_chat_members(
    identity: CurrentIdentity, service: Service, group_chat_id: str | None = None
) -> list[Row]:
    return await service.list_group_chat_members(identity, group_chat_id)


# === УВЕДОМЛЕНИЯ ===

@router.get("/notifications", summary="Мои уведомления")
async def list_notifications(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_notifications(identity)


@router.post("/notifications", status_code=status.HTTP_201_CREATED, summary="Создать уведомление")
async def create_notification(notification: NotificationCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_notification(identity, notification)


@router.patch("/notifications/read-all", response_model=OkResponse, summary="Прочитать все уведомления")
async def mark_all_notifications_read(identity: CurrentIdentity, service: Service) -> OkResponse:
    await service.mark_all_notifications_read(identity)
    return OkResponse(ok=True)


@router.patch("/notifications/{notification_id}", summary="Отметить уведомление прочитанным")
async def mark_notification_read(notification_id: str, identity: CurrentIdentity, service: Service) -> Row:
    return await service.mark_notification_read(identity, notification_id)


# === ЖАЛОБЫ ===

@router.get("/user_reports", summary="Жалобы")
async def list_user_reports(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_user_reports(identity)


@router.post("/user_reports", status_code=status.HTTP_201_CREATED, summary="Пожаловаться на пользователя")
async def create_user_report(report: UserReportCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_user_report(identity, report)


@router.patch("/user_reports/{report_id}", summary="Изменить статус жалобы")
async def update_user_report(
    report_id: str, update: UserReportUpdate, identity: CurrentIdentity, service: Service
) -> Row:
    return await service.update_user_report(identity, report_id, update.status)


# === ОЦЕНКИ ===

@router.get("/ratings", summary="Оценки")
async def list_ratings(
    identity: CurrentIdentity,
    service: Service,
    rated_user_id: str | None = None,
    ride_id: str | None = None,
) -> list[Row]:
    return await service.list_ratings(identity, rated_user_id, ride_id)


@router.post("/ratings", status_code=status.HTTP_201_CREATED, summary="Оценить попутчика")
async def create_rating(rating: RatingCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_rating(identity, rating)


# === СПРАВОЧНИКИ ===

@router.get("/locations", summary="Точки посадки")
async def list_locations(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_locations(identity)


@router.post("/locations", status_code=status.HTTP_201_CREATED, summary="Добавить точку")
async def create_location(location: LocationCreate, identity: CurrentIdentity, service: Service) -> Row:
    return await service.create_location(identity, location)


@router.patch("/locations/{location_id}", summary="Обновить точку")
async def update_location(
    location_id: str, update: LocationUpdate, identity: CurrentIdentity, service: Service
) -> Row:
    return await service.update_location(identity, location_id, update)


@router.get("/user_roles", summary="Мои роли")
async def list_user_roles(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_user_roles(identity)


@router.get("/reward_history", summary="История наград")
async def list_reward_history(identity: CurrentIdentity, service: Service) -> list[Row]:
    return await service.list_reward_history(identity)
