# yaatrabuddy/services/data/service.py
"""
Сервис ресурсов /data.

Каждая операция выполняется через run_as_user: видимость и права на
запись определяют политики RLS базы данных.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping

from asyncpg import Connection, Record

from yaatrabuddy.common.errors import InvalidArgument, NotFound
from yaatrabuddy.common.validators import require_uuid
from yaatrabuddy.infra.database import DatabaseManager
from yaatrabuddy.services.data.repository import (
    LOCATION_FIELDS,
    PROFILE_ADMIN_FIELDS,
    PROFILE_SELF_FIELDS,
    RIDE_FIELDS,
    RIDE_REQUEST_FIELDS,
    DataRepository,
    pick_fields,
)
from yaatrabuddy.shared.models.auth import Identity
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
)

Row = dict[str, Any]


def _row(record: Record | None) -> Row | None:
    return dict(record) if record is not None else None


def _rows(records: list[Record]) -> list[Row]:
    return [dict(r) for r in records]


def _found(record: Record | None, message: str = "Not found") -> Row:
    if record is None:
        raise NotFound(message)
    return dict(record)


class DataService:
    def __init__(self, db: DatabaseManager, repository: DataRepository):
        self.db = db
        self.repo = repository

    async def _as(self, identity: Identity, work: Callable[[Connection], Awaitable[Any]]) -> Any:
        return await self.db.run_as_user(identity.subject_id, work)

    # === ПРОФИЛИ ===

    async def get_my_profile(self, identity: Identity) -> Row:
        record = await self._as(identity, lambda conn: self.repo.get_profile(conn, identity.subject_id))
        return _found(record, "Profile not found")

    async def update_my_profile(self, identity: Identity, body: Mapping[str, Any]) -> Row | None:
        body = pick_fields(body, PROFILE_SELF_FIELDS)
        record = await self._as(
            identity,
            lambda conn: self.repo.update_profile(conn, identity.subject_id, body, PROFILE_SELF_FIELDS),
        )
        return _row(record)

    async def get_profile(self, identity: Identity, user_id: str) -> Row:
        user_id = require_uuid(user_id, "user_id")
        record = await self._as(identity, lambda conn: self.repo.get_profile(conn, user_id))
        return _found(record)

    async def update_profile(self, identity: Identity, user_id: str, body: Mapping[str, Any]) -> Row:
        """Обновление чужого профиля. Права администратора проверяет RLS."""
        user_id = require_uuid(user_id, "user_id")
        body = pick_fields(body, PROFILE_ADMIN_FIELDS)
        record = await self._as(
            identity,
            lambda conn: self.repo.update_profile(conn, user_id, body, PROFILE_ADMIN_FIELDS),
        )
        return _found(record)

    async def list_profiles(self, identity: Identity, ids: list[str] | None) -> list[Row]:
        if ids:
            for value in ids:
                require_uuid(value, "ids")
        return _rows(await self._as(identity, lambda conn: self.repo.list_profiles(conn, ids)))

    # === ПОЕЗДКИ ===

    async def list_rides(self, identity: Identity, filters: Mapping[str, Any]) -> list[Row]:
        for key in ("user_id", "id"):
            if filters.get(key):
                require_uuid(filters[key], key)
        return _rows(await self._as(identity, lambda conn: self.repo.list_rides(conn, filters)))

    async def create_ride(self, identity: Identity, ride: RideCreate) -> Row:
        data = ride.model_dump(mode="json")
        return _row(await self._as(identity, lambda conn: self.repo.create_ride(conn, identity.subject_id, data)))

    async def update_ride(self, identity: Identity, ride_id: str, body: Mapping[str, Any]) -> Row:
        ride_id = require_uuid(ride_id, "id")
        body = pick_fields(body, RIDE_FIELDS)
        return _found(await self._as(identity, lambda conn: self.repo.update_ride(conn, ride_id, body)))

    # === ЗАЯВКИ ===

    async def list_ride_requests(
        self, identity: Identity, ride_id: str | None, requester_id: str | None
    ) -> list[Row]:
        if ride_id:
            require_uuid(ride_id, "ride_id")
        if requester_id:
            require_uuid(requester_id, "requester_id")
        return _rows(
            await self._as(identity, lambda conn: self.repo.list_ride_requests(conn, ride_id, requester_id))
        )

    async def create_ride_request(self, identity: Identity, request: RideRequestCreate) -> Row:
        data = request.model_dump()
        return _row(
            await self._as(identity, lambda conn: self.repo.create_ride_request(conn, identity.subject_id, data))
        )

    async def update_ride_request(self, identity: Identity, request_id: str, body: Mapping[str, Any]) -> Row:
        request_id = require_uuid(request_id, "id")
        body = pick_fields(body, RIDE_REQUEST_FIELDS)
        return _found(
            await self._as(identity, lambda conn: self.repo.update_ride_request(conn, request_id, body))
        )

    # === СВЯЗИ И ЧАТЫ ===

    async def list_connections(self, identity: Identity) -> list[Row]:
        return _rows(await self._as(identity, lambda conn: self.repo.list_connections(conn, identity.subject_id)))

    async def create_connection(self, identity: Identity, connection: ConnectionCreate) -> Row:
        data = connection.model_dump()
        return _row(await self._as(identity, lambda conn: self.repo.create_connection(conn, data)))

    async def list_chat_messages(self, identity: Identity, connection_id: str | None) -> list[Row]:
        if not connection_id:
            raise InvalidArgument("connection_id required")
        connection_id = require_uuid(connection_id, "connection_id")
        return _rows(await self._as(identity, lambda conn: self.repo.list_chat_messages(conn, connection_id)))

    async def create_chat_message(self, identity: Identity, message: ChatMessageCreate) -> Row:
        return _row(
            await self._as(
                identity,
                lambda conn: self.repo.create_chat_message(
                    conn, message.connection_id, identity.subject_id, message.message
                ),
            )
        )

    async def mark_chat_message_read(self, identity: Identity, message_id: str) -> Row:
        message_id = require_uuid(message_id, "id")
        return _found(await self._as(identity, lambda conn: self.repo.mark_chat_message_read(conn, message_id)))

    async def list_group_chat_messages(self, identity: Identity, group_chat_id: str | None) -> list[Row]:
        if not group_chat_id:
            raise InvalidArgument("group_chat_id required")
        group_chat_id = require_uuid(group_chat_id, "group_chat_id")
        return _rows(
            await self._as(identity, lambda conn: self.repo.list_group_chat_messages(conn, group_chat_id))
        )

    async def create_group_chat_message(self, identity: Identity, message: GroupChatMessageCreate) -> Row:
        return _row(
            await self._as(
                identity,
                lambda conn: self.repo.create_group_chat_message(
                    conn, message.group_chat_id, identity.subject_id, message.message
                ),
            )
        )

    async def list_group_chat_members(self, identity: Identity, group_chat_id: str | None) -> list[Row]:
        if not group_chat_id:
            raise InvalidArgument("group_chat_id required")
        group_chat_id = require_uuid(group_chat_id, "group_chat_id")
        return _rows(
            await self._as(identity, lambda conn: self.repo.list_group_chat_members(conn, group_chat_id))
        )

    # === УВЕДОМЛЕНИЯ ===

    async def list_notifications(self, identity: Identity) -> list[Row]:
        return _rows(
            await self._as(identity, lambda conn: self.repo.list_notifications(conn, identity.subject_id))
        )

    async def create_notification(self, identity: Identity, notification: NotificationCreate) -> Row:
        data = notification.model_dump()
        data["user_id"] = data["user_id"] or identity.subject_id
        return _row(await self._as(identity, lambda conn: self.repo.create_notification(conn, data)))

    async def mark_notification_read(self, identity: Identity, notification_id: str) -> Row:
        notification_id = require_uuid(notification_id, "id")
        return _found(
            await self._as(
                identity,
                lambda conn: self.repo.mark_notification_read(conn, notification_id, identity.subject_id),
            )
        )

    async def mark_all_notifications_read(self, identity: Identity) -> None:
        await self._as(identity, lambda conn: self.repo.mark_all_notifications_read(conn, identity.subject_id))

    # === ЖАЛОБЫ И ОЦЕНКИ ===

    async def list_user_reports(self, identity: Identity) -> list[Row]:
        return _rows(await self._as(identity, self.repo.list_user_reports))

    async def create_user_report(self, identity: Identity, report: UserReportCreate) -> Row:
        data = report.model_dump()
        return _row(
            await self._as(identity, lambda conn: self.repo.create_user_report(conn, identity.subject_id, data))
        )

    async def update_user_report(self, identity: Identity, report_id: str, status: str | None) -> Row:
        report_id = require_uuid(report_id, "id")
        if not status:
            raise InvalidArgument("status required")
        return _found(
            await self._as(identity, lambda conn: self.repo.update_user_report_status(conn, report_id, status))
        )

    async def list_ratings(self, identity: Identity, rated_user_id: str | None, ride_id: str | None) -> list[Row]:
        if rated_user_id:
            require_uuid(rated_user_id, "rated_user_id")
        if ride_id:
            require_uuid(ride_id, "ride_id")
        return _rows(await self._as(identity, lambda conn: self.repo.list_ratings(conn, rated_user_id, ride_id)))

    async def create_rating(self, identity: Identity, rating: RatingCreate) -> Row:
        data = rating.model_dump()
        return _row(await self._as(identity, lambda conn: self.repo.create_rating(conn, identity.subject_id, data)))

    # === СПРАВОЧНИКИ ===

    async def list_locations(self, identity: Identity) -> list[Row]:
        return _rows(await self._as(identity, self.repo.list_locations))

    async def create_location(self, identity: Identity, location: LocationCreate) -> Row:
        data = location.model_dump()
        return _row(await self._as(identity, lambda conn: self.repo.create_location(conn, data)))

    async def update_location(self, identity: Identity, location_id: str, update: LocationUpdate) -> Row:
        location_id = require_uuid(location_id, "id")
        body = update.model_dump(exclude_none=True)
        body = pick_fields(body, LOCATION_FIELDS, "No fields to update")
        return _found(await self._as(identity, lambda conn: self.repo.update_location(conn, location_id, body)))

    async def list_user_roles(self, identity: Identity) -> list[Row]:
        return _rows(await self._as(identity, lambda conn: self.repo.list_user_roles(conn, identity.subject_id)))

    async def list_reward_history(self, identity: Identity) -> list[Row]:
        return _rows(
            await self._as(identity, lambda conn: self.repo.list_reward_history(conn, identity.subject_id))
        )
