# yaatrabuddy/services/data/repository.py
"""
SQL ресурсов /data.

Методы принимают соединение, на котором уже привязан контекст
безопасности: видимость строк определяют политики RLS.
Имена колонок в UPDATE берутся только из белых списков.
"""

from __future__ import annotations

from typing import Any, Mapping

from asyncpg import Connection, Record

from yaatrabuddy.common.errors import InvalidArgument

# Колонки с явным приведением: значение приходит строкой ISO-формата
TEMPORAL_COLUMNS: dict[str, str] = {
    "ride_date": "date",
    "ride_time": "time",
    "verification_submitted_at": "timestamptz",
    "subscription_expiry": "timestamptz",
}

PROFILE_SELF_FIELDS = (
    "full_name",
    "phone_number",
    "avatar_url",
    "university_id_url",
    "verification_submitted_at",
    "is_verified",
    "is_blocked",
    "spin_used",
    "rewards_enabled",
)
PROFILE_ADMIN_FIELDS = PROFILE_SELF_FIELDS + ("is_premium", "subscription_expiry")
RIDE_FIELDS = ("from_location", "to_location", "ride_date", "ride_time", "seats_available", "transport_mode")
RIDE_REQUEST_FIELDS = ("status", "request_payment_status", "accept_payment_status")
LOCATION_FIELDS = ("name", "category", "city", "display_order", "active")

PROFILE_SUMMARY_COLUMNS = (
    "user_id, full_name, email, avatar_url, is_verified, is_premium, "
    "subscription_expiry, free_connections_left"
)


def placeholder(index: int, column: str) -> str:
    cast = TEMPORAL_COLUMNS.get(column)
    return f"${index}::text::{cast}" if cast else f"${index}"


def check_temporal(column: str, value: Any) -> Any:
    if column in TEMPORAL_COLUMNS and value is not None and not isinstance(value, str):
        raise InvalidArgument(f"Invalid value for {column}")
    return value


def pick_fields(
    body: Mapping[str, Any] | None,
    allowed: tuple[str, ...],
    empty_message: str = "No allowed fields to update",
) -> dict[str, Any]:
    """
    Разрешённые поля тела в исходном порядке.

    Raises:
        InvalidArgument: в теле нет ни одного разрешённого поля
    """
    fields = {key: check_temporal(key, value) for key, value in (body or {}).items() if key in allowed}
    if not fields:
        raise InvalidArgument(empty_message)
    return fields


def build_update(
    table: str,
    key_column: str,
    key_value: Any,
    allowed: tuple[str, ...],
    body: Mapping[str, Any],
    empty_message: str = "No allowed fields to update",
) -> tuple[str, list[Any]]:
    """UPDATE public.<table> SET ... WHERE <key> = $1 RETURNING *."""
    fields = pick_fields(body, allowed, empty_message)
    set_clause = ", ".join(f"{col} = {placeholder(i, col)}" for i, col in enumerate(fields, start=2))
    values = [key_value, *fields.values()]
    return f"UPDATE public.{table} SET {set_clause} WHERE {key_column} = $1 RETURNING *", values


class DataRepository:
    """Запросы к таблицам приложения."""

    # === ПРОФИЛИ ===

    async def get_profile(self, conn: Connection, user_id: str) -> Record | None:
        return await conn.fetchrow("SELECT * FROM public.profiles WHERE user_id = $1", user_id)

    async def list_profiles(self, conn: Connection, ids: list[str] | None = None) -> list[Record]:
        if ids:
            return await conn.fetch(
                f"SELECT {PROFILE_SUMMARY_COLUMNS} FROM public.profiles WHERE user_id = ANY($1::uuid[])",
                ids,
            )
        return await conn.fetch("SELECT * FROM public.profiles ORDER BY created_at DESC")

    async def update_profile(
        self, conn: Connection, user_id: str, body: Mapping[str, Any], allowed: tuple[str, ...]
    ) -> Record | None:
        sql, values = build_update("profiles", "user_id", user_id, allowed, body)
        return await conn.fetchrow(sql, *values)

    async def set_profile_url(self, conn: Connection, user_id: str, column: str, url: str) -> Record | None:
        if column == "avatar_url":
            sql = "UPDATE public.profiles SET avatar_url = $1 WHERE user_id = $2 RETURNING user_id"
        elif column == "university_id_url":
            sql = (
                "UPDATE public.profiles SET university_id_url = $1, verification_submitted_at = now() "
                "WHERE user_id = $2 RETURNING user_id"
            )
        else:
            raise ValueError(f"Неизвестная колонка профиля: {column}")
        return await conn.fetchrow(sql, url, user_id)

    # === ПОЕЗДКИ ===

    async def list_rides(self, conn: Connection, filters: Mapping[str, Any]) -> list[Record]:
        conditions: list[str] = []
        values: list[Any] = []

        def add(condition: str, value: Any) -> None:
            values.append(value)
            conditions.append(condition.format(n=len(values)))

        if filters.get("user_id"):
            add("user_id = ${n}", filters["user_id"])
        if filters.get("from_location"):
            add("from_location = ${n}", filters["from_location"])
        if filters.get("to_location"):
            add("to_location = ${n}", filters["to_location"])
        if filters.get("from_ilike"):
            add("from_location ILIKE ${n}", f"%{filters['from_ilike']}%")
        if filters.get("to_ilike"):
            add("to_location ILIKE ${n}", f"%{filters['to_ilike']}%")
        if filters.get("ride_date_gte"):
            add("ride_date >= ${n}::text::date", filters["ride_date_gte"])
        if filters.get("id"):
            add("id = ${n}", filters["id"])

        where = " AND ".join(conditions) if conditions else "true"
        return await conn.fetch(
            f"SELECT * FROM public.rides WHERE {where} ORDER BY ride_date ASC, created_at DESC",
            *values,
        )

    async def create_ride(self, conn: Connection, user_id: str, ride: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.rides (
                user_id, from_location, to_location, from_location_id, to_location_id,
                ride_date, ride_time, seats_available, transport_mode
            )
            VALUES ($1, $2, $3, $4, $5, $6::text::date, $7::text::time, $8, $9)
            RETURNING *
            """,
            user_id,
            ride["from_location"],
            ride["to_location"],
            ride.get("from_location_id"),
            ride.get("to_location_id"),
            ride["ride_date"],
            ride["ride_time"],
            ride["seats_available"],
            ride["transport_mode"],
        )

    async def update_ride(self, conn: Connection, ride_id: str, body: Mapping[str, Any]) -> Record | None:
        sql, values = build_update("rides", "id", ride_id, RIDE_FIELDS, body)
        return await conn.fetchrow(sql, *values)

    # === ЗАЯВКИ НА ПОЕЗДКУ ===

    async def list_ride_requests(
        self, conn: Connection, ride_id: str | None, requester_id: str | None
    ) -> list[Record]:
        conditions: list[str] = []
        values: list[Any] = []
        if ride_id:
            values.append(ride_id)
            conditions.append(f"ride_id = ${len(values)}")
        if requester_id:
            values.append(requester_id)
            conditions.append(f"requester_id = ${len(values)}")
        where = " AND ".join(conditions) if conditions else "true"
        return await conn.fetch(
            f"SELECT * FROM public.ride_requests WHERE {where} ORDER BY created_at DESC",
            *values,
        )

    async def create_ride_request(self, conn: Connection, requester_id: str, req: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.ride_requests (
                ride_id, requester_id, status, show_profile_photo, show_mobile_number,
                requester_show_profile_photo, requester_show_mobile_number
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *
            """,
            req["ride_id"],
            requester_id,
            req["status"],
            req["show_profile_photo"],
            req["show_mobile_number"],
            req["requester_show_profile_photo"],
            req["requester_show_mobile_number"],
        )

    async def update_ride_request(self, conn: Connection, request_id: str, body: Mapping[str, Any]) -> Record | None:
        sql, values = build_update("ride_requests", "id", request_id, RIDE_REQUEST_FIELDS, body)
        return await conn.fetchrow(sql, *values)

    # === СВЯЗИ И ЧАТЫ ===

    async def list_connections(self, conn: Connection, user_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.connections WHERE user1_id = $1 OR user2_id = $1 ORDER BY created_at DESC",
            user_id,
        )

    async def create_connection(self, conn: Connection, data: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.connections (ride_id, ride_request_id, user1_id, user2_id)
            VALUES ($1, $2, $3, $4) RETURNING *
            """,
            data["ride_id"], data["ride_request_id"], data["user1_id"], data["user2_id"],
        )

    async def list_chat_messages(self, conn: Connection, connection_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.chat_messages WHERE connection_id = $1 ORDER BY created_at ASC",
            connection_id,
        )

    async def create_chat_message(self, conn: Connection, connection_id: str, sender_id: str, message: str) -> Record:
        return await conn.fetchrow(
            "INSERT INTO public.chat_messages (connection_id, sender_id, message) VALUES ($1, $2, $3) RETURNING *",
            connection_id, sender_id, message,
        )

    async def mark_chat_message_read(self, conn: Connection, message_id: str) -> Record | None:
        return await conn.fetchrow(
            "UPDATE public.chat_messages SET read = true WHERE id = $1 RETURNING *",
            message_id,
        )

    async def list_group_chat_messages(self, conn: Connection, group_chat_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.group_chat_messages WHERE group_chat_id = $1 ORDER BY created_at ASC",
            group_chat_id,
        )

    async def create_group_chat_message(
        self, conn: Connection, group_chat_id: str, sender_id: str, message: str
    ) -> Record:
        return await conn.fetchrow(
            "INSERT INTO public.group_chat_messages (group_chat_id, sender_id, message) VALUES ($1, $2, $3) RETURNING *",
            group_chat_id, sender_id, message,
        )

    async def list_group_chat_members(self, conn: Connection, group_chat_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.group_chat_members WHERE group_chat_id = $1",
            group_chat_id,
        )

    # === УВЕДОМЛЕНИЯ ===

    async def list_notifications(self, conn: Connection, user_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.notifications WHERE user_id = $1 ORDER BY created_at DESC",
            user_id,
        )

    async def create_notification(self, conn: Connection, data: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.notifications (user_id, title, message, type, ride_id)
            VALUES ($1, $2, $3, $4, $5) RETURNING *
            """,
            data["user_id"], data["title"], data["message"], data["type"], data.get("ride_id"),
        )

    async def mark_notification_read(self, conn: Connection, notification_id: str, user_id: str) -> Record | None:
        return await conn.fetchrow(
            "UPDATE public.notifications SET read = true WHERE id = $1 AND user_id = $2 RETURNING *",
            notification_id, user_id,
        )

    async def mark_all_notifications_read(self, conn: Connection, user_id: str) -> None:
        await conn.execute(
            "UPDATE public.notifications SET read = true WHERE user_id = $1 AND read = false",
            user_id,
        )

    # === ЖАЛОБЫ, ОЦЕНКИ ===

    async def list_user_reports(self, conn: Connection) -> list[Record]:
        return await conn.fetch("SELECT * FROM public.user_reports ORDER BY created_at DESC")

    async def create_user_report(self, conn: Connection, reporter_id: str, data: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.user_reports (reporter_id, reported_user_id, ride_id, reason, description)
            VALUES ($1, $2, $3, $4, $5) RETURNING *
            """,
            reporter_id, data["reported_user_id"], data["ride_id"], data["reason"], data.get("description"),
        )

    async def update_user_report_status(self, conn: Connection, report_id: str, status: str) -> Record | None:
        return await conn.fetchrow(
            "UPDATE public.user_reports SET status = $1 WHERE id = $2 RETURNING *",
            status, report_id,
        )

    async def list_ratings(self, conn: Connection, rated_user_id: str | None, ride_id: str | None) -> list[Record]:
        conditions: list[str] = []
        values: list[Any] = []
        if rated_user_id:
            values.append(rated_user_id)
            conditions.append(f"rated_user_id = ${len(values)}")
        if ride_id:
            values.append(ride_id)
            conditions.append(f"ride_id = ${len(values)}")
        where = " AND ".join(conditions) if conditions else "true"
        return await conn.fetch(f"SELECT * FROM public.ratings WHERE {where}", *values)

    async def create_rating(self, conn: Connection, rater_id: str, data: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.ratings (rater_user_id, rated_user_id, ride_id, rating, comment)
            VALUES ($1, $2, $3, $4, $5) RETURNING *
            """,
            rater_id, data["rated_user_id"], data["ride_id"], data["rating"], data.get("comment"),
        )

    # === СПРАВОЧНИКИ ===

    async def list_locations(self, conn: Connection) -> list[Record]:
        return await conn.fetch("SELECT * FROM public.locations ORDER BY category, display_order, name")

    async def create_location(self, conn: Connection, data: Mapping[str, Any]) -> Record:
        return await conn.fetchrow(
            """
            INSERT INTO public.locations (name, category, city, display_order, active)
            VALUES ($1, $2, $3, $4, $5) RETURNING *
            """,
            data["name"], data["category"], data["city"], data["display_order"], data["active"],
        )

    async def update_location(self, conn: Connection, location_id: str, body: Mapping[str, Any]) -> Record | None:
        sql, values = build_update("locations", "id", location_id, LOCATION_FIELDS, body, "No fields to update")
        return await conn.fetchrow(sql, *values)

    async def list_user_roles(self, conn: Connection, user_id: str) -> list[Record]:
        return await conn.fetch("SELECT * FROM public.user_roles WHERE user_id = $1", user_id)

    async def list_reward_history(self, conn: Connection, user_id: str) -> list[Record]:
        return await conn.fetch(
            "SELECT * FROM public.reward_history WHERE user_id = $1 ORDER BY created_at DESC",
            user_id,
        )
