# yaatrabuddy/services/rpc/catalogue.py
"""
Закрытый каталог удалённых процедур.

Каждая операция - имя хранимой функции в схеме public и упорядоченный
список параметров (имя, тип). Каталог собирается один раз при импорте
и доступен только для чтения.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class ParamType(str, Enum):
    """Тип параметра PostgreSQL-функции (используется в явном приведении)."""
    UUID = "uuid"
    TEXT = "text"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class RpcParam:
    name: str
    type: ParamType


@dataclass(frozen=True)
class RpcOperation:
    """
    Описание операции.

    current_user: первый параметр - действующий пользователь; при пустом
    или не-UUID значении подставляется id из токена.
    """
    name: str
    params: tuple[RpcParam, ...] = ()
    current_user: bool = False

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)

    def sql(self) -> str:
        """SELECT * FROM public.<name>($1::type, ...)."""
        placeholders = ", ".join(f"${i}::{p.type.value}" for i, p in enumerate(self.params, start=1))
        return f"SELECT * FROM public.{self.name}({placeholders})"


def _op(name: str, *params: tuple[str, ParamType], current_user: bool = False) -> RpcOperation:
    return RpcOperation(
        name=name,
        params=tuple(RpcParam(p_name, p_type) for p_name, p_type in params),
        current_user=current_user,
    )


U, T, B = ParamType.UUID, ParamType.TEXT, ParamType.BOOLEAN

_OPERATIONS = (
    _op("get_public_profile", ("_user_id", U)),
    _op("get_approved_contact_details", ("_target_user_id", U), ("_requesting_user_id", U)),
    _op("owner_delete_ride", ("_user_id", U), ("_ride_id", U)),
    _op("get_user_connections", ("_user_id", U), current_user=True),
    _op("admin_force_cancel_ride", ("_ride_id", U)),
    _op("admin_get_all_rewards"),
    _op("admin_mark_reward_delivered", ("_reward_id", U)),
    _op("admin_toggle_user_rewards", ("_user_id", U), ("_enabled", B)),
    _op("admin_gift_premium", ("_target_user_id", U)),
    _op("admin_remove_premium", ("_target_user_id", U)),
    _op("get_user_group_chats", ("_user_id", U), current_user=True),
    _op(
        "pay_accept_request",
        ("_user_id", U), ("_ride_request_id", U), ("_payment_source", T), ("_razorpay_payment_id", T),
    ),
    _op("get_connection_for_request", ("_ride_request_id", U)),
    _op("get_group_chat_members", ("_group_chat_id", U)),
    _op("get_spin_progress", ("_user_id", U), current_user=True),
    _op("get_user_reward_history", ("_user_id", U), current_user=True),
    _op("perform_spin", ("_user_id", U), current_user=True),
    _op("get_user_rating", ("_user_id", U), current_user=True),
    _op("has_rated_user", ("_rater_id", U), ("_rated_id", U), ("_ride_id", U)),
    _op(
        "create_and_pay_join_request",
        ("_requester_id", U),
        ("_ride_id", U),
        ("_payment_source", T),
        ("_requester_show_profile_photo", B),
        ("_requester_show_mobile_number", B),
        ("_razorpay_payment_id", T),
    ),
    _op("activate_premium_subscription", ("_user_id", U), ("_razorpay_payment_id", T), ("_razorpay_order_id", T)),
)

RPC_CATALOGUE: Mapping[str, RpcOperation] = MappingProxyType({op.name: op for op in _OPERATIONS})

del U, T, B
