# yaatrabuddy/services/rpc/dispatcher.py
"""
Диспетчер удалённых процедур.
Имя операции → хранимая функция из закрытого каталога, выполняемая
в транзакции с контекстом безопасности вызывающего.
"""

from __future__ import annotations

from typing import Any, Mapping

from asyncpg import Connection

from yaatrabuddy.common.constants import TypeMsg
from yaatrabuddy.common.errors import InvalidArgument, NotFound
from yaatrabuddy.common.logger import log_info
from yaatrabuddy.common.validators import is_uuid
from yaatrabuddy.infra.database import DatabaseManager
from yaatrabuddy.services.rpc.catalogue import RPC_CATALOGUE, ParamType, RpcOperation
from yaatrabuddy.shared.models.auth import Identity


# Текстовые формы, которые принимает приведение ::boolean в Postgres
_BOOLEAN_LITERALS = {
    "t": True, "true": True, "y": True, "yes": True, "on": True, "1": True,
    "f": False, "false": False, "n": False, "no": False, "off": False, "0": False,
}


def coerce_boolean(value: Any, name: str) -> bool | None:
    """
    bool как есть, строки и 0/1 в формах Postgres.

    Raises:
        InvalidArgument: значение не приводится к boolean
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _BOOLEAN_LITERALS:
        return _BOOLEAN_LITERALS[value.strip().lower()]
    raise InvalidArgument(f"Invalid boolean for parameter {name}")


def resolve_arguments(operation: RpcOperation, args: Mapping[str, Any], identity: Identity) -> list[Any]:
    """
    Значения параметров в порядке объявления с проверкой типов.

    Для операций текущего пользователя пустой, отсутствующий или не-UUID
    первый параметр заменяется на id вызывающего. Остальные параметры не
    подставляются никогда.

    Raises:
        InvalidArgument: UUID-параметр не прошёл проверку формата или
            boolean-параметр не приводится к boolean
    """
    values = [args.get(name) for name in operation.param_names]

    if operation.current_user and operation.params and operation.params[0].name == "_user_id":
        if not is_uuid(values[0]):
            values[0] = identity.subject_id

    for i, param in enumerate(operation.params):
        value = values[i]
        if param.type is ParamType.UUID:
            if not is_uuid(value):
                raise InvalidArgument(f"Invalid or missing UUID for parameter {param.name}")
        elif param.type is ParamType.BOOLEAN:
            values[i] = coerce_boolean(value, param.name)
        elif value is not None and not isinstance(value, str):
            values[i] = str(value)

    return values


class RpcDispatcher:
    def __init__(self, db: DatabaseManager, catalogue: Mapping[str, RpcOperation] = RPC_CATALOGUE):
        self.db = db
        self.catalogue = catalogue

    def lookup(self, name: str) -> RpcOperation:
        operation = self.catalogue.get(name)
        if operation is None:
            raise NotFound(f"Unknown RPC: {name}")
        return operation

    async def dispatch(self, name: str, args: Mapping[str, Any] | None, identity: Identity) -> list[dict[str, Any]]:
        """
        Выполняет операцию каталога от имени пользователя.

        Все проверки выполняются до обращения к БД.

        Returns:
            Строки результата функции без изменений

        Raises:
            NotFound: операции нет в каталоге
            InvalidArgument: некорректный UUID-параметр
        """
        operation = self.lookup(name)
        values = resolve_arguments(operation, args or {}, identity)
        sql = operation.sql()

        async def work(conn: Connection) -> list[dict[str, Any]]:
            rows = await conn.fetch(sql, *values)
            return [dict(row) for row in rows]

        rows = await self.db.run_as_user(identity.subject_id, work)
        await log_info(
            f"RPC {name}: {len(rows)} строк",
            type_msg=TypeMsg.DEBUG,
            extra={"user_id": identity.subject_id},
        )
        return rows
