# tests/services/rpc/test_rpc_dispatcher.py
"""
Тесты каталога и диспетчера удалённых процедур.
"""

from __future__ import annotations

import pytest

from yaatrabuddy.common.errors import InvalidArgument, NotFound
from yaatrabuddy.services.rpc.catalogue import RPC_CATALOGUE, ParamType
from yaatrabuddy.services.rpc.dispatcher import RpcDispatcher, resolve_arguments

from conftest import OTHER_USER_ID, RIDE_ID, USER_ID


class TestCatalogue:
    """Тесты каталога операций."""

    def test_catalogue_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            RPC_CATALOGUE["drop_everything"] = RPC_CATALOGUE["perform_spin"]  # type: ignore[index]

    def test_sql_casts_each_parameter(self) -> None:
        op = RPC_CATALOGUE["has_rated_user"]

        assert op.sql() == "SELECT * FROM public.has_rated_user($1::uuid, $2::uuid, $3::uuid)"

    def test_sql_without_parameters(self) -> None:
        assert RPC_CATALOGUE["admin_get_all_rewards"].sql() == "SELECT * FROM public.admin_get_all_rewards()"

    def test_current_user_operations(self) -> None:
        expected = {
            "get_user_connections",
            "get_user_group_chats",
            "get_spin_progress",
            "get_user_reward_history",
            "perform_spin",
            "get_user_rating",
        }
        assert {name for name, op in RPC_CATALOGUE.items() if op.current_user} == expected

    def test_join_request_parameter_order(self) -> None:
        op = RPC_CATALOGUE["create_and_pay_join_request"]

        assert op.param_names == (
            "_requester_id",
            "_ride_id",
            "_payment_source",
            "_requester_show_profile_photo",
            "_requester_show_mobile_number",
            "_razorpay_payment_id",
        )
        assert op.params[3].type is ParamType.BOOLEAN


class TestResolveArguments:
    """Подстановка текущего пользователя и проверка типов."""

    @pytest.mark.parametrize("value", [None, "", "me", "not-a-uuid"])
    def test_substitutes_caller_for_missing_or_invalid(self, identity, value) -> None:
        args = {} if value is None else {"_user_id": value}

        values = resolve_arguments(RPC_CATALOGUE["get_spin_progress"], args, identity)

        assert values == [USER_ID]

    def test_keeps_explicit_uuid(self, identity) -> None:
        values = resolve_arguments(RPC_CATALOGUE["get_user_rating"], {"_user_id": OTHER_USER_ID}, identity)

        assert values == [OTHER_USER_ID]

    def test_no_substitution_for_other_operations(self, identity) -> None:
        with pytest.raises(InvalidArgument, match="_user_id"):
            resolve_arguments(RPC_CATALOGUE["get_public_profile"], {}, identity)

    def test_invalid_uuid_rejected(self, identity) -> None:
        with pytest.raises(InvalidArgument, match="Invalid or missing UUID for parameter _ride_id"):
            resolve_arguments(
                RPC_CATALOGUE["owner_delete_ride"],
                {"_user_id": USER_ID, "_ride_id": "not-a-uuid"},
                identity,
            )

    @pytest.mark.parametrize("value", ["maybe", "", 2, 1.5, [True]])
    def test_boolean_validated(self, identity, value) -> None:
        with pytest.raises(InvalidArgument, match="Invalid boolean for parameter _enabled"):
            resolve_arguments(
                RPC_CATALOGUE["admin_toggle_user_rewards"],
                {"_user_id": OTHER_USER_ID, "_enabled": value},
                identity,
            )

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, True),
            ("true", True),
            (" T ", True),
            ("yes", True),
            ("on", True),
            ("1", True),
            (1, True),
            ("false", False),
            ("f", False),
            ("OFF", False),
            (0, False),
            (None, None),
        ],
    )
    def test_boolean_postgres_literals(self, identity, value, expected) -> None:
        values = resolve_arguments(
            RPC_CATALOGUE["admin_toggle_user_rewards"],
            {"_user_id": OTHER_USER_ID, "_enabled": value},
            identity,
        )

        assert values[-1] is expected

    def test_extra_arguments_ignored(self, identity) -> None:
        values = resolve_arguments(
            RPC_CATALOGUE["admin_force_cancel_ride"],
            {"_ride_id": RIDE_ID, "_user_id": USER_ID, "sql": "DROP TABLE rides"},
            identity,
        )

        assert values == [RIDE_ID]


class TestRpcDispatcher:
    """Тесты для RpcDispatcher."""

    @pytest.mark.asyncio
    async def test_unknown_operation(self, fake_db, identity) -> None:
        dispatcher = RpcDispatcher(db=fake_db)

        with pytest.raises(NotFound, match="Unknown RPC: drop_database"):
            await dispatcher.dispatch("drop_database", {}, identity)

        assert fake_db.subjects == []

    @pytest.mark.asyncio
    async def test_invalid_argument_before_db(self, fake_db, identity) -> None:
        dispatcher = RpcDispatcher(db=fake_db)

        with pytest.raises(InvalidArgument):
            await dispatcher.dispatch("get_connection_for_request", {"_ride_request_id": "not-a-uuid"}, identity)

        assert fake_db.subjects == []
        fake_db.conn.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatch_runs_as_caller(self, fake_db, identity) -> None:
        fake_db.conn.fetch.return_value = [{"total": 7, "eligible": False}]
        dispatcher = RpcDispatcher(db=fake_db)

        rows = await dispatcher.dispatch("get_spin_progress", None, identity)

        assert rows == [{"total": 7, "eligible": False}]
        assert fake_db.subjects == [USER_ID]
        fake_db.conn.fetch.assert_awaited_once_with(
            "SELECT * FROM public.get_spin_progress($1::uuid)", USER_ID
        )


class TestRpcRoute:
    """Тесты для POST /rpc/{name}."""

    def test_requires_token(self, api_client) -> None:
        response = api_client.post("/rpc/perform_spin", json={})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_unknown_rpc_404(self, api_client, auth_headers) -> None:
        response = api_client.post("/rpc/nope", json={}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Unknown RPC: nope"}

    def test_invalid_uuid_400(self, api_client, auth_headers, fake_db) -> None:
        response = api_client.post(
            "/rpc/get_group_chat_members", json={"_group_chat_id": "not-a-uuid"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or missing UUID for parameter _group_chat_id"}
        fake_db.conn.fetch.assert_not_called()

    def test_returns_rows(self, api_client, auth_headers, fake_db) -> None:
        fake_db.conn.fetch.return_value = [{"user_id": USER_ID, "average": 4.5}]

        response = api_client.post("/rpc/get_user_rating", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == [{"user_id": USER_ID, "average": 4.5}]
