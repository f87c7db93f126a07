# yaatrabuddy/services/rpc/routes.py
"""
Роутер /rpc: POST /rpc/{name}, тело - плоский JSON-объект аргументов.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from yaatrabuddy.api.dependencies import CurrentIdentity, get_rpc_dispatcher
from yaatrabuddy.services.rpc.dispatcher import RpcDispatcher
from yaatrabuddy.shared.models.common import ErrorResponse

router = APIRouter(prefix="/rpc", tags=["RPC"])


@router.post(
    "/{name}",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Вызвать хранимую процедуру",
)
async def call_rpc(
    name: str,
    identity: CurrentIdentity,
    dispatcher: Annotated[RpcDispatcher, Depends(get_rpc_dispatcher)],
    args: Annotated[dict[str, Any] | None, Body()] = None,
) -> list[dict[str, Any]]:
    return await dispatcher.dispatch(name, args, identity)
