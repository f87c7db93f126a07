# yaatrabuddy/services/rpc/__init__.py
"""
Удалённые процедуры: каталог и диспетчер.
"""

from yaatrabuddy.services.rpc.catalogue import RPC_CATALOGUE, ParamType, RpcOperation, RpcParam

__all__ = ["RPC_CATALOGUE", "ParamType", "RpcOperation", "RpcParam"]
