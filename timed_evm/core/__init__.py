"""
Core value types (no I/O).

- RpcRequest: the JSON-RPC 2.0 request envelope.
- Ok / Err: the two variants of RpcResult.

Every RPC response is classified into exactly one variant before any
caller looks at it.
"""
from .types import RpcRequest, JSONRPC_VERSION
from .result import Ok, Err, RpcResult

__all__ = ["RpcRequest", "JSONRPC_VERSION", "Ok", "Err", "RpcResult"]
