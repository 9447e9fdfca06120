from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

# src: timed_evm/core/types.py
JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class RpcRequest:
    method: str
    params: List[Any] = field(default_factory=list)
    id: int = 0
    jsonrpc: str = JSONRPC_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "params": list(self.params),
            "id": self.id,
        }
