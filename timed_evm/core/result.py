# timed_evm/core/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from timed_evm.utils.errors import RpcError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """成功分支：value 为 response["result"]。"""

    value: T
    method: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """失败分支：error 为 response["error"]，原样保留。"""

    error: Any
    method: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        raise RpcError(self.error, method=self.method)


RpcResult = Union[Ok[Any], Err]
