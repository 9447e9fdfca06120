from __future__ import annotations

from typing import Any, Dict, List, Optional

from timed_evm.core.result import Err, Ok, RpcResult
from timed_evm.core.types import RpcRequest
from timed_evm.utils.datetime_utils import DateTimeUtils


class RpcEngine:
    """
    Engine 层（纯逻辑）：
    - 不做任何 I/O
    - 只负责：构造请求信封、生成 id、把响应分类为 Ok / Err
    """

    # --------------------------------------------------
    @staticmethod
    def next_id() -> int:
        # 毫秒时间戳；同一毫秒内可能重复，不做去重
        return DateTimeUtils.now_ms()

    # --------------------------------------------------
    def build_request(
        self,
        method: str,
        params: Optional[List[Any]] = None,
    ) -> Dict[str, Any]:
        if not isinstance(method, str) or not method:
            raise ValueError(f"RPC method 必须是非空字符串（收到: {method!r}）")

        return RpcRequest(
            method=method,
            params=list(params) if params else [],
            id=self.next_id(),
        ).to_dict()

    # --------------------------------------------------
    @staticmethod
    def classify(response: Dict[str, Any], method: Optional[str] = None) -> RpcResult:
        """
        error 字段非空 → Err(error)，否则 Ok(result)。
        """
        if not isinstance(response, dict):
            return Err({"code": -32603, "message": f"malformed response: {response!r}"}, method)

        error = response.get("error")
        if error:
            return Err(error, method)
        return Ok(response.get("result"), method)
