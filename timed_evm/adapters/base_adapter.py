from __future__ import annotations
from timed_evm.observability.instrumentation import Instrumentation, _NoOpTimer


class BaseAdapter:
    """
    Adapter 的通用接口。

    - 持有 Instrumentation（可选）
    - timer() 对关键区域计时，count() 记录调用次数
    """

    def __init__(self, inst: Instrumentation | None = None):
        self.inst = inst

    def timer(self, name: str = ''):
        """
            with adapter.timer("rpc:evm_mine"):
                ...

        Instrumentation 为 None 时自动禁用计时。
        """
        if not name:
            name = self.__class__.__name__
        if self.inst is None:
            return _NoOpTimer()
        return self.inst.timer(name)

    def count(self, name: str, n: int = 1):
        if self.inst is None:
            return
        self.inst.metrics.incr(name, n)
