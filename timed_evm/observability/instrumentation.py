#!filepath: timed_evm/observability/instrumentation.py
from __future__ import annotations

from dataclasses import dataclass
from contextlib import contextmanager
from collections import OrderedDict
from typing import Dict

from timed_evm.observability.timer import Timer
from timed_evm.observability.metrics import MetricRecorder
from timed_evm.observability.timeline_reporter import TimelineReporter


@dataclass
class Instrumentation:
    """
    RPC 级别的观测：
    1. timer(name) 记录耗时；同名多次调用累加
    2. metrics 记录调用计数
    3. 不在热路径打 INFO 日志
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    # ---------------------------------------------------------
    # Context Manager Timer
    # ---------------------------------------------------------
    def timer(self, name: str):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)
                inst.timeline[name] = inst.timeline.get(name, 0.0) + elapsed

        return _ctx()

    # ---------------------------------------------------------
    # Timeline 输出（冷路径）
    # ---------------------------------------------------------
    def generate_timeline_report(self, label: str):
        TimelineReporter(self.timeline, label).print()


class _NoOpTimer:
    """inst 为 None 时的计时器。"""

    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
