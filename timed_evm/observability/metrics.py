#!filepath: timed_evm/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass
class MetricRecorder:
    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def incr(self, name: str, n: int = 1):
        """计数器，例如 rpc.calls.evm_mine"""
        if not self.enabled:
            return
        self.metrics[name] = self.metrics.get(name, 0) + n

    def get(self, name: str, default: Any = 0) -> Any:
        return self.metrics.get(name, default)
