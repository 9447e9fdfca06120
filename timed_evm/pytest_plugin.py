"""
pytest fixtures for suites that drive a TimedEvm.

在 conftest.py 中启用：
    pytest_plugins = ["timed_evm.pytest_plugin"]
"""
from __future__ import annotations

from typing import List, Optional

import pytest

from timed_evm.controller import TimedEvm
from timed_evm.observability.instrumentation import Instrumentation
from timed_evm.utils.datetime_utils import TimeLike


@pytest.fixture
def timed_evm_factory():
    """
    Factory fixture：每次调用创建一条独立的模拟链。

        evm = timed_evm_factory(start="2020-01-01T00:00:00Z")
        evm = timed_evm_factory(accounts=[private_key], instrument=True)
    """
    created: List[TimedEvm] = []

    def _make(
            start: Optional[TimeLike] = None,
            accounts: Optional[List[str]] = None,
            instrument: bool = False,
            **kwargs,
    ) -> TimedEvm:
        inst = Instrumentation(enabled=True) if instrument else None
        evm = TimedEvm(start=start, accounts=accounts, inst=inst, **kwargs)
        created.append(evm)
        return evm

    yield _make

    for evm in created:
        if evm.inst is not None:
            evm.inst.generate_timeline_report(f"TimedEvm@{id(evm):x}")
