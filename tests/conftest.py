# tests/conftest.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Union
from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from timed_evm import TimedEvm
from timed_evm.pytest_plugin import timed_evm_factory  # noqa: F401


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# 测试用私钥（不要在真实网络使用）
ACCOUNT_KEY = "0x" + "11" * 32


@pytest.fixture(scope="session")
def account_key() -> str:
    return ACCOUNT_KEY


# ============================================================
# FakeSimulator：只验证 controller 的调用契约，不跑 EVM
# ============================================================
Scripted = Union[Dict[str, Any], Callable[[Dict[str, Any]], Dict[str, Any]]]


class FakeSimulator:
    """
    responses: method → {"result": ...} / {"error": ...} / callable(envelope)
    未配置的方法默认返回 {"result": None}
    """

    def __init__(self, responses: Dict[str, Scripted] | None = None):
        self.responses = responses or {}
        self.calls: List[Dict[str, Any]] = []

    async def request(self, envelope: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(envelope)
        scripted = self.responses.get(envelope["method"], {"result": None})
        if callable(scripted):
            scripted = scripted(envelope)
        return {"jsonrpc": "2.0", "id": envelope["id"], **scripted}

    @property
    def methods(self) -> List[str]:
        return [c["method"] for c in self.calls]


@pytest.fixture
def make_fake_simulator():
    """
    Usage:
        sim = make_fake_simulator({"eth_accounts": {"result": ["0xA"]}})
    """

    def _make(responses: Dict[str, Scripted] | None = None) -> FakeSimulator:
        return FakeSimulator(responses)

    return _make


@pytest.fixture
def fake_web3():
    """
    只模拟 fund_account 用到的 eth.send_transaction / wait_for_transaction_receipt
    """
    w3 = MagicMock()
    w3.eth.send_transaction = AsyncMock(return_value=b"\x01" * 32)
    w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
    return w3


@pytest.fixture
def make_controller(make_fake_simulator, fake_web3):
    def _make(responses: Dict[str, Scripted] | None = None) -> TimedEvm:
        return TimedEvm(
            simulator=make_fake_simulator(responses),
            web3=fake_web3,
        )

    return _make
