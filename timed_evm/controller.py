#!filepath: timed_evm/controller.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from web3 import AsyncWeb3

from timed_evm import logs
from timed_evm.adapters.eth_tester_adapter import EthTesterSimulator
from timed_evm.config.app_config import AppConfig
from timed_evm.core.result import RpcResult
from timed_evm.engines.rpc_engine import RpcEngine
from timed_evm.observability.instrumentation import Instrumentation
from timed_evm.utils.datetime_utils import DateTimeUtils, TimeLike
from timed_evm.utils.errors import (
    AccountsNotDiscoveredError,
    RpcError,
    SimulatorError,
    TransactionError,
)


class TimedEvm:
    """
    测试用 EVM 控制器：控制链上时间、给账户打钱。

    用法：
        evm = TimedEvm(start=datetime(2020, 1, 1, tzinfo=timezone.utc), accounts=[private_key])
        accounts = await evm.discover_accounts()

        await evm.fund_account(evm.provided_accounts[0], 10 ** 18)
        await evm.advance_time(300)

    注意：
    - start 为 naive datetime 时按 UTC 解释（不是本地时区）
    - fund_account 依赖 discover_accounts 先设置 primary_account
    - 没有内部加锁；并发调用 advance_time 会交错，调用方负责串行
    """

    def __init__(
            self,
            start: Optional[TimeLike] = None,
            accounts: Optional[List[str]] = None,
            *,
            default_balance: Optional[int] = None,
            num_accounts: int = 10,
            simulator=None,
            web3: Optional[AsyncWeb3] = None,
            inst: Optional[Instrumentation] = None,
    ):
        self.provided_accounts: List[str] = list(accounts or [])
        self.inst = inst
        self.rpc = RpcEngine()

        if simulator is None:
            simulator = EthTesterSimulator(
                start=DateTimeUtils.to_epoch_seconds(start),
                default_balance=default_balance,
                unlocked_accounts=self.provided_accounts,
                num_accounts=num_accounts,
                inst=inst,
            )
        self.simulator = simulator

        if web3 is None:
            provider = getattr(simulator, "provider", None)
            if provider is None:
                raise SimulatorError(
                    "注入的 simulator 没有 provider，需要同时传入 web3"
                )
            web3 = AsyncWeb3(provider)
        self.web3 = web3

        self.primary_account: Optional[str] = None
        self.accounts: List[str] = []

    # --------------------------------------------------
    @classmethod
    def from_config(cls, cfg: AppConfig, **kwargs) -> "TimedEvm":
        sim = cfg.simulator
        return cls(
            start=sim.start_time,
            accounts=sim.unlock_list(cfg.secret),
            default_balance=AsyncWeb3.to_wei(sim.default_balance_ether, "ether"),
            num_accounts=sim.num_accounts,
            **kwargs,
        )

    # ==================================================
    # 账户
    # ==================================================
    @logs.catch("discover_accounts failed")
    async def discover_accounts(self) -> List[str]:
        """
        eth_accounts → 第一个账户作为 primary，同时设为 web3 默认发送账户。
        """
        result = await self.call_rpc("eth_accounts")
        accounts = list(result.unwrap() or [])
        if not accounts:
            raise RpcError({"code": -32000, "message": "simulator returned no accounts"},
                           method="eth_accounts")

        self.accounts = accounts
        self.primary_account = accounts[0]
        self.web3.eth.default_account = self.primary_account

        logs.info(f"[TimedEvm] {len(accounts)} accounts, primary={self.primary_account}")
        return accounts

    # --------------------------------------------------
    async def fund_account(self, account: str, amount: int) -> Dict[str, Any]:
        """
        从 primary 账户向 account 转 amount（wei），等待交易被打包。
        """
        if self.primary_account is None:
            raise AccountsNotDiscoveredError(
                "primary account 未设置，请先调用 discover_accounts()"
            )

        tx = {"from": self.primary_account, "to": account, "value": int(amount)}
        try:
            tx_hash = await self.web3.eth.send_transaction(tx)
            receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash)
        except Exception as e:
            logs.warning(f"[TimedEvm] fund {account} failed: {e}")
            raise TransactionError(e) from e

        logs.info(f"[TimedEvm] funded {account} with {amount} wei")
        return receipt

    # ==================================================
    # 时间
    # ==================================================
    @logs.catch("advance_time failed", log_inputs=True)
    async def advance_time(self, seconds_to_jump: int) -> None:
        """
        新块时间戳 = 当前最新块时间戳 + seconds_to_jump。

        必须先 increaseTime 再 mine：只改时间不出块，新时间不可见。
        """
        (await self.call_rpc("evm_increaseTime", [seconds_to_jump])).unwrap()
        (await self.call_rpc("evm_mine")).unwrap()
        logs.info(f"[TimedEvm] advanced time by {seconds_to_jump}s")

    # --------------------------------------------------
    async def mine(self, blocks: int = 1) -> None:
        (await self.call_rpc("evm_mine", [blocks])).unwrap()

    async def snapshot(self) -> Any:
        return (await self.call_rpc("evm_snapshot")).unwrap()

    async def revert(self, snapshot_id: Any) -> None:
        (await self.call_rpc("evm_revert", [snapshot_id])).unwrap()

    # --------------------------------------------------
    async def latest_timestamp(self) -> int:
        block = await self.web3.eth.get_block("latest")
        return int(block["timestamp"])

    async def latest_time(self) -> datetime:
        return DateTimeUtils.from_epoch_seconds(await self.latest_timestamp())

    async def balance_of(self, account: str) -> int:
        return int(await self.web3.eth.get_balance(account))

    # ==================================================
    # RPC
    # ==================================================
    async def send_rpc(self, method: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """
        底层原语：原样返回 simulator 的响应，不检查 error。
        """
        envelope = self.rpc.build_request(method, params)
        return await self.simulator.request(envelope)

    async def call_rpc(self, method: str, params: Optional[List[Any]] = None) -> RpcResult:
        response = await self.send_rpc(method, params)
        result = self.rpc.classify(response, method)
        if not result.is_ok:
            logs.warning(f"[TimedEvm] {method} error: {result.error}")
        return result
