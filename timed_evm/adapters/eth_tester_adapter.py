from __future__ import annotations

from time import perf_counter
from typing import Any, Callable, Dict, List, Optional

from eth_tester import EthereumTester, PyEVMBackend
from eth_tester.backends.pyevm.main import get_default_account_state
from web3 import Account, AsyncEthereumTesterProvider, Web3

from timed_evm.adapters.base_adapter import BaseAdapter
from timed_evm.config.simulator_config import DEFAULT_BALANCE_ETHER
from timed_evm.core.types import JSONRPC_VERSION
from timed_evm.engines.clock_engine import ClockEngine
from timed_evm.utils.errors import SimulatorError
from timed_evm import logs

# JSON-RPC 错误码
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000


class AnchoredPyEVMBackend(PyEVMBackend):
    """
    py-evm 默认按宿主机时间出块（max(parent + 1, time.time())），
    从 2020 年启动的链第一次出块就会跳到今天。

    这里改用链上时钟：最近一块的时间戳 + 之后经过的宿主机时间。
    eth-tester 为交易自动出块同样走 mine_blocks，一并覆盖。
    """

    def __init__(self, genesis_parameters=None, genesis_state=None, generated_accounts=None):
        self.clock = ClockEngine()
        # 下一块的指定时间戳（evm_mine 兑现 offset 时设置，用一次即清空）
        self.seal_next: Optional[int] = None
        self._anchor_timestamp = 0
        self._anchor_host = perf_counter()

        super().__init__(genesis_parameters=genesis_parameters, genesis_state=genesis_state)

        # genesis_state 里还有只凭私钥 unlock 的账户，它们的私钥由 add_account 登记；
        # py-evm 按 genesis_state 大小派生默认私钥，多出来的要去掉
        if generated_accounts is not None:
            self.account_keys = self.account_keys[:generated_accounts]

    # --------------------------------------------------
    def now(self) -> int:
        return self.clock.chain_now(self._anchor_timestamp, perf_counter() - self._anchor_host)

    def _anchor(self) -> None:
        """链上时钟锚定到当前链头，pending 块的时间戳随之更新。"""
        self._anchor_timestamp = self.chain.get_canonical_head().timestamp
        self._anchor_host = perf_counter()
        self._stamp_pending(self.now())

    def _stamp_pending(self, wanted: int) -> None:
        parent = self.chain.get_canonical_head()
        timestamp = self.clock.seal_timestamp(parent.timestamp, wanted)
        self.chain.header = self.chain.header.copy(timestamp=timestamp)

    # --------------------------------------------------
    def reset_to_genesis(self, *args, **kwargs):
        super().reset_to_genesis(*args, **kwargs)
        self._anchor()

    def revert_to_snapshot(self, snapshot):
        super().revert_to_snapshot(snapshot)
        self._anchor()

    def time_travel(self, to_timestamp):
        self.seal_next = to_timestamp
        self.mine_blocks()
        return to_timestamp

    def mine_blocks(self, num_blocks=1, *args, **kwargs):
        block_hashes = []
        for _ in range(num_blocks):
            wanted = self.now() if self.seal_next is None else self.seal_next
            self.seal_next = None

            self._stamp_pending(wanted)
            block_hashes.extend(super().mine_blocks(1, *args, **kwargs))
            self._anchor()

        return tuple(block_hashes)


class EthTesterSimulator(BaseAdapter):
    """
    Adapter 层：把 eth-tester（py-evm backend）包装成单请求 / 单响应的 JSON-RPC 入口。

    - evm_increaseTime / evm_mine / evm_snapshot / evm_revert 在这里处理
    - 其余方法交给 web3 的 eth-tester endpoint 表
    - 后端抛出的异常转成 error 信封返回，不向上抛
    - 出块时间由 AnchoredPyEVMBackend 的链上时钟决定，不跟宿主机时间走
    """

    def __init__(
            self,
            start: Optional[int] = None,
            default_balance: Optional[int] = None,
            unlocked_accounts: Optional[List[str]] = None,
            num_accounts: int = 10,
            inst=None,
    ):
        super().__init__(inst)
        self.clock = ClockEngine()
        self.start = self.clock.resolve_start(start)
        self.default_balance = (
            Web3.to_wei(DEFAULT_BALANCE_ETHER, "ether")
            if default_balance is None else int(default_balance)
        )

        with self.timer("simulator_init"):
            genesis_state = PyEVMBackend.generate_genesis_state(
                overrides={"balance": self.default_balance},
                num_accounts=num_accounts,
            )
            self.unlocked_accounts, keys = self._plan_unlock(unlocked_accounts or [], genesis_state)
            self.backend = self._build_backend(genesis_state, num_accounts)
            self.tester = EthereumTester(backend=self.backend)
            for key in keys:
                self.tester.add_account(key)

        # web3 client 与本 adapter 共享同一个 EthereumTester
        self.provider = AsyncEthereumTesterProvider()
        self.provider.ethereum_tester = self.tester

        # 已累积、尚未兑现到区块上的时间偏移（秒）
        self._offset = 0

        self._handlers: Dict[str, Callable[[List[Any]], Any]] = {
            "evm_increaseTime": self._increase_time,
            "evm_mine": self._mine,
            "evm_snapshot": self._snapshot,
            "evm_revert": self._revert,
        }

        logs.info(
            f"[Simulator] eth-tester ready start={self.start} "
            f"accounts={num_accounts} unlocked={len(self.unlocked_accounts)}"
        )

    # --------------------------------------------------
    def _build_backend(self, genesis_state, num_accounts: int) -> AnchoredPyEVMBackend:
        try:
            genesis_params = PyEVMBackend.generate_genesis_params(
                overrides={"timestamp": self.start}
            )
            return AnchoredPyEVMBackend(
                genesis_parameters=genesis_params,
                genesis_state=genesis_state,
                generated_accounts=num_accounts,
            )
        except (ValueError, TypeError) as e:
            raise SimulatorError(f"无法创建 eth-tester backend: {e}") from e

    # --------------------------------------------------
    def _plan_unlock(self, entries: List[str], genesis_state) -> tuple:
        """
        eth-tester 只能替持有私钥的账户签名：
        - 私钥 → 写进 genesis（默认余额），backend 建好后 add_account
        - 已由 tester 管理的地址 → 本身就是 unlocked
        同一账户出现多次只算一次。
        """
        known = {Web3.to_checksum_address(Web3.to_hex(raw)) for raw in genesis_state}
        unlocked: List[str] = []
        keys: List[str] = []

        for entry in entries:
            if Web3.is_address(entry):
                address = Web3.to_checksum_address(entry)
                if address not in known:
                    raise SimulatorError(
                        f"无法 unlock {address}：eth-tester 需要该账户的私钥"
                    )
            else:
                try:
                    address = Account.from_key(entry).address
                except Exception as e:
                    # 不要把私钥写进日志
                    raise SimulatorError(f"无法 unlock 账户（私钥无效）: {type(e).__name__}") from e

                if address not in known:
                    genesis_state[Web3.to_bytes(hexstr=address)] = get_default_account_state(
                        overrides={"balance": self.default_balance}
                    )
                    known.add(address)
                    keys.append(entry)

            if address not in unlocked:
                unlocked.append(address)

        return unlocked, keys

    # ==================================================
    # JSON-RPC 入口
    # ==================================================
    async def request(self, envelope: Dict[str, Any]) -> Dict[str, Any]:
        method = envelope.get("method")
        params = envelope.get("params") or []
        request_id = envelope.get("id")

        self.count(f"rpc.calls.{method}")
        logs.debug(f"[Simulator] -> {method} {params} id={request_id}")

        with self.timer(f"rpc:{method}"):
            try:
                handler = self._handlers.get(method)
                if handler is not None:
                    return self._reply(request_id, result=handler(params))
                return await self._delegate(method, params, request_id)
            except Exception as e:
                logs.warning(f"[Simulator] {method} failed: {e}")
                return self._reply(
                    request_id,
                    error={"code": SERVER_ERROR, "message": str(e) or type(e).__name__},
                )

    # --------------------------------------------------
    async def _delegate(self, method: str, params: List[Any], request_id) -> Dict[str, Any]:
        if not isinstance(method, str) or "_" not in method:
            return self._reply(
                request_id,
                error={"code": METHOD_NOT_FOUND, "message": f"Method not found: {method}"},
            )

        response = await self.provider.make_request(method, params)
        response = dict(response)

        error = response.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"code": METHOD_NOT_FOUND, "message": str(error)}
            return self._reply(request_id, error=error)
        return self._reply(request_id, result=response.get("result"))

    # --------------------------------------------------
    @staticmethod
    def _reply(request_id, result: Any = None, error: Any = None) -> Dict[str, Any]:
        response = {"jsonrpc": JSONRPC_VERSION, "id": request_id}
        if error is not None:
            response["error"] = error
        else:
            response["result"] = result
        return response

    # ==================================================
    # evm_* handlers
    # ==================================================
    def _increase_time(self, params: List[Any]) -> int:
        if not params:
            raise ValueError("evm_increaseTime 需要参数 seconds")

        seconds = params[0]
        if isinstance(seconds, str) and seconds.startswith("0x"):
            seconds = int(seconds, 16)

        self._offset += self.clock.validate_jump(seconds)
        return self._offset

    # --------------------------------------------------
    def _mine(self, params: List[Any]) -> str:
        blocks = int(params[0]) if params else 1
        if blocks < 1:
            raise ValueError(f"evm_mine 区块数必须 >= 1（收到: {blocks}）")

        # 有待兑现的 offset：第一块正好落在 latest + offset，后面的块顺着链上时钟走
        if self._offset:
            latest = self._block("latest")["timestamp"]
            self.backend.seal_next = self.clock.plan_target(latest, self._offset)

        self.tester.mine_blocks(blocks)
        self._offset = 0
        return "0x0"

    # --------------------------------------------------
    def _snapshot(self, params: List[Any]):
        return self.tester.take_snapshot()

    def _revert(self, params: List[Any]) -> bool:
        if not params:
            raise ValueError("evm_revert 需要参数 snapshot_id")
        self.tester.revert_to_snapshot(params[0])
        self._offset = 0
        return True

    # --------------------------------------------------
    def _block(self, identifier: str) -> Dict[str, Any]:
        return self.tester.get_block_by_number(identifier)
