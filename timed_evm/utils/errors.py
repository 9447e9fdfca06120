# timed_evm/utils/errors.py
from typing import Any, Optional


class TimedEvmError(RuntimeError):
    """
    timed_evm 所有异常的基类。
    """


class RpcError(TimedEvmError):
    """
    Raised when a JSON-RPC response carries an error field.

    The simulator's error value is kept verbatim on ``.error``.
    """

    def __init__(self, error: Any, method: Optional[str] = None):
        self.error = error
        self.method = method
        super().__init__(self._render(error, method))

    @staticmethod
    def _render(error: Any, method: Optional[str]) -> str:
        if isinstance(error, dict) and "message" in error:
            text = str(error["message"])
        else:
            text = str(error)
        return f"[{method}] {text}" if method else text


class TransactionError(TimedEvmError):
    """
    Raised when a value-transfer transaction fails.

    The original exception is on ``.error`` and chained as ``__cause__``.
    """

    def __init__(self, error: BaseException):
        self.error = error
        super().__init__(str(error))


class AccountsNotDiscoveredError(TimedEvmError):
    """
    fund_account() 之前必须先调用 discover_accounts()。
    """


class SimulatorError(TimedEvmError):
    """
    Simulator 无法按给定参数创建（start / balance / unlocked accounts）。
    """
