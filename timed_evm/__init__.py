#!filepath: timed_evm/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.datetime_utils import DateTimeUtils
from .utils.errors import (
    TimedEvmError,
    RpcError,
    TransactionError,
    AccountsNotDiscoveredError,
    SimulatorError,
)
from .config.app_config import AppConfig
from .core.result import Ok, Err, RpcResult
from .controller import TimedEvm

# alias 简化调用
datetime_utils = DateTimeUtils

__all__ = [
    "logs", "Logging", "init_logging",
    "datetime_utils",
    "AppConfig",
    "TimedEvm",
    "Ok", "Err", "RpcResult",
    "TimedEvmError", "RpcError", "TransactionError",
    "AccountsNotDiscoveredError", "SimulatorError",
]
