from .app_config import AppConfig
from .log_config import LogConfig
from .secret_config import SecretConfig
from .simulator_config import SimulatorConfig, DEFAULT_BALANCE_ETHER

__all__ = [
    "AppConfig",
    "LogConfig",
    "SecretConfig",
    "SimulatorConfig",
    "DEFAULT_BALANCE_ETHER",
]
