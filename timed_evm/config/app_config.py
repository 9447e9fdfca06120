#!filepath: timed_evm/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from .log_config import LogConfig
from .secret_config import SecretConfig
from .simulator_config import SimulatorConfig


def package_root() -> str:
    """
    timed_evm/config/app_config.py → timed_evm/config
    """
    return os.path.abspath(os.path.dirname(__file__))


class AppConfig(BaseModel):
    log: LogConfig
    simulator: SimulatorConfig
    secret: SecretConfig = SecretConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 timed_evm/config/base.yml
        - .env 从当前工作目录查找（测试项目根目录）
        """
        load_dotenv(os.path.join(os.getcwd(), ".env"))

        if path is None:
            path = os.path.join(package_root(), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # secret 只从 env 注入
        raw["secret"] = {
            "unlock_private_keys": os.getenv("TIMED_EVM_UNLOCK_KEYS"),
        }
        return cls(**raw)
