#!filepath: timed_evm/config/simulator_config.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .secret_config import SecretConfig

# 每个账户的默认余额（单位 ether），足够任何测试使用
DEFAULT_BALANCE_ETHER = 134_439_500_000_000_000


class SimulatorConfig(BaseModel):
    start_time: Optional[datetime] = None          # None → 当前时间
    default_balance_ether: int = Field(DEFAULT_BALANCE_ETHER, ge=0)
    num_accounts: int = Field(10, ge=1)
    accounts_to_unlock: List[str] = []

    def unlock_list(self, secret: Optional[SecretConfig] = None) -> List[str]:
        """
        YAML 中的 accounts_to_unlock + .env 注入的私钥，去重且保持顺序。
        """
        merged = list(self.accounts_to_unlock)
        if secret is not None:
            merged.extend(secret.unlock_private_keys)
        return list(dict.fromkeys(merged))
