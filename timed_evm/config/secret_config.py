#!filepath: timed_evm/config/secret_config.py
from typing import List

from pydantic import BaseModel, field_validator


class SecretConfig(BaseModel):
    """
    只从环境变量注入，不写进 YAML。

    TIMED_EVM_UNLOCK_KEYS="0xabc...,0xdef..."
    """

    unlock_private_keys: List[str] = []

    @field_validator("unlock_private_keys", mode="before")
    @classmethod
    def _split_csv(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v
