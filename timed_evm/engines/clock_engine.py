from __future__ import annotations

from typing import Optional

from timed_evm.utils.datetime_utils import DateTimeUtils, TimeLike


class ClockEngine:
    """
    Engine 层（纯逻辑）：链上时钟的算术与校验。

    链上时钟 = 最近一次出块的时间戳 + 之后经过的宿主机时间（秒）。
    offset 在 evm_increaseTime 时累积，在下一次 evm_mine 时兑现：
        target = latest_timestamp + offset
    """

    # --------------------------------------------------
    @staticmethod
    def resolve_start(start: Optional[TimeLike]) -> int:
        """None → 当前时间（epoch 秒）。"""
        return DateTimeUtils.to_epoch_seconds(start)

    # --------------------------------------------------
    @staticmethod
    def validate_jump(seconds) -> int:
        # bool 是 int 的子类，显式拒绝
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            raise TypeError(f"seconds 必须是整数（收到: {seconds!r}）")
        if seconds < 0:
            raise ValueError(f"不能回拨时间（收到: {seconds}）")
        return seconds

    # --------------------------------------------------
    @staticmethod
    def plan_target(latest_timestamp: int, offset: int) -> int:
        return int(latest_timestamp) + int(offset)

    # --------------------------------------------------
    @staticmethod
    def chain_now(anchor_timestamp: int, elapsed: float) -> int:
        """anchor 之后经过 elapsed 秒（宿主机）时的链上时间。"""
        return int(anchor_timestamp) + max(int(elapsed), 0)

    # --------------------------------------------------
    @staticmethod
    def seal_timestamp(parent_timestamp: int, wanted: int) -> int:
        """
        新块时间戳必须严格晚于父块（py-evm 的 header 校验）。
        """
        return max(int(parent_timestamp) + 1, int(wanted))
