#!filepath: timed_evm/utils/datetime_utils.py
from __future__ import annotations
from datetime import datetime, timezone, date
from typing import Union

TimeLike = Union[int, float, str, datetime, date]


class DateTimeUtils:
    """
    链上时间统一用 UTC epoch 秒（int）表示。
    """

    TZ = timezone.utc

    # ================================================================
    # parse()：int / str / datetime / date → aware datetime (UTC)
    # ================================================================
    @classmethod
    def parse(cls, ts: TimeLike) -> datetime:
        # bool 是 int 的子类，显式拒绝
        if isinstance(ts, bool):
            raise TypeError(f"不支持的时间类型: {type(ts)}")

        # naive datetime 按 UTC 解释，不走本地时区（与 datetime.timestamp() 不同）
        if isinstance(ts, datetime):
            return ts.astimezone(cls.TZ) if ts.tzinfo else ts.replace(tzinfo=cls.TZ)

        if isinstance(ts, date):
            return datetime(ts.year, ts.month, ts.day, tzinfo=cls.TZ)

        # int timestamp：按位数判断精度
        if isinstance(ts, (int, float)):
            if ts < 0:
                raise ValueError(f"时间戳不能为负数: {ts}")
            digits = len(str(int(ts)))
            if digits <= 10:   # 秒
                return datetime.fromtimestamp(ts, cls.TZ)
            if digits == 13:   # 毫秒
                return datetime.fromtimestamp(ts / 1000, cls.TZ)
            raise ValueError(f"无法识别的整数时间戳: {ts}")

        if isinstance(ts, str):
            s = ts.strip()
            if s.isdigit():
                if len(s) == 14:
                    return datetime.strptime(s, "%Y%m%d%H%M%S").replace(tzinfo=cls.TZ)
                return cls.parse(int(s))

            # ISO 8601（含 "Z" 后缀）
            try:
                return cls.parse(datetime.fromisoformat(s.replace("Z", "+00:00")))
            except ValueError:
                pass

            fmts = [
                "%Y-%m-%d %H:%M:%S",
                "%Y/%m/%d %H:%M:%S",
                "%Y-%m-%d",
            ]
            for fmt in fmts:
                try:
                    return datetime.strptime(s, fmt).replace(tzinfo=cls.TZ)
                except ValueError:
                    pass

            raise ValueError(f"无法解析时间字符串: {ts}")

        raise TypeError(f"不支持的时间类型: {type(ts)}")

    # ================================================================
    # epoch 秒 <-> datetime
    # ================================================================
    @classmethod
    def to_epoch_seconds(cls, ts: TimeLike | None = None) -> int:
        """None 表示当前时间。"""
        if ts is None:
            return int(datetime.now(cls.TZ).timestamp())
        return int(cls.parse(ts).timestamp())

    @classmethod
    def from_epoch_seconds(cls, seconds: int) -> datetime:
        return datetime.fromtimestamp(int(seconds), cls.TZ)

    @classmethod
    def now_ms(cls) -> int:
        return int(datetime.now(cls.TZ).timestamp() * 1000)
