#!filepath: timed_evm/utils/logger.py
import os
import json
import inspect
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import Callable


class Logging:
    """
    测试 harness 日志模块
    ---------------------------------------
    - 按日期切割日志文件
    - 支持日志保留周期
    - 包含函数级日志装饰器（同步 / 异步）
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        os.makedirs(self.log_dir, exist_ok=True)
        self._configure()

    def _configure(self) -> None:
        """
        配置全局 logger（会替换掉之前所有 sink）
        """

        logger.remove()

        logger.add(
            sink=f"{self.log_dir}/timed_evm_{{time:YYYY-MM-DD}}.log",
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )

        logger.info("-----------Logger initialized.-----------")

    # ----------- 日志方法 -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- 日志装饰器 ----------
    def catch(
        self,
        msg: str = "Exception occurred",
        log_inputs: bool = False,
        log_outputs: bool = False,
        log_time: bool = True,
    ) -> Callable:
        """
        记录调用参数 / 返回值 / 耗时；异常记录后原样抛出。

        同时支持 def 与 async def：
            @logs.catch("advance_time failed")
            async def advance_time(self, seconds): ...
        """

        def decorator(func: Callable):
            if inspect.iscoroutinefunction(func):
                @wraps(func)
                async def async_wrapper(*args, **kwargs):
                    if log_inputs:
                        _log_call(func, args, kwargs)
                    start = perf_counter()
                    try:
                        result = await func(*args, **kwargs)
                    except Exception:
                        logger.exception(f"[ERROR] {func.__name__}: {msg}")
                        raise
                    _log_result(func, result, start, log_outputs, log_time)
                    return result

                return async_wrapper

            @wraps(func)
            def wrapper(*args, **kwargs):
                if log_inputs:
                    _log_call(func, args, kwargs)
                start = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise
                _log_result(func, result, start, log_outputs, log_time)
                return result

            return wrapper

        return decorator


def _log_call(func: Callable, args, kwargs) -> None:
    logger.info(
        f"[CALL] {func.__name__} args={args}, "
        f"kwargs={json.dumps(kwargs, ensure_ascii=False, default=str)}"
    )


def _log_result(func: Callable, result, start: float, log_outputs: bool, log_time: bool) -> None:
    if log_outputs:
        logger.info(f"[RETURN] {func.__name__} result={result}")
    if log_time:
        cost = perf_counter() - start
        logger.info(f"[TIME] {func.__name__} took {cost:.4f}s")


def init_logging(cfg) -> Logging:
    """
    用 LogConfig 重新配置全局 logs（原地修改，已 import 的引用同样生效）。
    """
    logs.log_dir = cfg.dir
    logs.rotation = cfg.rotation
    logs.retention = cfg.retention
    logs.level = cfg.level

    os.makedirs(logs.log_dir, exist_ok=True)
    logs._configure()
    return logs


# 默认全局 logs（可由 init_logging 重新配置）
logs = Logging()
