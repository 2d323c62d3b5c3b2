"""Telemetry - 统一日志和指标入口

提供日志工厂、日志初始化和指标 facade。

日志格式: [module] msg
指标示例: tmux.commands, tmux.failures, pool.reused, pool.created, watcher.polls
"""

import logging
import sys

from . import config

_LOG_FORMAT = "[%(name)s] %(message)s"
_ROOT_LOGGER = "marvex"


def get_logger(name: str) -> logging.Logger:
    """获取带模块前缀的 logger

    Args:
        name: 模块名（通常使用 __name__）
    """
    return logging.getLogger(name)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """初始化 marvex 根 logger

    输出到 stderr，stdout 只留给 session 名称。

    Args:
        verbose: True 时输出 DEBUG（包括每条 tmux/i3 命令）

    Returns:
        配置好的根 logger
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    level = logging.DEBUG if verbose else config.LOG_LEVEL.upper()
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def format_command_log(program: str, args: tuple[str, ...] | list[str]) -> str:
    """格式化外部命令日志: [tmux -L sock new-session ...]"""
    return "[" + " ".join([program, *args]) + "]"


class Metrics:
    """指标收集 facade

    计数器存储在内存中，仅在单次调用内有效。
    """

    def __init__(self):
        self._counters: dict[str, int] = {}

    def inc(self, name: str, value: int = 1) -> None:
        """递增计数器"""
        if not config.METRICS_ENABLED:
            return
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """获取计数器值（用于测试）"""
        return self._counters.get(name, 0)

    def reset(self) -> None:
        """重置所有指标（用于测试）"""
        self._counters.clear()

    def get_all_counters(self) -> dict[str, int]:
        """获取所有计数器（用于调试）"""
        return dict(self._counters)


# 全局指标实例
metrics = Metrics()
