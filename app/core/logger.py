# app/core/logger.py
from loguru import logger
import sys
import os
from pathlib import Path
from typing import Optional

# 获取运行环境
ENV = os.getenv("ENV", "development").lower()

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# 清除默认 handler
logger.remove()

# 控制台输出
logger.add(
    sys.stderr,
    level="DEBUG" if ENV in ("development", "dev") else "INFO",
    colorize=True,
    backtrace=True,
    diagnose=False,
    format=CONSOLE_FORMAT,
)

_file_sink_ids: list = []


def configure_file_logging(log_dir: str, rotation: str, retention: str) -> None:
    """
    根据配置挂载文件日志 (文本 + JSON)。
    可重复调用，旧的文件 handler 会先被移除。
    """
    while _file_sink_ids:
        logger.remove(_file_sink_ids.pop())

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    # 普通文本日志
    _file_sink_ids.append(logger.add(
        path / "app.log",
        level="DEBUG",
        rotation=rotation,
        retention=retention,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    ))

    # JSON 结构化日志，只记录警告及以上
    _file_sink_ids.append(logger.add(
        path / "app.json",
        level="WARNING",
        rotation=rotation,
        retention=retention,
        serialize=True,
        encoding="utf-8",
        enqueue=True,
    ))
    logger.debug(f"File logging enabled at {path.resolve()}")


def get_logger(name: Optional[str] = None):
    """仿 logging.getLogger() 实现的 loguru logger 工厂方法"""
    if name:
        return logger.bind(module=name)
    return logger


logger.debug(f"Log system initialized in {ENV} mode.")
