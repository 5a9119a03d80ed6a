"""
日志初始化
"""

import sys
from pathlib import Path
from loguru import logger

from shopnav.config.models import LogConfig

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def SetupLogger(cfg: LogConfig):
    """
    按 LogConfig 配置 loguru：控制台 + 按天滚动的规划日志

    DEBUG 级别时额外写一份只含 DEBUG 记录的文件（A* 迭代、坐标修正等细节）。

    Args:
        cfg: 日志配置
    """
    logger.remove()

    logger.add(sys.stderr, level=cfg.level, format=_CONSOLE_FORMAT, colorize=True)

    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    verbose = cfg.level in ("TRACE", "DEBUG")
    logger.add(
        str(log_dir / "shopnav_{time:YYYY-MM-DD}.log"),
        rotation="00:00",
        retention=cfg.retention,
        level="INFO" if verbose else cfg.level,
        encoding="utf-8",
        format=_FILE_FORMAT,
    )

    if verbose:
        logger.add(
            str(log_dir / "shopnav_debug_{time:YYYY-MM-DD}.log"),
            rotation="00:00",
            retention=cfg.retention,
            level=cfg.level,
            filter=lambda record: record["level"].no < logger.level("INFO").no,
            encoding="utf-8",
            format=_FILE_FORMAT,
        )

    logger.info(f"[Logger] 日志初始化完成: {log_dir}, level={cfg.level}")
    return logger
