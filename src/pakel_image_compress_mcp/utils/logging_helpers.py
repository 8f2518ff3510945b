"""日志工具模块。

提供统一的日志记录功能，标准化日志格式和配置。
"""

import inspect
import logging
from logging.handlers import RotatingFileHandler

from ..config import LoggingDefaults


PACKAGE_LOGGER = "pakel_image_compress_mcp"


def get_logger(name: str | None = None) -> logging.Logger:
    """获取标准化配置的日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 配置好的日志记录器
    """
    if name is None:
        # 获取调用者的模块名
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def configure_logging(defaults: LoggingDefaults | None = None) -> logging.Logger:
    """按配置初始化包日志记录器。

    重复调用不会叠加处理器。

    Args:
        defaults: 日志配置，默认使用全局配置

    Returns:
        logging.Logger: 包级日志记录器
    """
    if defaults is None:
        from ..config import get_config

        defaults = get_config().logging

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(defaults.LOG_LEVEL)

    if not logger.handlers:
        formatter = logging.Formatter(defaults.LOG_FORMAT)

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

        if defaults.ENABLE_FILE_LOGGING:
            file_handler = RotatingFileHandler(
                defaults.LOG_FILE_PATH,
                maxBytes=defaults.LOG_FILE_MAX_SIZE,
                backupCount=defaults.LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
