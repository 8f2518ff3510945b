"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class CompressionDefaults:
    """压缩相关的默认配置"""

    # 大小阈值（KB）
    TARGET_SIZE_KB: int = 800
    MAX_SIZE_KB: int = 1000
    MAX_SOURCE_SIZE_MB: int = 5

    # 搜索设置
    MAX_DIMENSION: int = 1200
    MAX_ATTEMPTS: int = 25
    INITIAL_QUALITY: float = 0.7

    # 异步搜索每次调整后的让出时间（秒）
    YIELD_DELAY: float = 0.01

    # 并发设置
    MAX_WORKERS: int = 4


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    # 日志级别
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "pakel_image_compress.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.compression = CompressionDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 压缩配置
        if target_size := os.getenv("PAKEL_TARGET_SIZE_KB"):
            object.__setattr__(self.compression, "TARGET_SIZE_KB", int(target_size))

        if max_size := os.getenv("PAKEL_MAX_SIZE_KB"):
            object.__setattr__(self.compression, "MAX_SIZE_KB", int(max_size))

        if max_attempts := os.getenv("PAKEL_MAX_ATTEMPTS"):
            object.__setattr__(self.compression, "MAX_ATTEMPTS", int(max_attempts))

        if max_dimension := os.getenv("PAKEL_MAX_DIMENSION"):
            object.__setattr__(self.compression, "MAX_DIMENSION", int(max_dimension))

        if max_workers := os.getenv("PAKEL_MAX_WORKERS"):
            object.__setattr__(self.compression, "MAX_WORKERS", int(max_workers))

        # 日志配置
        if log_level := os.getenv("PAKEL_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("PAKEL_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )

    @staticmethod
    def get_executor_type(task_count: int, total_bytes: int) -> str:
        """根据任务数量和总大小选择执行器类型"""
        if task_count <= 5 and total_bytes <= 20 * 1024 * 1024:
            return "thread"  # 少量文件使用线程池
        return "process"  # 大批量使用进程池


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
