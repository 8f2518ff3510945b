"""图像压缩处理引擎模块。

包含多文件并发处理逻辑。
"""

from .concurrent_executor import ConcurrentExecutor


__all__ = [
    "ConcurrentExecutor",
]
