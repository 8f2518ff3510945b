"""图像压缩异常处理模块。

定义统一的异常类和错误分类，包含 Pillow/系统异常的转换装饰器。
"""

from collections.abc import Callable
from enum import Enum
from functools import wraps
from typing import TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .utils.logging_helpers import get_logger
from .utils.message_formatter import kilobytes


logger = get_logger()
T = TypeVar("T")


class ErrorKind(str, Enum):
    """错误分类，调用方据此区分「拒绝该文件」和「图片难以压缩」"""

    INVALID_INPUT = "invalid_input"
    DECODE_FAILURE = "decode_failure"
    COMPRESSION_BUDGET_EXCEEDED = "compression_budget_exceeded"
    READ_FAILURE = "read_failure"


# 统一的异常类型
class ImageCompressError(Exception):
    """压缩相关错误基类"""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, file_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.file_name = file_name

    def __reduce__(self):
        # 进程池需要在主进程重建异常
        return self.__class__, (self.message, self.file_name)


class InvalidInputError(ImageCompressError):
    """输入验证错误：缺少文件、类型不允许或超过上传大小限制"""

    kind = ErrorKind.INVALID_INPUT


class DecodeFailureError(ImageCompressError):
    """图像数据无法解码"""

    kind = ErrorKind.DECODE_FAILURE


class ReadFailureError(ImageCompressError):
    """底层文件无法读取"""

    kind = ErrorKind.READ_FAILURE


class CompressionBudgetExceededError(ImageCompressError):
    """尝试次数用尽后仍超过硬性大小上限"""

    kind = ErrorKind.COMPRESSION_BUDGET_EXCEEDED

    def __init__(
        self,
        message: str,
        final_size_bytes: int,
        attempts: int,
        file_name: str | None = None,
    ):
        super().__init__(message, file_name)
        self.final_size_bytes = final_size_bytes
        self.attempts = attempts

    def __reduce__(self):
        return self.__class__, (
            self.message,
            self.final_size_bytes,
            self.attempts,
            self.file_name,
        )

    @property
    def final_size_kb(self) -> int:
        return kilobytes(self.final_size_bytes)


def handle_image_errors(
    operation_name: str = "图像解码",
    error_class: type[ImageCompressError] = DecodeFailureError,
):
    """统一的图像处理异常转换装饰器

    已经是 ImageCompressError 的异常原样抛出，其余异常转换为 error_class。

    Args:
        operation_name: 操作名称，用于日志记录
        error_class: 转换后的异常类型
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except ImageCompressError:
                raise
            except UnidentifiedImageError as e:
                logger.warning(f"{operation_name} - 无法识别图像格式: {e}")
                raise error_class(f"无法识别的图像数据: {e}") from e
            except DecompressionBombError as e:
                logger.warning(f"{operation_name} - 图像过大: {e}")
                raise error_class(f"图像像素过多，可能存在安全风险: {e}") from e
            except OSError as e:
                logger.warning(f"{operation_name} - 操作失败: {e}")
                raise error_class(f"{operation_name}失败: {e}") from e
            except (ValueError, SyntaxError, EOFError) as e:
                # Pillow 插件对损坏的数据会抛出 SyntaxError/ValueError/EOFError
                logger.warning(f"{operation_name} - 数据损坏: {e}")
                raise error_class(f"图像数据损坏: {e}") from e

        return wrapper

    return decorator
