"""消息格式化工具模块。

提供统一的错误消息格式化功能和字节大小显示。
"""

from collections.abc import Iterable
from typing import Any

from humanize import naturalsize

from ..models.constants import SIZE_UNITS


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def human_size(size_bytes: int) -> str:
        """人类可读的文件大小（用于日志和错误消息）"""
        return naturalsize(size_bytes, binary=True)

    @staticmethod
    def file_not_found(file_path: Any) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def missing_file() -> str:
        """未提供文件错误消息"""
        return "未提供文件"

    @staticmethod
    def invalid_mime_type(mime_type: str | None, allowed: Iterable[str]) -> str:
        """文件类型不允许错误消息"""
        return (
            f"不支持的文件类型: {mime_type or '未知'}，"
            f"仅允许 {', '.join(sorted(allowed))}"
        )

    @staticmethod
    def file_too_large(size_bytes: int, limit_bytes: int) -> str:
        """文件超过上传限制错误消息"""
        return (
            f"文件大小 {MessageFormatter.human_size(size_bytes)} "
            f"超过 {MessageFormatter.human_size(limit_bytes)} 限制"
        )

    @staticmethod
    def budget_exceeded(size_bytes: int, attempts: int, limit_bytes: int) -> str:
        """压缩尝试用尽错误消息"""
        return (
            f"经过 {attempts} 次尝试后图片仍为 {kilobytes(size_bytes)} KB，"
            f"超过 {kilobytes(limit_bytes)} KB 上限，请尝试更小或更简单的图片"
        )

    @staticmethod
    def operation_failed(
        operation: str, target: Any, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def format_error(operation: str, target: Any, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{target}]: {error}"


def kilobytes(size_bytes: int) -> int:
    """字节数换算为四舍五入的 KB"""
    return int(size_bytes / 1024 + 0.5)


def format_byte_size(size_bytes: int) -> str:
    """格式化字节大小，用于界面展示。

    1024 进制，单位依次为 Bytes、KB、MB、GB，保留两位小数并去掉末尾的零。

    Examples:
        >>> format_byte_size(1536)
        '1.5 KB'
        >>> format_byte_size(0)
        '0 Bytes'
    """
    if size_bytes < 0:
        raise ValueError(f"字节数不能为负数: {size_bytes}")
    if size_bytes == 0:
        return f"0 {SIZE_UNITS[0]}"

    # floor(log_1024(n))，整数位运算避免浮点误差
    exponent = max(0, (int(size_bytes).bit_length() - 1) // 10)
    exponent = min(exponent, len(SIZE_UNITS) - 1)

    value = f"{size_bytes / 1024**exponent:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[exponent]}"
