"""base64 载荷大小估算模块。

不解码即可得到 base64 字符串代表的精确字节数，用作压缩循环的终止判断，
也可以在写入文档数据库之前单独做大小预检。
"""

import base64

from ..models.compression_result import PayloadValidation
from ..models.constants import DataURL, ValidationLimits
from ..utils.message_formatter import kilobytes


def split_data_url(data: str) -> tuple[str, str]:
    """拆分 data URL 头和 base64 载荷，没有逗号时整个字符串就是载荷"""
    header, separator, payload = data.partition(DataURL.SEPARATOR)
    if not separator:
        return "", data
    return header, payload


def estimate_payload_size(data: str) -> int:
    """计算 base64 载荷解码后的字节数。

    每 4 个字符编码 3 个字节，末尾的 "=" 表示最后一组缺少的字节数。
    调用方需保证输入是合法的 base64，否则结果没有意义。

    Args:
        data: base64 字符串，可带 data URL 头（如 ``data:image/jpeg;base64,``）

    Returns:
        int: 解码后的字节数
    """
    _, payload = split_data_url(data)

    if payload.endswith("=="):
        padding = 2
    elif payload.endswith("="):
        padding = 1
    else:
        padding = 0

    return len(payload) * 3 // 4 - padding


def validate_payload_size(
    data: str, max_bytes: int = ValidationLimits.MAX_PAYLOAD_SIZE
) -> PayloadValidation:
    """检查 base64 载荷是否不超过大小上限"""
    size_bytes = estimate_payload_size(data)
    return PayloadValidation(
        is_valid=size_bytes <= max_bytes,
        size_bytes=size_bytes,
        size_kb=kilobytes(size_bytes),
    )


def build_data_url(raw: bytes, mime_type: str) -> str:
    """把原始字节编码为 data URL"""
    payload = base64.b64encode(raw).decode("ascii")
    return f"{DataURL.SCHEME}{mime_type}{DataURL.BASE64_MARKER}{DataURL.SEPARATOR}{payload}"
