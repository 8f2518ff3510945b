"""Padukuhan Pakel 图片压缩库。

把仪表盘上传的图片压缩成不超过 1000KB 的 base64 JPEG，基于 Pillow。
"""

__version__ = "0.1.0"
__author__ = "Padukuhan Pakel"
__description__ = "Padukuhan Pakel 管理后台图片压缩库"

# 核心功能导出
from .compressor import (
    ImageCompressor,
    compress_image_to_base64,
    convert_image_to_base64,
    validate_base64_size,
)
from .core.payload import estimate_payload_size
from .exceptions import (
    CompressionBudgetExceededError,
    DecodeFailureError,
    ErrorKind,
    ImageCompressError,
    InvalidInputError,
    ReadFailureError,
)
from .models import CompressionOutcome, CompressionSettings, SourceImage
from .utils.message_formatter import format_byte_size


__all__ = [
    "CompressionBudgetExceededError",
    "CompressionOutcome",
    "CompressionSettings",
    "DecodeFailureError",
    "ErrorKind",
    "ImageCompressError",
    "ImageCompressor",
    "InvalidInputError",
    "ReadFailureError",
    "SourceImage",
    "compress_image_to_base64",
    "convert_image_to_base64",
    "estimate_payload_size",
    "format_byte_size",
    "get_version",
    "validate_base64_size",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
